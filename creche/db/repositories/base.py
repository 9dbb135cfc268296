"""
Generic repository shared by every table of the school.

Equality filters ignore ``None`` so route query parameters can be passed
straight through. Writes are flushed, never committed; the caller owns the
transaction.
"""

from typing import TypeVar, Generic, Type, Optional, List, Any

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from creche.db.models import Base


ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    CRUD helpers for one mapped model.

    Subclasses add the queries specific to their table (a child's parents,
    the unread messages of a user, the active coupon for a code).
    """

    def __init__(self, model: Type[ModelType], session: Session):
        self.model = model
        self.session = session

    def create(self, **fields) -> ModelType:
        """
        Add a row and flush it so its id and server defaults are available.

        Raises:
            IntegrityError: On unique or foreign key violations
        """
        instance = self.model(**fields)
        self.session.add(instance)
        self.session.flush()
        return instance

    def get_by_id(self, id: int) -> Optional[ModelType]:
        return self.session.get(self.model, id)

    def get_all(
        self,
        limit: int = 100,
        offset: int = 0,
        order_by: Optional[Any] = None,
        **filters,
    ) -> List[ModelType]:
        """Rows matching ``filters``, ordered by ``order_by`` (id by default) and paginated."""
        query = self._filtered(self.session.query(self.model), filters)
        query = query.order_by(order_by if order_by is not None else self.model.id)
        return query.limit(limit).offset(offset).all()

    def update(self, id: int, **fields) -> Optional[ModelType]:
        """Set the given attributes; unknown names are skipped. None when the row is missing."""
        instance = self.get_by_id(id)
        if instance is None:
            return None
        for key, value in fields.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        self.session.flush()
        return instance

    def delete(self, id: int) -> bool:
        """Delete through the ORM so relationship cascades apply."""
        instance = self.get_by_id(id)
        if instance is None:
            return False
        self.session.delete(instance)
        self.session.flush()
        return True

    def exists(self, **filters) -> bool:
        return self._filtered(self.session.query(self.model), filters).first() is not None

    def count(self, **filters) -> int:
        return self._filtered(self.session.query(self.model), filters).count()

    def sum(self, column, **filters) -> float:
        """Total of a numeric column, 0.0 when no row matches."""
        query = self.session.query(func.coalesce(func.sum(column), 0))
        return float(self._filtered(query, filters).scalar() or 0)

    def _filtered(self, query: Query, filters) -> Query:
        for key, value in filters.items():
            if value is not None and hasattr(self.model, key):
                query = query.filter(getattr(self.model, key) == value)
        return query
