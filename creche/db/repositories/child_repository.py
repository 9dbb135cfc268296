"""
Child repository for database operations on children and parent links.
"""

from typing import List, Optional

from creche.db.repositories.base import BaseRepository
from creche.db.models import Child, ParentChild, User


class ChildRepository(BaseRepository[Child]):
    """Repository for Child CRUD operations and parent links."""

    def __init__(self, session):
        super().__init__(Child, session)

    def search(
        self,
        name: Optional[str] = None,
        class_type: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Child]:
        """List children filtered by a name fragment and/or class, ordered by name."""
        query = self.session.query(Child)
        if name:
            query = query.filter(Child.full_name.ilike(f"%{name}%"))
        if class_type:
            query = query.filter(Child.class_type == class_type)
        return query.order_by(Child.full_name).limit(limit).offset(offset).all()

    def get_by_parent(self, parent_id: int) -> List[Child]:
        """Children linked to a parent."""
        return (
            self.session.query(Child)
            .join(ParentChild, ParentChild.child_id == Child.id)
            .filter(ParentChild.parent_id == parent_id)
            .order_by(Child.full_name)
            .all()
        )

    def get_with_allergies(self) -> List[Child]:
        """Children with allergies or dietary restrictions recorded, for the kitchen."""
        return (
            self.session.query(Child)
            .filter(
                (Child.allergies.isnot(None) & (Child.allergies != ""))
                | (Child.dietary_restrictions.isnot(None) & (Child.dietary_restrictions != ""))
            )
            .order_by(Child.full_name)
            .all()
        )

    def get_parents(self, child_id: int) -> List[User]:
        """Users linked to a child as responsible adults."""
        return (
            self.session.query(User)
            .join(ParentChild, ParentChild.parent_id == User.id)
            .filter(ParentChild.child_id == child_id)
            .order_by(User.id)
            .all()
        )

    def get_primary_parent(self, child_id: int) -> Optional[User]:
        """First linked parent; billing and contracts are addressed to them."""
        parents = self.get_parents(child_id)
        return parents[0] if parents else None

    def link_parent(self, child_id: int, parent_id: int, relationship_type: str = "responsavel") -> ParentChild:
        """Link a parent to a child; linking twice returns the existing link."""
        link = (
            self.session.query(ParentChild)
            .filter_by(child_id=child_id, parent_id=parent_id)
            .first()
        )
        if link:
            return link
        link = ParentChild(child_id=child_id, parent_id=parent_id, relationship_type=relationship_type)
        self.session.add(link)
        self.session.flush()
        return link

    def unlink_parent(self, child_id: int, parent_id: int) -> bool:
        deleted = (
            self.session.query(ParentChild)
            .filter_by(child_id=child_id, parent_id=parent_id)
            .delete()
        )
        self.session.flush()
        return deleted > 0

    def is_parent_of(self, parent_id: int, child_id: int) -> bool:
        return (
            self.session.query(ParentChild)
            .filter_by(child_id=child_id, parent_id=parent_id)
            .first()
            is not None
        )
