"""
Announcement and feed post repositories.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import or_

from creche.db.repositories.base import BaseRepository
from creche.db.models import Announcement, FeedPost


class AnnouncementRepository(BaseRepository[Announcement]):
    """Repository for Announcement operations."""

    def __init__(self, session):
        super().__init__(Announcement, session)

    def get_active(
        self,
        class_type: Optional[str] = None,
        child_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[Announcement]:
        """
        Announcements visible right now to a class or child.

        Visible means active, started (or without start), not expired (or
        without expiry), and addressed to all classes, the given class, or the
        given child.
        """
        now = now or datetime.now(timezone.utc)
        audience = [Announcement.all_classes.is_(True)]
        if class_type:
            audience.append(Announcement.class_type == class_type)
        if child_id is not None:
            audience.append(Announcement.child_id == child_id)

        return (
            self.session.query(Announcement)
            .filter(
                Announcement.is_active.is_(True),
                or_(Announcement.starts_at.is_(None), Announcement.starts_at <= now),
                or_(Announcement.expires_at.is_(None), Announcement.expires_at > now),
                or_(*audience),
            )
            .order_by(Announcement.created_at.desc(), Announcement.id.desc())
            .all()
        )


class FeedPostRepository(BaseRepository[FeedPost]):
    """Repository for the school feed."""

    def __init__(self, session):
        super().__init__(FeedPost, session)

    def get_feed(self, class_type: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[FeedPost]:
        """Newest posts for everyone, or for everyone plus one class."""
        query = self.session.query(FeedPost)
        if class_type:
            query = query.filter(or_(FeedPost.all_classes.is_(True), FeedPost.class_type == class_type))
        return (
            query.order_by(FeedPost.created_at.desc(), FeedPost.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
