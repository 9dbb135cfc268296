"""
Notification repository.
"""

from typing import List

from creche.db.repositories.base import BaseRepository
from creche.db.models import Notification, User
from creche.core.constants import UserRole


class NotificationRepository(BaseRepository[Notification]):
    """Repository for in-app notifications."""

    def __init__(self, session):
        super().__init__(Notification, session)

    def notify(self, user_id: int, title: str, message: str, type: str = "info", link: str = None) -> Notification:
        return self.create(user_id=user_id, title=title, message=message, type=type, link=link)

    def notify_admins(self, title: str, message: str, type: str = "info", link: str = None) -> List[Notification]:
        admins = (
            self.session.query(User)
            .filter(User.role == UserRole.ADMIN.value, User.is_active.is_(True))
            .all()
        )
        return [self.notify(admin.id, title, message, type, link) for admin in admins]

    def get_for_user(self, user_id: int, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = self.session.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    def mark_all_read(self, user_id: int) -> int:
        updated = (
            self.session.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .update({"is_read": True}, synchronize_session=False)
        )
        self.session.flush()
        return updated
