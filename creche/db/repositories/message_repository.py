"""
Message repository for the parent/school chat.
"""

from datetime import datetime
from typing import List, Optional

from creche.db.repositories.base import BaseRepository
from creche.db.models import Message


class MessageRepository(BaseRepository[Message]):
    """Repository for Message operations."""

    def __init__(self, session):
        super().__init__(Message, session)

    def get_conversation(
        self,
        child_id: int,
        channel_type: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: int = 200,
    ) -> List[Message]:
        """
        Messages about a child in chronological order.

        ``since`` returns only messages created after that instant, which lets
        clients poll for new messages.
        """
        query = self.session.query(Message).filter(Message.child_id == child_id)
        if channel_type:
            query = query.filter(Message.channel_type == channel_type)
        if since:
            query = query.filter(Message.created_at > since)
        return query.order_by(Message.created_at, Message.id).limit(limit).all()

    def mark_read(self, child_id: int, reader_id: int) -> int:
        """Mark as read every message in the conversation not sent by the reader."""
        updated = (
            self.session.query(Message)
            .filter(
                Message.child_id == child_id,
                Message.sender_id != reader_id,
                Message.is_read.is_(False),
            )
            .update({"is_read": True}, synchronize_session=False)
        )
        self.session.flush()
        return updated

    def count_unread(self, child_id: int, reader_id: int) -> int:
        return (
            self.session.query(Message)
            .filter(
                Message.child_id == child_id,
                Message.sender_id != reader_id,
                Message.is_read.is_(False),
            )
            .count()
        )
