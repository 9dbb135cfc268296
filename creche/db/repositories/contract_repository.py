"""
Enrollment contract repository.
"""

from typing import List, Optional

from creche.db.repositories.base import BaseRepository
from creche.db.models import EnrollmentContract


class ContractRepository(BaseRepository[EnrollmentContract]):
    """Repository for EnrollmentContract operations."""

    def __init__(self, session):
        super().__init__(EnrollmentContract, session)

    def get_by_doc_token(self, doc_token: str) -> Optional[EnrollmentContract]:
        return (
            self.session.query(EnrollmentContract)
            .filter(EnrollmentContract.doc_token == doc_token)
            .first()
        )

    def get_pending_signature(self) -> List[EnrollmentContract]:
        """Contracts sent and still waiting for the parent's signature."""
        return (
            self.session.query(EnrollmentContract)
            .filter(EnrollmentContract.status == "sent")
            .order_by(EnrollmentContract.sent_at)
            .all()
        )
