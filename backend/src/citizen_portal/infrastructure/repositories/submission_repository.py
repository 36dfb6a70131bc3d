"""Submission repository for database operations"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...domain.attachments.ports import StoredFileInfo
from ...models.submission import Submission, SubmissionStatus


class SubmissionRepository:
    """Repository for submission database operations.

    ``create`` commits its own transaction: a submission is a single row and
    nothing else is written alongside it.
    """

    def __init__(self, db: Session):
        """Initialize repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def create(
        self,
        *,
        contact: str,
        message: str,
        ip_digest: str,
        locale: str,
        status: SubmissionStatus = SubmissionStatus.PENDING,
        name: Optional[str] = None,
        email: Optional[str] = None,
        district: Optional[str] = None,
        seat_name: Optional[str] = None,
        attachment: Optional[StoredFileInfo] = None,
    ) -> Submission:
        """Insert one submission row and commit.

        Args:
            attachment: Stored attachment metadata; all attachment columns
                stay NULL when omitted

        Returns:
            The persisted Submission

        Raises:
            SQLAlchemyError: If the insert, reload or commit fails. The session
                is rolled back and no row is persisted
        """
        submission = Submission(
            name=name,
            contact=contact,
            email=email,
            district=district,
            seat_name=seat_name,
            message=message,
            ip_digest=ip_digest,
            locale=locale,
            status=status,
        )
        if attachment is not None:
            submission.attachment_url = attachment.url
            submission.attachment_key = attachment.key
            submission.attachment_name = attachment.original_name
            submission.attachment_size = attachment.size
            submission.attachment_type = attachment.mime_type

        try:
            self.db.add(submission)
            self.db.flush()
            # Load server defaults (timestamps) while the transaction is still open
            self.db.refresh(submission)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return submission
