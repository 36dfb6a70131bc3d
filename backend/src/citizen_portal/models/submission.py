"""Submission SQLAlchemy model

A submission is a citizen-authored message plus an optional attachment,
persisted as one record. The caller's address is only ever stored as a
salted digest.
"""

import enum
import uuid

from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, Enum as SQLEnum, Index, Text, Uuid, func

from .base import Base


class SubmissionStatus(str, enum.Enum):
    """Review status of a submission.

    The intake pipeline only ever writes PENDING or FLAGGED; REVIEWED is
    set from the admin side.
    """
    PENDING = "PENDING"
    FLAGGED = "FLAGGED"    # Spam score crossed the threshold at intake
    REVIEWED = "REVIEWED"


class Submission(Base):
    """Submission model.

    Attachment columns are either all NULL (no attachment) or all set.
    """
    __tablename__ = "submission"
    __table_args__ = (
        Index("ix_submission_status", "status"),
        Index("ix_submission_created_at", "created_at"),
        Index("ix_submission_ip_digest", "ip_digest"),
        CheckConstraint(
            "(attachment_key IS NULL) = (attachment_url IS NULL) "
            "AND (attachment_key IS NULL) = (attachment_size IS NULL)",
            name="ck_submission_attachment_complete",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=True)  # Only kept when the submitter chose to share it
    contact = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    district = Column(Text, nullable=True)
    seat_name = Column(Text, nullable=True)
    message = Column(Text, nullable=False)
    ip_digest = Column(Text, nullable=False)
    locale = Column(Text, nullable=False)
    status = Column(
        SQLEnum(SubmissionStatus, name="submissionstatus"),
        nullable=False,
        default=SubmissionStatus.PENDING,
        server_default=SubmissionStatus.PENDING.value,
    )

    # Attachment (all-or-nothing)
    attachment_url = Column(Text, nullable=True)
    attachment_key = Column(Text, nullable=True)
    attachment_name = Column(Text, nullable=True)
    attachment_size = Column(BigInteger, nullable=True)
    attachment_type = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    @property
    def has_attachment(self) -> bool:
        return self.attachment_key is not None

    def to_dict(self):
        """Convert submission to dictionary representation (no IP digest)"""
        return {
            "id": str(self.id),
            "name": self.name,
            "contact": self.contact,
            "email": self.email,
            "district": self.district,
            "seat_name": self.seat_name,
            "message": self.message,
            "locale": self.locale,
            "status": self.status.value if isinstance(self.status, enum.Enum) else self.status,
            "attachment_url": self.attachment_url,
            "attachment_key": self.attachment_key,
            "attachment_name": self.attachment_name,
            "attachment_size": self.attachment_size,
            "attachment_type": self.attachment_type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
