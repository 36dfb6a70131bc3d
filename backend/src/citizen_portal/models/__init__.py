"""SQLAlchemy Models for the citizen portal"""

from .base import Base
from .submission import Submission, SubmissionStatus

__all__ = [
    "Base",
    "Submission",
    "SubmissionStatus",
]
