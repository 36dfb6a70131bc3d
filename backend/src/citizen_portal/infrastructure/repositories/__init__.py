"""Database repositories"""

from .submission_repository import SubmissionRepository

__all__ = ["SubmissionRepository"]
