"""Citizen submission intake: parsing, validation, orchestration and the public endpoint"""

from .errors import IntakeError
from .service import SubmissionIntakeService

__all__ = ["IntakeError", "SubmissionIntakeService"]
