"""Spam domain module - heuristic scoring of submission text"""

from .assessor import SpamAssessment, assess_spam, MESSAGE_MAX_LENGTH, MESSAGE_MIN_LENGTH

__all__ = ["SpamAssessment", "assess_spam", "MESSAGE_MAX_LENGTH", "MESSAGE_MIN_LENGTH"]
