"""Heuristic spam scoring for submission messages.

Each rule contributes a fixed (or URL-count scaled) weight and appends its
reason code when triggered. The score is clamped to 1.0. The result is
advisory: the intake pipeline compares it against its own threshold to decide
between PENDING and FLAGGED.
"""

import re
from dataclasses import dataclass, field
from typing import List

MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 2500

# Messages within this many characters of the maximum count as "near limit"
NEAR_LIMIT_MARGIN = 20

URL_PATTERN = re.compile(r"https?://", re.IGNORECASE)
REPEATED_CHAR_PATTERN = re.compile(r"(.)\1{5,}", re.DOTALL)
# Anything that is not a word char, whitespace, or Bengali script
SYMBOL_PATTERN = re.compile(r"[^\w\s\u0980-\u09FF]")
LATIN_PATTERN = re.compile(r"[A-Za-z]")

WEIGHT_TOO_SHORT = 0.15
WEIGHT_NEAR_LIMIT = 0.05
WEIGHT_URL_BASE = 0.2
WEIGHT_URL_EXTRA = 0.1
WEIGHT_URL_EXTRA_CAP = 0.2
WEIGHT_REPETITION = 0.2
WEIGHT_SYMBOL_NOISE = 0.15
WEIGHT_SHOUTING = 0.1

SYMBOL_RATIO_LIMIT = 0.3
SHOUTING_MIN_LATIN = 12
SHOUTING_UPPER_RATIO = 0.7


@dataclass
class SpamAssessment:
    """Spam score in [0, 1] plus triggered reason codes, in rule order."""
    score: float = 0.0
    reasons: List[str] = field(default_factory=list)

    def is_flagged(self, threshold: float) -> bool:
        return self.score >= threshold


def assess_spam(message: str, max_length: int = MESSAGE_MAX_LENGTH) -> SpamAssessment:
    """Score ``message`` for spam signals.

    Args:
        message: Submission text (already trimmed by the schema)
        max_length: Maximum message length accepted by the schema

    Returns:
        SpamAssessment: clamped score and reason codes

    Example:
        >>> assess_spam("Visit http://a.example and http://b.example now").reasons
        ['contains_url']
    """
    reasons: List[str] = []
    score = 0.0
    length = len(message)

    if length < MESSAGE_MIN_LENGTH:
        score += WEIGHT_TOO_SHORT
        reasons.append("too_short")

    if length > max_length - NEAR_LIMIT_MARGIN:
        score += WEIGHT_NEAR_LIMIT
        reasons.append("near_limit")

    url_count = len(URL_PATTERN.findall(message))
    if url_count > 0:
        score += WEIGHT_URL_BASE + min(WEIGHT_URL_EXTRA_CAP, (url_count - 1) * WEIGHT_URL_EXTRA)
        reasons.append("contains_url")

    if REPEATED_CHAR_PATTERN.search(message):
        score += WEIGHT_REPETITION
        reasons.append("repetition")

    if length > 0:
        symbol_ratio = len(SYMBOL_PATTERN.findall(message)) / length
        if symbol_ratio > SYMBOL_RATIO_LIMIT:
            score += WEIGHT_SYMBOL_NOISE
            reasons.append("symbol_noise")

    latin = LATIN_PATTERN.findall(message)
    if len(latin) > SHOUTING_MIN_LATIN:
        upper_ratio = sum(1 for ch in latin if ch.isupper()) / len(latin)
        if upper_ratio > SHOUTING_UPPER_RATIO:
            score += WEIGHT_SHOUTING
            reasons.append("uppercase_shouting")

    return SpamAssessment(score=min(1.0, round(score, 4)), reasons=reasons)
