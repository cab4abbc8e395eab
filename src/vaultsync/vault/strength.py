# Vault: Password Strength Estimator
#
# Heuristic 0-100 score shown next to master passwords at registration and
# next to stored secrets in the entry form. Purely advisory; it never
# blocks a submission.

import re
from typing import NamedTuple

_LOWER = re.compile(r"[a-z]")
_UPPER = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"[0-9]")
_OTHER = re.compile(r"[^a-zA-Z0-9]")

# (minimum length, points)
LENGTH_TIERS = ((8, 20), (12, 15), (16, 15))

# (pattern, points)
CLASS_POINTS = ((_LOWER, 10), (_UPPER, 10), (_DIGIT, 10), (_OTHER, 20))

MAX_SCORE = 100


class StrengthLabel(NamedTuple):
    label: str
    color: str


class StrengthReport(NamedTuple):
    score: int
    label: str
    color: str


VERY_WEAK = StrengthLabel("Very Weak", "#dc3545")
WEAK = StrengthLabel("Weak", "#fd7e14")
GOOD = StrengthLabel("Good", "#ffc107")
STRONG = StrengthLabel("Strong", "#28a745")


def calculate_strength(password: str) -> int:
    """Score a password from 0 to 100.

    Length thresholds (8/12/16) and each character class present
    (lowercase, uppercase, digit, anything else) add points; the total is
    capped at 100. The empty string scores 0.
    """
    if not password:
        return 0

    score = 0
    for min_length, points in LENGTH_TIERS:
        if len(password) >= min_length:
            score += points

    for pattern, points in CLASS_POINTS:
        if pattern.search(password):
            score += points

    return min(score, MAX_SCORE)


def strength_label(score: int) -> StrengthLabel:
    """Map a score to its display tier."""
    if score < 25:
        return VERY_WEAK
    if score < 50:
        return WEAK
    if score < 75:
        return GOOD
    return STRONG


def assess(password: str) -> StrengthReport:
    """Score and label in one call."""
    score = calculate_strength(password)
    tier = strength_label(score)
    return StrengthReport(score=score, label=tier.label, color=tier.color)
