"""
Risk Scoring Service

Turns the registry lookup results for one phone number into a composite risk
score, an ordered list of risk flags and a call-safety status. The scorer is
a pure function: the same inputs always produce the same assessment and no
store is touched.

Scoring Policy (additive):
- Invalid phone (not 10 digits): score 0, invalid_phone_number, caution
- Active federal DNC membership: +60 federal_dnc
- Present in removed-number tracking: +20 recently_removed_dnc
    - added/removed more than once: +15 pattern_add_remove
- Known litigator: +25 known_litigator
    - more than 5 cases or critical risk level: +10 serial_litigator

Status Thresholds:
- score >= 60: blocked
- 20 < score < 60: caution
- score <= 20: clean

Federal DNC membership alone scores 60, so a DNC-listed number is always
blocked whatever else is known about it.
"""

from typing import List, Optional

from dnc_backend.models.enums import DncStatus, LitigatorRiskLevel, RiskFlag
from dnc_backend.models.schemas import LitigatorInfo, RiskAssessment
from dnc_backend.services.phone import is_valid_phone_key


# =============================================================================
# Score Weights
# =============================================================================

FEDERAL_DNC_POINTS: int = 60
RECENTLY_REMOVED_POINTS: int = 20
PATTERN_ADD_REMOVE_POINTS: int = 15
KNOWN_LITIGATOR_POINTS: int = 25
SERIAL_LITIGATOR_POINTS: int = 10

# A removed number seen more than this many add/remove cycles is a pattern
PATTERN_CYCLE_THRESHOLD: int = 1

# A litigator with more cases than this is a serial litigator
SERIAL_LITIGATOR_CASE_THRESHOLD: int = 5


# =============================================================================
# Status Thresholds
# =============================================================================

BLOCKED_MIN_SCORE: int = 60
CAUTION_MIN_EXCLUSIVE_SCORE: int = 20


def classify_score(score: int) -> DncStatus:
    """
    Map a risk score to a call-safety status.

    Args:
        score: Composite risk score of a valid phone number.

    Returns:
        DncStatus: blocked at 60 and above, caution above 20, clean otherwise.
    """
    if score >= BLOCKED_MIN_SCORE:
        return DncStatus.BLOCKED
    if score > CAUTION_MIN_EXCLUSIVE_SCORE:
        return DncStatus.CAUTION
    return DncStatus.CLEAN


def is_serial_litigator(litigator: LitigatorInfo) -> bool:
    """Return True for litigators with more than 5 cases or a critical risk level."""
    return (
        litigator.case_count > SERIAL_LITIGATOR_CASE_THRESHOLD
        or litigator.risk_level == LitigatorRiskLevel.CRITICAL.value
    )


def invalid_phone_assessment() -> RiskAssessment:
    """Assessment given to phone numbers that do not normalize to 10 digits."""
    return RiskAssessment(
        score=0,
        flags=[RiskFlag.INVALID_PHONE_NUMBER],
        status=DncStatus.CAUTION,
    )


def score_phone(
    phone: str,
    is_active_dnc: bool,
    deleted_cycle_count: Optional[int] = None,
    litigator: Optional[LitigatorInfo] = None
) -> RiskAssessment:
    """
    Score a normalized phone number against its registry lookup results.

    Args:
        phone: Normalized phone number.
        is_active_dnc: Whether the number is active on the federal DNC list.
        deleted_cycle_count: times_added_removed from removed-number tracking,
            or None when the number was never removed.
        litigator: Litigation profile, or None when the number is not a
            known litigator.

    Returns:
        RiskAssessment: Score, flags in fixed order, and status.

    Example:
        >>> score_phone("5551234567", True).score
        60
        >>> score_phone("5551234567", False, deleted_cycle_count=2).status
        <DncStatus.CAUTION: 'caution'>
    """
    if not is_valid_phone_key(phone):
        return invalid_phone_assessment()

    score = 0
    flags: List[RiskFlag] = []

    if is_active_dnc:
        score += FEDERAL_DNC_POINTS
        flags.append(RiskFlag.FEDERAL_DNC)

    if deleted_cycle_count is not None:
        score += RECENTLY_REMOVED_POINTS
        flags.append(RiskFlag.RECENTLY_REMOVED_DNC)

        if deleted_cycle_count > PATTERN_CYCLE_THRESHOLD:
            score += PATTERN_ADD_REMOVE_POINTS
            flags.append(RiskFlag.PATTERN_ADD_REMOVE)

    if litigator is not None:
        score += KNOWN_LITIGATOR_POINTS
        flags.append(RiskFlag.KNOWN_LITIGATOR)

        if is_serial_litigator(litigator):
            score += SERIAL_LITIGATOR_POINTS
            flags.append(RiskFlag.SERIAL_LITIGATOR)

    return RiskAssessment(score=score, flags=flags, status=classify_score(score))


__all__ = [
    # Weights
    'FEDERAL_DNC_POINTS',
    'RECENTLY_REMOVED_POINTS',
    'PATTERN_ADD_REMOVE_POINTS',
    'KNOWN_LITIGATOR_POINTS',
    'SERIAL_LITIGATOR_POINTS',
    'PATTERN_CYCLE_THRESHOLD',
    'SERIAL_LITIGATOR_CASE_THRESHOLD',
    # Thresholds
    'BLOCKED_MIN_SCORE',
    'CAUTION_MIN_EXCLUSIVE_SCORE',
    # Functions
    'classify_score',
    'is_serial_litigator',
    'invalid_phone_assessment',
    'score_phone',
]
