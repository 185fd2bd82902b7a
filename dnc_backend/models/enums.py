"""
Enumeration definitions for the DNC compliance backend.

All enums inherit from both `str` and `Enum` so they serialize as plain
strings in Pydantic models and API responses, and compare equal to the raw
values stored in Postgres.
"""

from enum import Enum


class DncStatus(str, Enum):
    """
    Call-safety classification of a scored lead.

    Derived from the risk score:
    - clean: score <= 20, no meaningful risk signal
    - caution: 20 < score < 60, or the phone number is invalid
    - blocked: score >= 60, always reached by federal DNC membership
    """
    CLEAN = "clean"
    CAUTION = "caution"
    BLOCKED = "blocked"


class RiskFlag(str, Enum):
    """
    Risk flags attached to a scored lead.

    Declaration order is the order flags appear on a lead:
    - invalid_phone_number: Normalized value is not 10 digits
    - federal_dnc: Active on the federal DNC registry (+60)
    - recently_removed_dnc: Present in removed-number tracking (+20)
    - pattern_add_remove: Added and removed more than once (+15)
    - known_litigator: Associated with a TCPA litigant (+25)
    - serial_litigator: More than 5 cases or critical risk level (+10)
    """
    INVALID_PHONE_NUMBER = "invalid_phone_number"
    FEDERAL_DNC = "federal_dnc"
    RECENTLY_REMOVED_DNC = "recently_removed_dnc"
    PATTERN_ADD_REMOVE = "pattern_add_remove"
    KNOWN_LITIGATOR = "known_litigator"
    SERIAL_LITIGATOR = "serial_litigator"


class LitigatorRiskLevel(str, Enum):
    """
    Risk level recorded on a litigator entry.

    Only `critical` affects scoring (serial litigator bonus).
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ChangeType(str, Enum):
    """
    Kind of FTC change list.

    - additions: numbers newly registered on the DNC list
    - deletions: numbers removed from the DNC list
    """
    ADDITIONS = "additions"
    DELETIONS = "deletions"


class ChangeListStatus(str, Enum):
    """
    Processing status of an FTC change-list job.

    Transitions:
    - pending -> processing: a run starts
    - processing -> completed | failed: a run ends
    - completed | failed -> pending: explicit retry
    """
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class SubscriptionStatus(str, Enum):
    """
    Status of an FTC area-code subscription.

    Change lists may only target area codes with an active subscription.
    """
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class PhoneDisplayStyle(str, Enum):
    """Formatting styles for displaying a 10-digit phone number."""
    DASHED = "dashed"
    PARENTHESES = "parentheses"
    DOTS = "dots"
