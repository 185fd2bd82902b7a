"""
Package initialization file for backend models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py so
other modules can import them from dnc_backend.models directly.

Usage:
    from dnc_backend.models import (
        DncStatus,
        RiskFlag,
        ProcessedLead,
        ChangeListJob,
        # ... etc
    )
"""

# =============================================================================
# Enums
# =============================================================================

from dnc_backend.models.enums import (
    DncStatus,
    RiskFlag,
    LitigatorRiskLevel,
    ChangeType,
    ChangeListStatus,
    SubscriptionStatus,
    PhoneDisplayStyle,
)

# =============================================================================
# Schemas
# =============================================================================

from dnc_backend.models.schemas import (
    # Risk check
    LitigatorInfo,
    RiskAssessment,
    LeadInput,
    ProcessedLead,
    BatchStats,
    DncCheckRequest,
    DncCheckResponse,
    PhoneCheckRequest,
    PhoneCheckResponse,
    # Registry
    PhoneRecord,
    RegistryEntry,
    DeletedTrackingEntry,
    # Change-list jobs
    BatchOutcome,
    ChangeListProgress,
    ChangeListJob,
    ChangeListCreate,
    ChangeListUpdate,
    ChangeListRunRequest,
    ChangeListRunResult,
    DncUpdateLogEntry,
    Pagination,
    ChangeListPage,
)

__all__ = [
    # Enums
    'DncStatus',
    'RiskFlag',
    'LitigatorRiskLevel',
    'ChangeType',
    'ChangeListStatus',
    'SubscriptionStatus',
    'PhoneDisplayStyle',
    # Risk check
    'LitigatorInfo',
    'RiskAssessment',
    'LeadInput',
    'ProcessedLead',
    'BatchStats',
    'DncCheckRequest',
    'DncCheckResponse',
    'PhoneCheckRequest',
    'PhoneCheckResponse',
    # Registry
    'PhoneRecord',
    'RegistryEntry',
    'DeletedTrackingEntry',
    # Change-list jobs
    'BatchOutcome',
    'ChangeListProgress',
    'ChangeListJob',
    'ChangeListCreate',
    'ChangeListUpdate',
    'ChangeListRunRequest',
    'ChangeListRunResult',
    'DncUpdateLogEntry',
    'Pagination',
    'ChangeListPage',
]
