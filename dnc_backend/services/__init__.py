"""
Backend Services Module

Business logic for DNC risk scoring and FTC change-list ingestion. Services
take their stores as constructor or function arguments, so they run the same
against the Postgres repositories and the in-memory ones used in tests.

Services:
- phone: phone number normalization, validation and display formatting
- risk_scoring: per-number risk score, flags and call-safety status
- registry_lookup: three batched registry reads per lead batch
- batch_check: lead batch orchestration (normalize, look up, score)
- statistics: batch summary statistics
- lead_export: CSV export of scored leads
- change_list_parser: FTC change-list file parsing
- retry: bounded retry with exponential backoff
- change_list_applier: additions/deletions applied batch by batch
- change_list_jobs: change-list job lifecycle and processing runs
- notifications: completion email and Slack messages
"""

# =============================================================================
# Phone Number Utilities
# =============================================================================

from dnc_backend.services.phone import (
    PHONE_KEY_LENGTH,
    AREA_CODE_LENGTH,
    TOLL_FREE_AREA_CODES,
    strip_non_digits,
    normalize_phone_number,
    is_valid_phone_key,
    is_valid_phone,
    get_area_code,
    is_toll_free,
    format_phone_display,
)

# =============================================================================
# Risk Scoring and Risk Checks
# =============================================================================

from dnc_backend.services.risk_scoring import (
    classify_score,
    is_serial_litigator,
    invalid_phone_assessment,
    score_phone,
)

from dnc_backend.services.registry_lookup import (
    RegistryLookupResult,
    RegistryLookupGateway,
)

from dnc_backend.services.batch_check import (
    DEFAULT_CHUNK_SIZE,
    process_leads_batch,
    process_leads_in_chunks,
)

from dnc_backend.services.statistics import (
    round_half_up,
    calculate_batch_stats,
)

from dnc_backend.services.lead_export import (
    RISK_COLUMNS,
    processed_leads_to_frame,
    processed_leads_to_csv,
)

# =============================================================================
# FTC Change-List Ingestion
# =============================================================================

from dnc_backend.services.change_list_parser import (
    parse_phone_line,
    parse_change_list,
    decode_change_list,
)

from dnc_backend.services.retry import RetryPolicy

from dnc_backend.services.change_list_applier import ChangeListApplier

from dnc_backend.services.change_list_jobs import ChangeListJobController

from dnc_backend.services.notifications import (
    build_completion_summary,
    ChangeListNotifier,
)


__all__ = [
    # ----- Phone -----
    'PHONE_KEY_LENGTH',
    'AREA_CODE_LENGTH',
    'TOLL_FREE_AREA_CODES',
    'strip_non_digits',
    'normalize_phone_number',
    'is_valid_phone_key',
    'is_valid_phone',
    'get_area_code',
    'is_toll_free',
    'format_phone_display',
    # ----- Risk Checks -----
    'classify_score',
    'is_serial_litigator',
    'invalid_phone_assessment',
    'score_phone',
    'RegistryLookupResult',
    'RegistryLookupGateway',
    'DEFAULT_CHUNK_SIZE',
    'process_leads_batch',
    'process_leads_in_chunks',
    'round_half_up',
    'calculate_batch_stats',
    'RISK_COLUMNS',
    'processed_leads_to_frame',
    'processed_leads_to_csv',
    # ----- Change Lists -----
    'parse_phone_line',
    'parse_change_list',
    'decode_change_list',
    'RetryPolicy',
    'ChangeListApplier',
    'ChangeListJobController',
    'build_completion_summary',
    'ChangeListNotifier',
]
