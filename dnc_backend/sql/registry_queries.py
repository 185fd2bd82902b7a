"""
Parameterized SQL for the DNC registry tables.

Tables:
    dnc_registry: Active federal DNC numbers, keyed by phone_number.
    dnc_deleted_numbers: Numbers removed from the registry, with their
        add/remove cycle count and purge deadline (delete_after).
    litigators: Read-only litigation profiles keyed by phone_number.

Batched reads take the phone list as a single text[] parameter so a lookup
costs one round trip however many numbers it covers.
"""


# =============================================================================
# Batched Lookups
# =============================================================================

ACTIVE_BY_PHONES_QUERY: str = """
    SELECT phone_number
    FROM dnc_registry
    WHERE phone_number = ANY($1::text[])
      AND record_status = 'active'
"""

DELETED_TRACKING_BY_PHONES_QUERY: str = """
    SELECT phone_number, times_added_removed
    FROM dnc_deleted_numbers
    WHERE phone_number = ANY($1::text[])
"""

LITIGATORS_BY_PHONES_QUERY: str = """
    SELECT phone_number, case_count, risk_level
    FROM litigators
    WHERE phone_number = ANY($1::text[])
"""


# =============================================================================
# Active Registry
# =============================================================================

# Parameters: phone_number, area_code, source, record_status, is_active,
# last_updated, ftc_release_date
UPSERT_REGISTRY_ENTRY_QUERY: str = """
    INSERT INTO dnc_registry (
        phone_number, area_code, source, record_status, is_active,
        last_updated, ftc_release_date
    ) VALUES ($1, $2, $3, $4, $5, $6, $7)
    ON CONFLICT (phone_number) DO UPDATE SET
        area_code = EXCLUDED.area_code,
        source = EXCLUDED.source,
        record_status = EXCLUDED.record_status,
        is_active = EXCLUDED.is_active,
        last_updated = EXCLUDED.last_updated,
        ftc_release_date = EXCLUDED.ftc_release_date
"""

FIND_REGISTRY_ENTRY_QUERY: str = """
    SELECT phone_number, area_code, state, source, record_status,
           is_active, last_updated, ftc_release_date, created_at
    FROM dnc_registry
    WHERE phone_number = $1
"""

DELETE_REGISTRY_ENTRY_QUERY: str = """
    DELETE FROM dnc_registry
    WHERE phone_number = $1
"""


# =============================================================================
# Removed-Number Tracking
# =============================================================================

FIND_DELETED_TRACKING_QUERY: str = """
    SELECT id, phone_number, area_code, state, deleted_from_dnc_date,
           original_add_date, times_added_removed, delete_after, source
    FROM dnc_deleted_numbers
    WHERE phone_number = $1
"""

# Parameters: phone_number, area_code, state, deleted_from_dnc_date,
# original_add_date, times_added_removed, delete_after, source
# original_add_date is kept from the first removal
UPSERT_DELETED_TRACKING_QUERY: str = """
    INSERT INTO dnc_deleted_numbers (
        phone_number, area_code, state, deleted_from_dnc_date,
        original_add_date, times_added_removed, delete_after, source
    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
    ON CONFLICT (phone_number) DO UPDATE SET
        times_added_removed = EXCLUDED.times_added_removed,
        deleted_from_dnc_date = EXCLUDED.deleted_from_dnc_date,
        delete_after = EXCLUDED.delete_after
"""


__all__ = [
    'ACTIVE_BY_PHONES_QUERY',
    'DELETED_TRACKING_BY_PHONES_QUERY',
    'LITIGATORS_BY_PHONES_QUERY',
    'UPSERT_REGISTRY_ENTRY_QUERY',
    'FIND_REGISTRY_ENTRY_QUERY',
    'DELETE_REGISTRY_ENTRY_QUERY',
    'FIND_DELETED_TRACKING_QUERY',
    'UPSERT_DELETED_TRACKING_QUERY',
]
