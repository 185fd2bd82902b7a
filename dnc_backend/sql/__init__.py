"""
SQL Query Module for the DNC Backend.

Provides parameterized SQL queries for:
- DNC registry lookups and writes (registry_queries)
- FTC change-list jobs, subscriptions and audit log (change_list_queries)

Keeps SQL text out of the repositories so business logic and data access
stay separate. All queries use asyncpg-style $n placeholders.

Example usage:
    from dnc_backend.sql import ACTIVE_BY_PHONES_QUERY, get_update_change_list_query

    rows = await conn.fetch(ACTIVE_BY_PHONES_QUERY, phones)
    query = get_update_change_list_query(['status', 'progress_percent'])
"""

# =============================================================================
# REGISTRY QUERIES - Active registry, removed-number tracking, litigators
# =============================================================================

from dnc_backend.sql.registry_queries import (
    ACTIVE_BY_PHONES_QUERY,
    DELETED_TRACKING_BY_PHONES_QUERY,
    LITIGATORS_BY_PHONES_QUERY,
    UPSERT_REGISTRY_ENTRY_QUERY,
    FIND_REGISTRY_ENTRY_QUERY,
    DELETE_REGISTRY_ENTRY_QUERY,
    FIND_DELETED_TRACKING_QUERY,
    UPSERT_DELETED_TRACKING_QUERY,
)

# =============================================================================
# CHANGE-LIST QUERIES - Jobs, subscriptions, update log
# =============================================================================

from dnc_backend.sql.change_list_queries import (
    UPDATABLE_COLUMNS,
    GET_CHANGE_LIST_QUERY,
    GET_CHANGE_LIST_STATUS_QUERY,
    LIST_PENDING_CHANGE_LISTS_QUERY,
    FIND_CHANGE_LIST_BY_HASH_QUERY,
    CREATE_CHANGE_LIST_QUERY,
    DELETE_CHANGE_LIST_QUERY,
    get_list_change_lists_query,
    get_update_change_list_query,
    ACTIVE_SUBSCRIPTION_AREA_CODES_QUERY,
    TOUCH_SUBSCRIPTION_QUERY,
    INSERT_UPDATE_LOG_QUERY,
)

__all__ = [
    # Registry queries
    'ACTIVE_BY_PHONES_QUERY',
    'DELETED_TRACKING_BY_PHONES_QUERY',
    'LITIGATORS_BY_PHONES_QUERY',
    'UPSERT_REGISTRY_ENTRY_QUERY',
    'FIND_REGISTRY_ENTRY_QUERY',
    'DELETE_REGISTRY_ENTRY_QUERY',
    'FIND_DELETED_TRACKING_QUERY',
    'UPSERT_DELETED_TRACKING_QUERY',
    # Change-list queries
    'UPDATABLE_COLUMNS',
    'GET_CHANGE_LIST_QUERY',
    'GET_CHANGE_LIST_STATUS_QUERY',
    'LIST_PENDING_CHANGE_LISTS_QUERY',
    'FIND_CHANGE_LIST_BY_HASH_QUERY',
    'CREATE_CHANGE_LIST_QUERY',
    'DELETE_CHANGE_LIST_QUERY',
    'get_list_change_lists_query',
    'get_update_change_list_query',
    'ACTIVE_SUBSCRIPTION_AREA_CODES_QUERY',
    'TOUCH_SUBSCRIPTION_QUERY',
    'INSERT_UPDATE_LOG_QUERY',
]
