"""
Parameterized SQL for FTC change-list jobs.

Tables:
    ftc_change_lists: One row per uploaded change-list file and its
        processing state.
    ftc_subscriptions: Area codes the platform subscribes to, with the time
        and job of their last update.
    dnc_update_log: Audit trail of completed registry updates.
"""

from typing import Iterable, Optional, Tuple


# Columns a job update may touch; anything else is rejected
UPDATABLE_COLUMNS = frozenset({
    'status',
    'total_records',
    'processed_records',
    'failed_records',
    'skipped_records',
    'progress_percent',
    'current_batch',
    'total_batches',
    'file_url',
    'file_name',
    'file_size_bytes',
    'error_message',
    'error_details',
    'retry_count',
    'last_retry_at',
    'processing_started_at',
    'processing_completed_at',
    'processing_duration_ms',
})


# =============================================================================
# Job Records
# =============================================================================

GET_CHANGE_LIST_QUERY: str = """
    SELECT *
    FROM ftc_change_lists
    WHERE id = $1::uuid
"""

GET_CHANGE_LIST_STATUS_QUERY: str = """
    SELECT status
    FROM ftc_change_lists
    WHERE id = $1::uuid
"""

LIST_PENDING_CHANGE_LISTS_QUERY: str = """
    SELECT *
    FROM ftc_change_lists
    WHERE status = 'pending'
    ORDER BY created_at ASC
    LIMIT $1
"""

FIND_CHANGE_LIST_BY_HASH_QUERY: str = """
    SELECT id
    FROM ftc_change_lists
    WHERE file_hash = $1
    LIMIT 1
"""

# Parameters: change_type, ftc_file_date, area_codes, file_name,
# file_size_bytes, file_hash, file_url, uploaded_by
CREATE_CHANGE_LIST_QUERY: str = """
    INSERT INTO ftc_change_lists (
        change_type, ftc_file_date, area_codes, status, file_name,
        file_size_bytes, file_hash, file_url, uploaded_by
    ) VALUES ($1, $2, $3::text[], 'pending', $4, $5, $6, $7, $8)
    RETURNING *
"""

DELETE_CHANGE_LIST_QUERY: str = """
    DELETE FROM ftc_change_lists
    WHERE id = $1::uuid
"""


def get_list_change_lists_query(status: Optional[str] = None) -> Tuple[str, str]:
    """
    Build the page and count queries for listing jobs newest first.

    Args:
        status: Optional status filter.

    Returns:
        Tuple of (page query, count query). With a status filter both take
        the status as $1; the page query takes limit and offset after it.
    """
    if status is None:
        where_clause = ""
        limit_param, offset_param = "$1", "$2"
    else:
        where_clause = "WHERE status = $1"
        limit_param, offset_param = "$2", "$3"

    page_query = f"""
    SELECT *
    FROM ftc_change_lists
    {where_clause}
    ORDER BY created_at DESC
    LIMIT {limit_param} OFFSET {offset_param}
    """

    count_query = f"""
    SELECT count(*)
    FROM ftc_change_lists
    {where_clause}
    """

    return page_query, count_query


def get_update_change_list_query(columns: Iterable[str], guard_status: bool = False) -> str:
    """
    Build an UPDATE for the given job columns.

    Column values bind to $1..$n in the order given; the job ID binds to
    $n+1. updated_at is always refreshed. With guard_status the row is only
    updated while its status equals $n+2, so a status transition is a single
    compare-and-set and no row comes back when another writer got there first.

    Args:
        columns: Column names, each in UPDATABLE_COLUMNS.
        guard_status: Add a status condition bound after the job ID.

    Returns:
        str: UPDATE ... RETURNING * query.

    Raises:
        ValueError: If a column is not updatable or no columns are given.
    """
    columns = list(columns)
    if not columns:
        raise ValueError("No columns to update")

    unknown = [column for column in columns if column not in UPDATABLE_COLUMNS]
    if unknown:
        raise ValueError(f"Columns not updatable: {', '.join(unknown)}")

    assignments = []
    for index, column in enumerate(columns, start=1):
        cast = "::text[]" if column == 'error_details' else ""
        assignments.append(f"{column} = ${index}{cast}")

    id_param = len(columns) + 1
    where_clause = f"WHERE id = ${id_param}::uuid"
    if guard_status:
        where_clause += f" AND status = ${id_param + 1}"

    return f"""
    UPDATE ftc_change_lists
    SET {', '.join(assignments)}, updated_at = now()
    {where_clause}
    RETURNING *
    """


# =============================================================================
# Subscriptions and Audit Log
# =============================================================================

ACTIVE_SUBSCRIPTION_AREA_CODES_QUERY: str = """
    SELECT area_code
    FROM ftc_subscriptions
    WHERE subscription_status = 'active'
      AND area_code = ANY($1::text[])
"""

TOUCH_SUBSCRIPTION_QUERY: str = """
    UPDATE ftc_subscriptions
    SET last_update_at = $2, last_change_list_id = $3::uuid
    WHERE area_code = $1
"""

# Parameters: area_code, update_type, records_added, records_removed,
# total_records, status, started_at, completed_at, duration_seconds,
# source_file, ftc_release_date
INSERT_UPDATE_LOG_QUERY: str = """
    INSERT INTO dnc_update_log (
        area_code, update_type, records_added, records_removed, total_records,
        status, started_at, completed_at, duration_seconds, source_file,
        ftc_release_date
    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
"""


__all__ = [
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
