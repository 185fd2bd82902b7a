"""
asyncpg-backed implementations of the registry and change-list stores.

Each repository receives the connection pool in its constructor and acquires
a connection per call:

    pool = await get_db_pool()
    registry = PostgresRegistryRepository(pool)
    active = await registry.find_active_by_phones(["8015551234"])

SQL text lives in dnc_backend.sql.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from asyncpg import Pool, Record

from dnc_backend.models.enums import ChangeListStatus
from dnc_backend.models.schemas import (
    ChangeListCreate,
    ChangeListJob,
    DeletedTrackingEntry,
    DncUpdateLogEntry,
    LitigatorInfo,
    RegistryEntry,
)
from dnc_backend.repositories.base import ChangeListRepository, RegistryRepository
from dnc_backend.sql.change_list_queries import (
    ACTIVE_SUBSCRIPTION_AREA_CODES_QUERY,
    CREATE_CHANGE_LIST_QUERY,
    DELETE_CHANGE_LIST_QUERY,
    FIND_CHANGE_LIST_BY_HASH_QUERY,
    GET_CHANGE_LIST_QUERY,
    GET_CHANGE_LIST_STATUS_QUERY,
    INSERT_UPDATE_LOG_QUERY,
    LIST_PENDING_CHANGE_LISTS_QUERY,
    TOUCH_SUBSCRIPTION_QUERY,
    get_list_change_lists_query,
    get_update_change_list_query,
)
from dnc_backend.sql.registry_queries import (
    ACTIVE_BY_PHONES_QUERY,
    DELETE_REGISTRY_ENTRY_QUERY,
    DELETED_TRACKING_BY_PHONES_QUERY,
    FIND_DELETED_TRACKING_QUERY,
    FIND_REGISTRY_ENTRY_QUERY,
    LITIGATORS_BY_PHONES_QUERY,
    UPSERT_DELETED_TRACKING_QUERY,
    UPSERT_REGISTRY_ENTRY_QUERY,
)


logger = logging.getLogger(__name__)


def _affected_rows(status: str) -> int:
    """Parse the row count from an asyncpg command status ('DELETE 1')."""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


# =============================================================================
# Registry Repository
# =============================================================================


class PostgresRegistryRepository(RegistryRepository):
    """Registry store backed by Postgres tables dnc_registry,
    dnc_deleted_numbers and litigators."""

    def __init__(self, pool: Pool) -> None:
        self._pool = pool

    async def find_active_by_phones(self, phones: Sequence[str]) -> Set[str]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(ACTIVE_BY_PHONES_QUERY, list(phones))
        return {row['phone_number'] for row in rows}

    async def find_deleted_tracking_by_phones(self, phones: Sequence[str]) -> Dict[str, int]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(DELETED_TRACKING_BY_PHONES_QUERY, list(phones))
        return {row['phone_number']: row['times_added_removed'] or 1 for row in rows}

    async def find_litigators_by_phones(self, phones: Sequence[str]) -> Dict[str, LitigatorInfo]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(LITIGATORS_BY_PHONES_QUERY, list(phones))
        return {
            row['phone_number']: LitigatorInfo(
                case_count=row['case_count'] or 0,
                risk_level=row['risk_level'],
            )
            for row in rows
        }

    async def upsert_registry_entries(self, entries: Sequence[RegistryEntry]) -> int:
        """
        Upsert a batch of registry entries in one transaction.

        Either every row is written or none is, so a failed batch can be
        retried as a whole.
        """
        records = [
            (
                entry.phone_number,
                entry.area_code,
                entry.source,
                entry.record_status,
                entry.is_active,
                entry.last_updated,
                entry.ftc_release_date,
            )
            for entry in entries
        ]

        if not records:
            return 0

        async with self._pool.acquire() as conn:
            async with conn.transaction():
                await conn.executemany(UPSERT_REGISTRY_ENTRY_QUERY, records)

        return len(records)

    async def find_registry_entry(self, phone: str) -> Optional[RegistryEntry]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(FIND_REGISTRY_ENTRY_QUERY, phone)
        if row is None:
            return None
        return RegistryEntry(**dict(row))

    async def delete_by_phone(self, phone: str) -> bool:
        async with self._pool.acquire() as conn:
            status = await conn.execute(DELETE_REGISTRY_ENTRY_QUERY, phone)
        return _affected_rows(status) > 0

    async def find_deleted_tracking_by_phone(self, phone: str) -> Optional[DeletedTrackingEntry]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(FIND_DELETED_TRACKING_QUERY, phone)
        if row is None:
            return None
        data = dict(row)
        data['times_added_removed'] = data.get('times_added_removed') or 1
        return DeletedTrackingEntry(**data)

    async def upsert_deleted_tracking(self, entry: DeletedTrackingEntry) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                UPSERT_DELETED_TRACKING_QUERY,
                entry.phone_number,
                entry.area_code,
                entry.state,
                entry.deleted_from_dnc_date,
                entry.original_add_date,
                entry.times_added_removed,
                entry.delete_after,
                entry.source,
            )


# =============================================================================
# Change-List Repository
# =============================================================================


def _record_to_job(row: Record) -> ChangeListJob:
    """Convert an ftc_change_lists row into a ChangeListJob."""
    data = dict(row)
    data['id'] = str(data['id'])
    if data.get('uploaded_by') is not None:
        data['uploaded_by'] = str(data['uploaded_by'])
    data['area_codes'] = list(data.get('area_codes') or [])
    data['error_details'] = list(data.get('error_details') or [])
    for counter in (
        'total_records', 'processed_records', 'failed_records', 'skipped_records',
        'progress_percent', 'current_batch', 'total_batches', 'retry_count',
    ):
        if data.get(counter) is None:
            data[counter] = 0
    return ChangeListJob(**data)


class PostgresChangeListRepository(ChangeListRepository):
    """Change-list store backed by ftc_change_lists, ftc_subscriptions and
    dnc_update_log."""

    def __init__(self, pool: Pool) -> None:
        self._pool = pool

    async def get(self, change_list_id: str) -> Optional[ChangeListJob]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(GET_CHANGE_LIST_QUERY, change_list_id)
        return _record_to_job(row) if row is not None else None

    async def get_status(self, change_list_id: str) -> Optional[ChangeListStatus]:
        async with self._pool.acquire() as conn:
            status = await conn.fetchval(GET_CHANGE_LIST_STATUS_QUERY, change_list_id)
        return ChangeListStatus(status) if status is not None else None

    async def list(
        self,
        *,
        status: Optional[ChangeListStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[ChangeListJob], int]:
        status_value = status.value if status is not None else None
        page_query, count_query = get_list_change_lists_query(status_value)
        filter_args: List[Any] = [status_value] if status_value is not None else []

        async with self._pool.acquire() as conn:
            rows = await conn.fetch(page_query, *filter_args, limit, offset)
            total = await conn.fetchval(count_query, *filter_args)

        return [_record_to_job(row) for row in rows], int(total or 0)

    async def list_pending(self, limit: int = 100) -> List[ChangeListJob]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(LIST_PENDING_CHANGE_LISTS_QUERY, limit)
        return [_record_to_job(row) for row in rows]

    async def find_id_by_file_hash(self, file_hash: str) -> Optional[str]:
        async with self._pool.acquire() as conn:
            existing = await conn.fetchval(FIND_CHANGE_LIST_BY_HASH_QUERY, file_hash)
        return str(existing) if existing is not None else None

    async def create(self, data: ChangeListCreate) -> ChangeListJob:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                CREATE_CHANGE_LIST_QUERY,
                data.change_type,
                data.ftc_file_date,
                list(data.area_codes or []),
                data.file_name,
                data.file_size_bytes,
                data.file_hash,
                data.file_url,
                data.uploaded_by,
            )
        return _record_to_job(row)

    async def update(
        self,
        change_list_id: str,
        fields: Dict[str, Any],
        expected_status: Optional[ChangeListStatus] = None,
    ) -> Optional[ChangeListJob]:
        columns = list(fields.keys())
        query = get_update_change_list_query(columns, guard_status=expected_status is not None)
        values = [
            fields[column].value if isinstance(fields[column], ChangeListStatus) else fields[column]
            for column in columns
        ]
        values.append(change_list_id)
        if expected_status is not None:
            values.append(expected_status.value)

        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, *values)
        return _record_to_job(row) if row is not None else None

    async def delete(self, change_list_id: str) -> bool:
        async with self._pool.acquire() as conn:
            status = await conn.execute(DELETE_CHANGE_LIST_QUERY, change_list_id)
        return _affected_rows(status) > 0

    async def find_active_subscription_area_codes(self, area_codes: Sequence[str]) -> Set[str]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(ACTIVE_SUBSCRIPTION_AREA_CODES_QUERY, list(area_codes))
        return {row['area_code'] for row in rows}

    async def touch_subscription(
        self,
        area_code: str,
        change_list_id: str,
        updated_at: datetime,
    ) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(TOUCH_SUBSCRIPTION_QUERY, area_code, updated_at, change_list_id)

    async def insert_update_log(self, entry: DncUpdateLogEntry) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                INSERT_UPDATE_LOG_QUERY,
                entry.area_code,
                entry.update_type.value,
                entry.records_added,
                entry.records_removed,
                entry.total_records,
                entry.status.value,
                entry.started_at,
                entry.completed_at,
                entry.duration_seconds,
                entry.source_file,
                entry.ftc_release_date,
            )
        logger.info(
            f"Logged {entry.update_type.value} update for area codes {entry.area_code}: "
            f"{entry.total_records} records"
        )


__all__ = [
    'PostgresRegistryRepository',
    'PostgresChangeListRepository',
]
