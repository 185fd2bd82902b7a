"""In-memory implementations of the registry, change-list and file stores.

Used for local development and tests. Uses plain dict storage with linear
scans for queries; not suitable for production use.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from dnc_backend.core.exceptions import StorageError
from dnc_backend.models.enums import ChangeListStatus, ChangeType, SubscriptionStatus
from dnc_backend.models.schemas import (
    ChangeListCreate,
    ChangeListJob,
    DeletedTrackingEntry,
    DncUpdateLogEntry,
    LitigatorInfo,
    RegistryEntry,
)
from dnc_backend.repositories.base import ChangeListRepository, FileStore, RegistryRepository
from dnc_backend.sql.change_list_queries import UPDATABLE_COLUMNS


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryRegistryRepository(RegistryRepository):
    """In-memory registry with active entries, removed-number tracking and
    litigators keyed by phone number."""

    def __init__(self) -> None:
        self.registry: Dict[str, RegistryEntry] = {}
        self.deleted: Dict[str, DeletedTrackingEntry] = {}
        self.litigators: Dict[str, LitigatorInfo] = {}

    # Seeding helpers

    def add_registry_entry(self, entry: RegistryEntry) -> None:
        if entry.created_at is None:
            entry = entry.model_copy(update={'created_at': _utcnow()})
        self.registry[entry.phone_number] = entry

    def add_litigator(self, phone: str, case_count: int = 1, risk_level: Optional[str] = None) -> None:
        self.litigators[phone] = LitigatorInfo(case_count=case_count, risk_level=risk_level)

    # Batched reads

    async def find_active_by_phones(self, phones: Sequence[str]) -> Set[str]:
        return {
            phone for phone in phones
            if phone in self.registry and self.registry[phone].record_status == 'active'
        }

    async def find_deleted_tracking_by_phones(self, phones: Sequence[str]) -> Dict[str, int]:
        return {
            phone: self.deleted[phone].times_added_removed
            for phone in phones
            if phone in self.deleted
        }

    async def find_litigators_by_phones(self, phones: Sequence[str]) -> Dict[str, LitigatorInfo]:
        return {phone: self.litigators[phone] for phone in phones if phone in self.litigators}

    # Writes

    async def upsert_registry_entries(self, entries: Sequence[RegistryEntry]) -> int:
        for entry in entries:
            existing = self.registry.get(entry.phone_number)
            created_at = existing.created_at if existing is not None else _utcnow()
            updated = entry.model_copy(update={
                'created_at': created_at,
                'state': existing.state if existing is not None else entry.state,
            })
            self.registry[entry.phone_number] = updated
        return len(entries)

    async def find_registry_entry(self, phone: str) -> Optional[RegistryEntry]:
        return self.registry.get(phone)

    async def delete_by_phone(self, phone: str) -> bool:
        return self.registry.pop(phone, None) is not None

    async def find_deleted_tracking_by_phone(self, phone: str) -> Optional[DeletedTrackingEntry]:
        return self.deleted.get(phone)

    async def upsert_deleted_tracking(self, entry: DeletedTrackingEntry) -> None:
        existing = self.deleted.get(entry.phone_number)
        if existing is not None:
            entry = existing.model_copy(update={
                'times_added_removed': entry.times_added_removed,
                'deleted_from_dnc_date': entry.deleted_from_dnc_date,
                'delete_after': entry.delete_after,
            })
        self.deleted[entry.phone_number] = entry


class InMemoryChangeListRepository(ChangeListRepository):
    """In-memory change-list jobs, subscriptions and update log."""

    def __init__(self) -> None:
        self.jobs: Dict[str, ChangeListJob] = {}
        self.subscriptions: Dict[str, Dict[str, Any]] = {}
        self.update_log: List[DncUpdateLogEntry] = []

    def add_subscription(
        self,
        area_code: str,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    ) -> None:
        self.subscriptions[area_code] = {
            'area_code': area_code,
            'subscription_status': status.value,
            'last_update_at': None,
            'last_change_list_id': None,
        }

    async def get(self, change_list_id: str) -> Optional[ChangeListJob]:
        return self.jobs.get(change_list_id)

    async def get_status(self, change_list_id: str) -> Optional[ChangeListStatus]:
        job = self.jobs.get(change_list_id)
        return job.status if job is not None else None

    async def list(
        self,
        *,
        status: Optional[ChangeListStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[ChangeListJob], int]:
        matching = [job for job in self.jobs.values() if status is None or job.status == status]
        matching.sort(key=lambda job: job.created_at or _utcnow(), reverse=True)
        return matching[offset:offset + limit], len(matching)

    async def list_pending(self, limit: int = 100) -> List[ChangeListJob]:
        pending = [job for job in self.jobs.values() if job.status == ChangeListStatus.PENDING]
        pending.sort(key=lambda job: job.created_at or _utcnow())
        return pending[:limit]

    async def find_id_by_file_hash(self, file_hash: str) -> Optional[str]:
        for job in self.jobs.values():
            if job.file_hash == file_hash:
                return job.id
        return None

    async def create(self, data: ChangeListCreate) -> ChangeListJob:
        now = _utcnow()
        job = ChangeListJob(
            id=str(uuid.uuid4()),
            change_type=ChangeType(data.change_type),
            ftc_file_date=data.ftc_file_date,
            area_codes=list(data.area_codes or []),
            file_name=data.file_name,
            file_size_bytes=data.file_size_bytes,
            file_hash=data.file_hash,
            file_url=data.file_url,
            uploaded_by=data.uploaded_by,
            status=ChangeListStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self.jobs[job.id] = job
        return job

    async def update(
        self,
        change_list_id: str,
        fields: Dict[str, Any],
        expected_status: Optional[ChangeListStatus] = None,
    ) -> Optional[ChangeListJob]:
        unknown = [column for column in fields if column not in UPDATABLE_COLUMNS]
        if unknown:
            raise ValueError(f"Columns not updatable: {', '.join(unknown)}")

        job = self.jobs.get(change_list_id)
        if job is None:
            return None
        if expected_status is not None and job.status != expected_status:
            return None

        values = dict(fields)
        if values.get('error_details') is None and 'error_details' in values:
            values['error_details'] = []
        values['updated_at'] = _utcnow()

        # Round-trip through validation so enum and date fields are coerced
        updated = ChangeListJob(**{**job.model_dump(), **values})
        self.jobs[change_list_id] = updated
        return updated

    async def delete(self, change_list_id: str) -> bool:
        return self.jobs.pop(change_list_id, None) is not None

    async def find_active_subscription_area_codes(self, area_codes: Sequence[str]) -> Set[str]:
        return {
            code for code in area_codes
            if self.subscriptions.get(code, {}).get('subscription_status') == SubscriptionStatus.ACTIVE.value
        }

    async def touch_subscription(
        self,
        area_code: str,
        change_list_id: str,
        updated_at: datetime,
    ) -> None:
        subscription = self.subscriptions.get(area_code)
        if subscription is not None:
            subscription['last_update_at'] = updated_at
            subscription['last_change_list_id'] = change_list_id

    async def insert_update_log(self, entry: DncUpdateLogEntry) -> None:
        self.update_log.append(entry)


class InMemoryFileStore(FileStore):
    """In-memory blob store keyed by full object path."""

    def __init__(self, files: Optional[Dict[str, bytes]] = None) -> None:
        self.files: Dict[str, bytes] = dict(files or {})

    def put(self, path: str, content: bytes) -> None:
        self.files[path] = content

    async def list(self, path: str) -> List[str]:
        prefix = path.rstrip('/') + '/'
        return sorted(
            key[len(prefix):]
            for key in self.files
            if key.startswith(prefix) and '/' not in key[len(prefix):]
        )

    async def download(self, path: str) -> bytes:
        try:
            return self.files[path]
        except KeyError:
            raise StorageError(f"Object not found: {path}")


__all__ = [
    'InMemoryRegistryRepository',
    'InMemoryChangeListRepository',
    'InMemoryFileStore',
]
