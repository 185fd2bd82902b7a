"""
Abstract store interfaces for the DNC registry and change-list jobs.

Services receive implementations of these interfaces explicitly; nothing in
the service layer reaches for a global client. Two implementations ship with
the package: Postgres (asyncpg) for production and in-memory for local runs
and tests.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from dnc_backend.models.enums import ChangeListStatus
from dnc_backend.models.schemas import (
    ChangeListCreate,
    ChangeListJob,
    DeletedTrackingEntry,
    DncUpdateLogEntry,
    LitigatorInfo,
    RegistryEntry,
)


class RegistryRepository(ABC):
    """Abstract interface for the DNC registry tables.

    Covers the active registry (dnc_registry), removed-number tracking
    (dnc_deleted_numbers) and the read-only litigators table.
    """

    # =========================================================================
    # Batched reads
    # =========================================================================

    @abstractmethod
    async def find_active_by_phones(self, phones: Sequence[str]) -> Set[str]:
        """Return the subset of phones that are active on the registry."""
        pass

    @abstractmethod
    async def find_deleted_tracking_by_phones(self, phones: Sequence[str]) -> Dict[str, int]:
        """Map each tracked phone to its times_added_removed."""
        pass

    @abstractmethod
    async def find_litigators_by_phones(self, phones: Sequence[str]) -> Dict[str, LitigatorInfo]:
        """Map each litigator phone to its litigation profile."""
        pass

    # =========================================================================
    # Writes
    # =========================================================================

    @abstractmethod
    async def upsert_registry_entries(self, entries: Sequence[RegistryEntry]) -> int:
        """Insert or update entries keyed on phone_number; returns row count."""
        pass

    @abstractmethod
    async def find_registry_entry(self, phone: str) -> Optional[RegistryEntry]:
        """Get the registry entry for a phone, or None."""
        pass

    @abstractmethod
    async def delete_by_phone(self, phone: str) -> bool:
        """Delete a phone from the active registry."""
        pass

    @abstractmethod
    async def find_deleted_tracking_by_phone(self, phone: str) -> Optional[DeletedTrackingEntry]:
        """Get the removed-number tracking entry for a phone, or None."""
        pass

    @abstractmethod
    async def upsert_deleted_tracking(self, entry: DeletedTrackingEntry) -> None:
        """Insert or update a tracking entry keyed on phone_number."""
        pass


class ChangeListRepository(ABC):
    """Abstract interface for FTC change-list jobs and their bookkeeping.

    Besides the job records (ftc_change_lists) this covers area-code
    subscriptions (ftc_subscriptions) and the completion audit log
    (dnc_update_log).
    """

    @abstractmethod
    async def get(self, change_list_id: str) -> Optional[ChangeListJob]:
        """Get a job by ID."""
        pass

    @abstractmethod
    async def get_status(self, change_list_id: str) -> Optional[ChangeListStatus]:
        """Get only the current status of a job."""
        pass

    @abstractmethod
    async def list(
        self,
        *,
        status: Optional[ChangeListStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[ChangeListJob], int]:
        """List jobs newest first; returns the page and the total count."""
        pass

    @abstractmethod
    async def list_pending(self, limit: int = 100) -> List[ChangeListJob]:
        """List pending jobs oldest first."""
        pass

    @abstractmethod
    async def find_id_by_file_hash(self, file_hash: str) -> Optional[str]:
        """Return the ID of a job uploaded with this file hash, if any."""
        pass

    @abstractmethod
    async def create(self, data: ChangeListCreate) -> ChangeListJob:
        """Create a pending job."""
        pass

    @abstractmethod
    async def update(
        self,
        change_list_id: str,
        fields: Dict[str, Any],
        expected_status: Optional[ChangeListStatus] = None,
    ) -> Optional[ChangeListJob]:
        """Update columns of a job; returns the updated job or None.

        With expected_status the check and the write are atomic: nothing is
        written and None is returned unless the job is in that status.
        """
        pass

    @abstractmethod
    async def delete(self, change_list_id: str) -> bool:
        """Delete a job."""
        pass

    @abstractmethod
    async def find_active_subscription_area_codes(self, area_codes: Sequence[str]) -> Set[str]:
        """Return the subset of area_codes with an active subscription."""
        pass

    @abstractmethod
    async def touch_subscription(
        self,
        area_code: str,
        change_list_id: str,
        updated_at: datetime,
    ) -> None:
        """Record that an area code's data is fresh as of updated_at."""
        pass

    @abstractmethod
    async def insert_update_log(self, entry: DncUpdateLogEntry) -> None:
        """Write a completion audit row."""
        pass


class FileStore(ABC):
    """Abstract interface for the blob store holding uploaded change lists."""

    @abstractmethod
    async def list(self, path: str) -> List[str]:
        """List object names directly under path."""
        pass

    @abstractmethod
    async def download(self, path: str) -> bytes:
        """Download an object's contents."""
        pass


__all__ = [
    'RegistryRepository',
    'ChangeListRepository',
    'FileStore',
]
