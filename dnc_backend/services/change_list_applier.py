"""
Change-List Applier

Applies one batch of parsed change-list records to the DNC registry.

Additions:
    All records of the batch are upserted into dnc_registry in one call,
    keyed on phone_number. A failing upsert is retried through the
    RetryPolicy; when retries run out the whole batch counts as failed and
    the job moves on to the next batch.

Deletions:
    Records are handled one at a time, in file order:
    1. Not in the active registry -> skipped
    2. Already tracked as removed -> times_added_removed + 1, removal date
       and delete_after refreshed
       Not yet tracked -> new tracking entry with times_added_removed = 1
    3. Registry entry deleted -> processed
    A failure on one record counts as failed for that record only.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from dnc_backend.core.exceptions import RetryExhaustedError
from dnc_backend.models.enums import ChangeType
from dnc_backend.models.schemas import (
    BatchOutcome,
    DeletedTrackingEntry,
    PhoneRecord,
    RegistryEntry,
)
from dnc_backend.repositories.base import RegistryRepository
from dnc_backend.services.retry import RetryPolicy


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

FTC_SOURCE: str = 'ftc'

ACTIVE_RECORD_STATUS: str = 'active'

DEFAULT_RETENTION_DAYS: int = 90


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChangeListApplier:
    """
    Applies change-list batches against a registry store.

    Args:
        repository: Registry store to write to.
        retry_policy: Retry policy for additions upserts.
        retention_days: Days a removed number stays in tracking.
        clock: Returns the current UTC time; replaced in tests.
    """

    def __init__(
        self,
        repository: RegistryRepository,
        retry_policy: Optional[RetryPolicy] = None,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._retry_policy = retry_policy or RetryPolicy()
        self._retention_days = retention_days
        self._clock = clock

    async def apply(
        self,
        change_type: ChangeType,
        records: Sequence[PhoneRecord],
        batch_number: int = 1,
        release_date: Optional[date] = None,
    ) -> BatchOutcome:
        """Apply a batch according to the change type."""
        if ChangeType(change_type) == ChangeType.ADDITIONS:
            return await self.apply_additions(records, batch_number, release_date)
        return await self.apply_deletions(records, batch_number)

    # =========================================================================
    # Additions
    # =========================================================================

    async def apply_additions(
        self,
        records: Sequence[PhoneRecord],
        batch_number: int = 1,
        release_date: Optional[date] = None,
    ) -> BatchOutcome:
        """
        Upsert a batch of added numbers into the active registry.

        Args:
            records: Parsed records of this batch.
            batch_number: 1-based batch index, used in error messages.
            release_date: FTC release date of the file; defaults to today.

        Returns:
            BatchOutcome: processed = batch size on success, failed = batch
                size when every attempt failed.
        """
        if not records:
            return BatchOutcome()

        now = self._clock()
        entries = [
            RegistryEntry(
                phone_number=record.phone_number,
                area_code=record.area_code,
                source=FTC_SOURCE,
                record_status=ACTIVE_RECORD_STATUS,
                is_active=True,
                last_updated=now,
                ftc_release_date=release_date or now.date(),
            )
            for record in records
        ]

        try:
            await self._retry_policy.run(
                lambda: self._repository.upsert_registry_entries(entries),
                description=f"Upsert of batch {batch_number} ({len(entries)} records)",
            )
        except RetryExhaustedError as e:
            return BatchOutcome(
                failed=len(entries),
                errors=[f"Batch {batch_number}: {e.cause or e}"],
            )

        return BatchOutcome(processed=len(entries))

    # =========================================================================
    # Deletions
    # =========================================================================

    async def apply_deletions(
        self,
        records: Sequence[PhoneRecord],
        batch_number: int = 1,
    ) -> BatchOutcome:
        """
        Remove a batch of numbers from the active registry, one by one.

        Args:
            records: Parsed records of this batch, in file order.
            batch_number: 1-based batch index, used in error messages.

        Returns:
            BatchOutcome: processed, skipped and failed record counts.
        """
        outcome = BatchOutcome()

        for record in records:
            try:
                removed = await self._remove_record(record)
            except Exception as e:
                logger.error(f"Error processing deletion for {record.phone_number}: {e}")
                outcome.failed += 1
                outcome.errors.append(f"Batch {batch_number}: {record.phone_number}: {e}")
                continue

            if removed:
                outcome.processed += 1
            else:
                outcome.skipped += 1

        return outcome

    async def _remove_record(self, record: PhoneRecord) -> bool:
        """Move one number from the registry into removed-number tracking.

        Returns False when the number is not in the registry.
        """
        existing = await self._repository.find_registry_entry(record.phone_number)
        if existing is None:
            return False

        now = self._clock()
        delete_after = now + timedelta(days=self._retention_days)

        tracking = await self._repository.find_deleted_tracking_by_phone(record.phone_number)
        if tracking is not None:
            tracking = tracking.model_copy(update={
                'times_added_removed': tracking.times_added_removed + 1,
                'deleted_from_dnc_date': now.date(),
                'delete_after': delete_after,
            })
        else:
            tracking = DeletedTrackingEntry(
                phone_number=record.phone_number,
                area_code=record.area_code,
                state=existing.state,
                deleted_from_dnc_date=now.date(),
                original_add_date=existing.created_at,
                times_added_removed=1,
                delete_after=delete_after,
                source=FTC_SOURCE,
            )

        await self._repository.upsert_deleted_tracking(tracking)
        await self._repository.delete_by_phone(record.phone_number)
        return True


__all__ = [
    'FTC_SOURCE',
    'ACTIVE_RECORD_STATUS',
    'DEFAULT_RETENTION_DAYS',
    'ChangeListApplier',
]
