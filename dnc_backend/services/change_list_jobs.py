"""
FTC Change-List Job Controller

Coordinates the lifecycle of an FTC change-list job:

    pending -> processing -> completed | failed
    completed | failed -> pending   (explicit retry)

A run reads the job's file, parses it, applies it batch by batch in file
order, and persists counters and progress after every batch so pollers see
live progress. Between batches and once more after the last batch the job's
status is re-read; a job marked failed from outside stops at the next check.

Status transitions are guarded writes (update only while the job is still in
the status just read), so two runners racing for one pending job, or a
cancel racing a completion, leave exactly one winner. The loser gets
ChangeListStateError, or for a run that was cancelled, a failed result.

On completion every subscribed area code is stamped with the job and time,
an audit row is written to dnc_update_log, and a notification is sent.
Notification failures never affect the job.

Any other exception during a run is fatal: the job is marked failed with the
error recorded, no further batches run, and ChangeListProcessingError is
raised to the caller.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from dnc_backend.core.exceptions import (
    ChangeListCancelledError,
    ChangeListConflictError,
    ChangeListFileNotFoundError,
    ChangeListNotFoundError,
    ChangeListProcessingError,
    ChangeListStateError,
    ChangeListValidationError,
)
from dnc_backend.models.enums import ChangeListStatus, ChangeType
from dnc_backend.models.schemas import (
    BatchOutcome,
    ChangeListCreate,
    ChangeListJob,
    ChangeListPage,
    ChangeListProgress,
    ChangeListRunRequest,
    ChangeListRunResult,
    ChangeListUpdate,
    DncUpdateLogEntry,
    Pagination,
)
from dnc_backend.repositories.base import ChangeListRepository, FileStore
from dnc_backend.repositories.storage import download_file_url
from dnc_backend.services.change_list_applier import ChangeListApplier
from dnc_backend.services.change_list_parser import decode_change_list, parse_change_list
from dnc_backend.services.notifications import ChangeListNotifier
from dnc_backend.services.statistics import round_half_up


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_BATCH_SIZE: int = 1000

DEFAULT_STORAGE_PREFIX: str = 'ftc-change-lists'

DEFAULT_MAX_ERROR_DETAILS: int = 50

CANCELLED_MESSAGE: str = 'Cancelled by administrator'

RETRYABLE_STATUSES = frozenset({ChangeListStatus.COMPLETED, ChangeListStatus.FAILED})

_AREA_CODE_PATTERN = re.compile(r'^\d{3}$')


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _RunState:
    """Counters accumulated over the batches of one run."""
    total_records: int = 0
    total_batches: int = 0
    processed: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def add(self, outcome: BatchOutcome, max_errors: int) -> None:
        self.processed += outcome.processed
        self.failed += outcome.failed
        self.skipped += outcome.skipped
        room = max_errors - len(self.errors)
        if room > 0:
            self.errors.extend(outcome.errors[:room])


class ChangeListJobController:
    """
    Runs and manages FTC change-list jobs.

    Args:
        change_lists: Store for job records, subscriptions and the audit log.
        applier: Applies parsed batches to the registry.
        file_store: Blob store holding uploaded files.
        notifier: Completion notifier; None disables notifications.
        batch_size: Records per batch.
        storage_prefix: Folder under which uploads for a job are stored,
            as {storage_prefix}/{change_list_id}/.
        max_error_details: Cap on error strings kept on the job.
        clock: Returns the current UTC time; replaced in tests.
        url_fetcher: Downloads files referenced by a job's file_url.
    """

    def __init__(
        self,
        change_lists: ChangeListRepository,
        applier: ChangeListApplier,
        file_store: Optional[FileStore] = None,
        notifier: Optional[ChangeListNotifier] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        storage_prefix: str = DEFAULT_STORAGE_PREFIX,
        max_error_details: int = DEFAULT_MAX_ERROR_DETAILS,
        clock: Callable[[], datetime] = _utcnow,
        url_fetcher: Callable[[str], Awaitable[bytes]] = download_file_url,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        self._change_lists = change_lists
        self._applier = applier
        self._file_store = file_store
        self._notifier = notifier
        self._batch_size = batch_size
        self._storage_prefix = storage_prefix.strip('/')
        self._max_error_details = max_error_details
        self._clock = clock
        self._url_fetcher = url_fetcher

    # =========================================================================
    # Job Management
    # =========================================================================

    async def create_change_list(self, data: ChangeListCreate) -> ChangeListJob:
        """
        Register an uploaded change list as a pending job.

        Raises:
            ChangeListValidationError: On a bad change_type, a missing file
                date, no area codes, or area codes without an active
                subscription.
            ChangeListConflictError: If the file hash was already uploaded.
        """
        if data.change_type not in (ChangeType.ADDITIONS.value, ChangeType.DELETIONS.value):
            raise ChangeListValidationError('Invalid change_type. Must be "additions" or "deletions"')

        if data.ftc_file_date is None:
            raise ChangeListValidationError('ftc_file_date is required')

        area_codes = [code.strip() for code in (data.area_codes or []) if code and code.strip()]
        if not area_codes:
            raise ChangeListValidationError('area_codes must be a non-empty array')

        malformed = [code for code in area_codes if not _AREA_CODE_PATTERN.match(code)]
        if malformed:
            raise ChangeListValidationError(f"Malformed area codes: {', '.join(malformed)}")

        if data.file_hash:
            duplicate_id = await self._change_lists.find_id_by_file_hash(data.file_hash)
            if duplicate_id is not None:
                raise ChangeListConflictError('This file has already been uploaded', duplicate_id=duplicate_id)

        active = await self._change_lists.find_active_subscription_area_codes(area_codes)
        invalid = [code for code in area_codes if code not in active]
        if invalid:
            raise ChangeListValidationError(f"Invalid or inactive area codes: {', '.join(invalid)}")

        job = await self._change_lists.create(data.model_copy(update={'area_codes': area_codes}))
        logger.info(f"Created {job.change_type.value} change list {job.id} for area codes {', '.join(area_codes)}")
        return job

    async def get_change_list(self, change_list_id: str) -> ChangeListJob:
        """Get a job or raise ChangeListNotFoundError."""
        job = await self._change_lists.get(change_list_id)
        if job is None:
            raise ChangeListNotFoundError(f"Change list {change_list_id} not found")
        return job

    async def list_change_lists(
        self,
        status: Optional[ChangeListStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> ChangeListPage:
        """List jobs newest first with pagination metadata."""
        jobs, total = await self._change_lists.list(status=status, limit=limit, offset=offset)
        return ChangeListPage(
            data=jobs,
            pagination=Pagination(
                total=total,
                limit=limit,
                offset=offset,
                has_more=total > offset + limit,
            ),
        )

    async def list_pending_change_lists(self, limit: int = 100) -> List[ChangeListJob]:
        """Pending jobs, oldest first."""
        return await self._change_lists.list_pending(limit)

    async def update_change_list(self, change_list_id: str, update: ChangeListUpdate) -> ChangeListJob:
        """
        Update file metadata or mark a job failed.

        Setting status to failed cancels a pending or processing job; a
        running job stops at its next batch boundary.

        Raises:
            ChangeListNotFoundError: If the job does not exist.
            ChangeListStateError: For any other status change, or if the job
                finished before the cancel was written.
        """
        job = await self.get_change_list(change_list_id)
        fields: Dict[str, Any] = update.model_dump(exclude_unset=True, exclude={'status', 'error_message'})

        if update.status is not None:
            if update.status != ChangeListStatus.FAILED:
                raise ChangeListStateError(
                    "Status can only be set to failed; use retry to reprocess a change list"
                )
            if job.status not in (ChangeListStatus.PENDING, ChangeListStatus.PROCESSING):
                raise ChangeListStateError(f"Cannot cancel a {job.status.value} change list")
            fields['status'] = ChangeListStatus.FAILED
            fields['error_message'] = update.error_message or CANCELLED_MESSAGE
        elif update.error_message is not None:
            fields['error_message'] = update.error_message

        if not fields:
            return job

        expected = job.status if 'status' in fields else None
        updated = await self._change_lists.update(change_list_id, fields, expected_status=expected)
        if updated is None:
            await self._raise_lost_transition(change_list_id, 'cancel')
        return updated

    async def delete_change_list(self, change_list_id: str) -> None:
        """
        Delete a job that is not processing.

        Raises:
            ChangeListNotFoundError: If the job does not exist.
            ChangeListStateError: If the job is processing.
        """
        job = await self.get_change_list(change_list_id)
        if job.status == ChangeListStatus.PROCESSING:
            raise ChangeListStateError('Cannot delete a change list that is currently processing')
        await self._change_lists.delete(change_list_id)
        logger.info(f"Deleted change list {change_list_id}")

    async def reset_for_retry(self, change_list_id: str) -> ChangeListJob:
        """
        Reset a completed or failed job to pending for reprocessing.

        Counters, progress, errors and processing timestamps are cleared;
        retry_count is incremented and last_retry_at recorded.

        Raises:
            ChangeListNotFoundError: If the job does not exist.
            ChangeListStateError: If the job is pending or processing.
        """
        job = await self.get_change_list(change_list_id)
        if job.status not in RETRYABLE_STATUSES:
            raise ChangeListStateError('Can only retry failed or completed change lists')

        updated = await self._change_lists.update(change_list_id, {
            'status': ChangeListStatus.PENDING,
            'processed_records': 0,
            'failed_records': 0,
            'skipped_records': 0,
            'progress_percent': 0,
            'current_batch': 0,
            'error_message': None,
            'error_details': None,
            'retry_count': job.retry_count + 1,
            'last_retry_at': self._clock(),
            'processing_started_at': None,
            'processing_completed_at': None,
            'processing_duration_ms': None,
        }, expected_status=job.status)
        if updated is None:
            await self._raise_lost_transition(change_list_id, 'retry')

        logger.info(f"Reset change list {change_list_id} for retry #{updated.retry_count}")
        return updated

    async def retry(self, change_list_id: str) -> ChangeListRunResult:
        """Reset a finished job and run it again."""
        job = await self.reset_for_retry(change_list_id)
        return await self.run(ChangeListRunRequest(
            change_list_id=job.id,
            change_type=job.change_type,
            is_retry=True,
        ))

    # =========================================================================
    # Processing
    # =========================================================================

    async def run(self, request: ChangeListRunRequest) -> ChangeListRunResult:
        """
        Process a change-list job from its file to completion.

        Args:
            request: Job id, expected change type and retry flag. A retry of
                a completed or failed job resets it first.

        Returns:
            ChangeListRunResult: Final counters; status is failed when the
                job was cancelled mid-run.

        Raises:
            ChangeListNotFoundError: If the job does not exist.
            ChangeListValidationError: If change_type does not match the job.
            ChangeListStateError: If the job is not pending, or another runner
                claimed it first.
            ChangeListProcessingError: If the run failed; the job has been
                marked failed.
        """
        job = await self.get_change_list(request.change_list_id)

        if ChangeType(request.change_type) != job.change_type:
            raise ChangeListValidationError(
                f"change_type {ChangeType(request.change_type).value} does not match "
                f"change list type {job.change_type.value}"
            )

        if request.is_retry and job.status in RETRYABLE_STATUSES:
            job = await self.reset_for_retry(job.id)

        if job.status != ChangeListStatus.PENDING:
            raise ChangeListStateError(
                f"Change list {job.id} is {job.status.value}; only pending change lists can be processed"
            )

        started_at = self._clock()
        claimed = await self._change_lists.update(job.id, {
            'status': ChangeListStatus.PROCESSING,
            'processing_started_at': started_at,
            'error_message': None,
        }, expected_status=ChangeListStatus.PENDING)
        if claimed is None:
            await self._raise_lost_transition(job.id, 'process')
        logger.info(
            f"Processing {job.change_type.value} change list {job.id}"
            f"{' (retry)' if request.is_retry else ''}"
        )

        state = _RunState()

        try:
            completed_job = await self._process(job, started_at, state)
        except ChangeListCancelledError:
            return await self._finish_cancelled(job, started_at, state)
        except Exception as e:
            logger.exception(f"Change list {job.id} failed: {e}")
            await self._mark_failed(job, started_at, state, e)
            raise ChangeListProcessingError(
                f"Change list {job.id} failed: {e}",
                change_list_id=job.id,
                cause=e,
            ) from e

        result = self._build_result(completed_job, state, started_at, ChangeListStatus.COMPLETED)

        if self._notifier is not None:
            try:
                result.notifications = await self._notifier.notify_completed(completed_job, result)
            except Exception as e:
                logger.warning(f"Completion notification for {job.id} failed: {e}")
                result.notifications = {'error': str(e)}

        logger.info(
            f"Change list {job.id} completed: {state.processed} processed, "
            f"{state.skipped} skipped, {state.failed} failed in {result.duration_ms}ms"
        )
        return result

    async def _process(self, job: ChangeListJob, started_at: datetime, state: _RunState) -> ChangeListJob:
        text = await self._read_file(job)
        records = parse_change_list(text, job.area_codes)

        state.total_records = len(records)
        state.total_batches = math.ceil(len(records) / self._batch_size)

        await self._change_lists.update(job.id, {
            'total_records': state.total_records,
            'total_batches': state.total_batches,
        })
        logger.info(f"Change list {job.id}: {state.total_records} records in {state.total_batches} batches")

        for index in range(state.total_batches):
            await self._check_cancelled(job.id)

            batch = records[index * self._batch_size:(index + 1) * self._batch_size]
            outcome = await self._applier.apply(
                job.change_type,
                batch,
                batch_number=index + 1,
                release_date=job.ftc_file_date,
            )
            state.add(outcome, self._max_error_details)

            progress = ChangeListProgress(
                processed_records=state.processed,
                failed_records=state.failed,
                skipped_records=state.skipped,
                progress_percent=round_half_up((index + 1) / state.total_batches * 100),
                current_batch=index + 1,
            )
            await self._change_lists.update(job.id, progress.model_dump())

            logger.info(
                f"Batch {index + 1}/{state.total_batches} complete. "
                f"Progress: {progress.progress_percent}%"
            )

        # A cancel may have landed during the last batch
        await self._check_cancelled(job.id)

        completed_at = self._clock()
        duration_ms = self._duration_ms(started_at, completed_at)

        for area_code in job.area_codes:
            await self._change_lists.touch_subscription(area_code, job.id, completed_at)

        await self._change_lists.insert_update_log(DncUpdateLogEntry(
            area_code=','.join(job.area_codes),
            update_type=job.change_type,
            records_added=state.processed if job.change_type == ChangeType.ADDITIONS else 0,
            records_removed=state.processed if job.change_type == ChangeType.DELETIONS else 0,
            total_records=state.total_records,
            status=ChangeListStatus.COMPLETED,
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=round_half_up(duration_ms / 1000),
            source_file=job.file_name,
            ftc_release_date=job.ftc_file_date,
        ))

        completed_job = await self._change_lists.update(job.id, {
            'status': ChangeListStatus.COMPLETED,
            'progress_percent': 100,
            'processed_records': state.processed,
            'failed_records': state.failed,
            'skipped_records': state.skipped,
            'error_details': state.errors or None,
            'processing_completed_at': completed_at,
            'processing_duration_ms': duration_ms,
        }, expected_status=ChangeListStatus.PROCESSING)
        if completed_job is None:
            raise ChangeListCancelledError(f"Change list {job.id} was cancelled before completion")
        return completed_job

    async def _read_file(self, job: ChangeListJob) -> str:
        """Fetch the job's file from its URL or from the blob store."""
        if job.file_url:
            content = await self._url_fetcher(job.file_url)
            return decode_change_list(content)

        if self._file_store is None:
            raise ChangeListFileNotFoundError(f"No file URL on change list {job.id} and no file store configured")

        folder = f"{self._storage_prefix}/{job.id}"
        names = await self._file_store.list(folder)
        if not names:
            raise ChangeListFileNotFoundError(f"No file uploaded for change list {job.id} under {folder}")

        content = await self._file_store.download(f"{folder}/{names[0]}")
        return decode_change_list(content)

    async def _check_cancelled(self, change_list_id: str) -> None:
        status = await self._change_lists.get_status(change_list_id)
        if status is None or status == ChangeListStatus.FAILED:
            raise ChangeListCancelledError(f"Change list {change_list_id} was cancelled")

    async def _raise_lost_transition(self, change_list_id: str, action: str) -> None:
        """Raise for a guarded status write that matched no row.

        Another writer changed the status between our read and our write,
        or the job was deleted.
        """
        status = await self._change_lists.get_status(change_list_id)
        if status is None:
            raise ChangeListNotFoundError(f"Change list {change_list_id} not found")
        raise ChangeListStateError(
            f"Cannot {action} change list {change_list_id}: status changed to {status.value}"
        )

    async def _finish_cancelled(
        self,
        job: ChangeListJob,
        started_at: datetime,
        state: _RunState,
    ) -> ChangeListRunResult:
        """Record timestamps and counters for a job cancelled mid-run.

        The status and error message set by whoever cancelled it are kept.
        """
        completed_at = self._clock()
        logger.warning(f"Change list {job.id} cancelled after {state.processed} processed records")

        try:
            await self._change_lists.update(job.id, {
                'processed_records': state.processed,
                'failed_records': state.failed,
                'skipped_records': state.skipped,
                'processing_completed_at': completed_at,
                'processing_duration_ms': self._duration_ms(started_at, completed_at),
            })
        except Exception as e:
            logger.error(f"Could not record cancellation of change list {job.id}: {e}")

        return self._build_result(job, state, started_at, ChangeListStatus.FAILED, completed_at)

    async def _mark_failed(
        self,
        job: ChangeListJob,
        started_at: datetime,
        state: _RunState,
        error: Exception,
    ) -> None:
        completed_at = self._clock()
        details = [f"{type(error).__name__}: {error}"] + state.errors
        try:
            await self._change_lists.update(job.id, {
                'status': ChangeListStatus.FAILED,
                'error_message': str(error) or 'Processing failed',
                'error_details': details[:self._max_error_details],
                'processed_records': state.processed,
                'failed_records': state.failed,
                'skipped_records': state.skipped,
                'processing_completed_at': completed_at,
                'processing_duration_ms': self._duration_ms(started_at, completed_at),
            })
        except Exception as update_error:
            logger.error(f"Could not mark change list {job.id} as failed: {update_error}")

    def _build_result(
        self,
        job: ChangeListJob,
        state: _RunState,
        started_at: datetime,
        status: ChangeListStatus,
        completed_at: Optional[datetime] = None,
    ) -> ChangeListRunResult:
        if job.processing_duration_ms is not None and status == ChangeListStatus.COMPLETED:
            duration_ms = job.processing_duration_ms
        else:
            duration_ms = self._duration_ms(started_at, completed_at or self._clock())

        return ChangeListRunResult(
            change_list_id=job.id,
            change_type=job.change_type,
            status=status,
            total_records=state.total_records,
            total_batches=state.total_batches,
            processed_records=state.processed,
            failed_records=state.failed,
            skipped_records=state.skipped,
            duration_ms=duration_ms,
            errors=list(state.errors),
        )

    @staticmethod
    def _duration_ms(started_at: datetime, completed_at: datetime) -> int:
        return max(0, int((completed_at - started_at).total_seconds() * 1000))


__all__ = [
    'DEFAULT_BATCH_SIZE',
    'DEFAULT_STORAGE_PREFIX',
    'DEFAULT_MAX_ERROR_DETAILS',
    'CANCELLED_MESSAGE',
    'RETRYABLE_STATUSES',
    'ChangeListJobController',
]
