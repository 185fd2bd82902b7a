"""
FTC change-list worker job.

Picks up pending change-list jobs, oldest first, and processes them one after
another through the ChangeListJobController. A failing job is recorded as
failed on its own row and the worker moves on to the next one.

Meant to run on a schedule (cron, Cloud Scheduler) next to the API, which
only processes jobs when an admin triggers them explicitly.

Usage:
    # From the command line
    python -m dnc_backend.jobs.change_list_worker

    # From code, with an already wired controller
    summary = await run_pending_change_lists(controller)
    print(summary['summary']['completed_count'])

Environment Requirements:
- DATABASE_URL: Postgres connection string
- SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY: storage access for uploaded files
- RESEND_API_KEY / ADMIN_NOTIFICATION_EMAIL / SLACK_WEBHOOK_URL: optional
  completion notifications
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from dnc_backend.core.config import get_settings
from dnc_backend.core.database import close_db, get_db_pool
from dnc_backend.core.dependencies import build_change_list_controller, build_file_store
from dnc_backend.core.exceptions import ChangeListProcessingError, DncBackendError
from dnc_backend.models.enums import ChangeListStatus
from dnc_backend.models.schemas import ChangeListRunRequest
from dnc_backend.repositories.postgres import PostgresChangeListRepository, PostgresRegistryRepository
from dnc_backend.services.change_list_jobs import ChangeListJobController
from dnc_backend.services.notifications import ChangeListNotifier


logger = logging.getLogger(__name__)


# Jobs picked up per worker invocation
DEFAULT_PENDING_LIMIT: int = 20


async def build_default_controller() -> ChangeListJobController:
    """Wire a controller against the configured database and storage."""
    settings = get_settings()
    pool = await get_db_pool()
    return build_change_list_controller(
        settings,
        change_lists=PostgresChangeListRepository(pool),
        registry=PostgresRegistryRepository(pool),
        file_store=build_file_store(settings),
        notifier=ChangeListNotifier(settings),
    )


async def run_pending_change_lists(
    controller: Optional[ChangeListJobController] = None,
    limit: int = DEFAULT_PENDING_LIMIT,
) -> Dict[str, Any]:
    """
    Process every pending change list, oldest first.

    Args:
        controller: Controller to run jobs with; built from settings when None.
        limit: Maximum jobs to pick up in this invocation.

    Returns:
        Dict with the following keys:
        - success: bool if every job completed
        - results: List of per-job result dicts
        - summary: Dict with total, completed_count, failed_count

    Example:
        >>> summary = await run_pending_change_lists()
        >>> print(f"Completed {summary['summary']['completed_count']} change lists")
    """
    if controller is None:
        controller = await build_default_controller()

    pending = await controller.list_pending_change_lists(limit)
    logger.info(f"Found {len(pending)} pending change lists")

    results: List[Dict[str, Any]] = []
    completed_count = 0
    failed_count = 0

    for job in pending:
        request = ChangeListRunRequest(change_list_id=job.id, change_type=job.change_type)
        try:
            result = await controller.run(request)
        except ChangeListProcessingError as e:
            failed_count += 1
            results.append({'change_list_id': job.id, 'success': False, 'error': str(e)})
            continue
        except DncBackendError as e:
            # Picked up by another runner, or deleted since listing
            logger.warning(f"Skipping change list {job.id}: {e}")
            failed_count += 1
            results.append({'change_list_id': job.id, 'success': False, 'error': str(e)})
            continue

        if result.status == ChangeListStatus.COMPLETED:
            completed_count += 1
        else:
            failed_count += 1

        results.append({
            'change_list_id': job.id,
            'success': result.status == ChangeListStatus.COMPLETED,
            'status': result.status.value,
            'processed_records': result.processed_records,
            'skipped_records': result.skipped_records,
            'failed_records': result.failed_records,
        })

    logger.info(f"Change-list worker finished: {completed_count} completed, {failed_count} failed")

    return {
        'success': failed_count == 0,
        'results': results,
        'summary': {
            'total': len(pending),
            'completed_count': completed_count,
            'failed_count': failed_count,
        },
    }


async def main() -> Dict[str, Any]:
    try:
        return await run_pending_change_lists()
    finally:
        await close_db()


__all__ = [
    'DEFAULT_PENDING_LIMIT',
    'build_default_controller',
    'run_pending_change_lists',
    'main',
]


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(main())
