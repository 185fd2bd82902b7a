"""
FastAPI router module for FTC change-list jobs.

Admins upload FTC change-list files (additions or deletions for a set of
subscribed area codes) to storage and register them here. Registered jobs
are processed in the background, or picked up by the change-list worker.

Key Endpoints:
- GET /ftc-change-lists - List jobs with status filter and pagination
- POST /ftc-change-lists - Register an uploaded file as a pending job
- GET /ftc-change-lists/{id} - Job detail with live progress
- PATCH /ftc-change-lists/{id} - Update file metadata or cancel a job
- DELETE /ftc-change-lists/{id} - Delete a job that is not processing
- POST /ftc-change-lists/{id}/process - Start processing a pending job
- POST /ftc-change-lists/{id}/retry - Reset a finished job and reprocess it

Status codes:
- 400: validation failures and illegal status transitions
- 404: unknown job id
- 409: duplicate file hash, or a job that is already processing
- 500: unexpected errors (logged with traceback)

Dependencies:
- dnc_backend/core/dependencies.py: ChangeListControllerDep
- dnc_backend/services/change_list_jobs.py: ChangeListJobController
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query

from dnc_backend.core.dependencies import ChangeListControllerDep
from dnc_backend.core.exceptions import (
    ChangeListConflictError,
    ChangeListNotFoundError,
    ChangeListProcessingError,
    ChangeListStateError,
    ChangeListValidationError,
)
from dnc_backend.models.enums import ChangeListStatus
from dnc_backend.models.schemas import (
    ChangeListCreate,
    ChangeListJob,
    ChangeListPage,
    ChangeListRunRequest,
    ChangeListUpdate,
)
from dnc_backend.services.change_list_jobs import ChangeListJobController


# =============================================================================
# Module Configuration
# =============================================================================

logger = logging.getLogger(__name__)

# Default limit for listing change lists
DEFAULT_LIST_LIMIT: int = 50

# Maximum allowed limit for listing change lists
MAX_LIST_LIMIT: int = 100


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter()


# =============================================================================
# Helper Functions
# =============================================================================


async def _run_change_list(controller: ChangeListJobController, request: ChangeListRunRequest) -> None:
    """Background task body; failures are already recorded on the job."""
    try:
        result = await controller.run(request)
        logger.info(
            f"Background run of change list {request.change_list_id} finished with status "
            f"{result.status.value}"
        )
    except ChangeListProcessingError as e:
        logger.error(f"Background run of change list {request.change_list_id} failed: {e}")
    except ChangeListStateError as e:
        # Claimed by a concurrent request or the worker
        logger.warning(f"Background run of change list {request.change_list_id} skipped: {e}")
    except Exception:
        logger.exception(f"Background run of change list {request.change_list_id} could not start")


def _accepted(job: ChangeListJob, message: str) -> Dict[str, Any]:
    return {
        "success": True,
        "message": message,
        "change_list_id": job.id,
        "change_type": job.change_type.value,
    }


# =============================================================================
# GET /ftc-change-lists - List Jobs
# =============================================================================


@router.get("", response_model=ChangeListPage)
async def list_change_lists(
    controller: ChangeListControllerDep,
    status: Optional[ChangeListStatus] = Query(None, description="Filter by job status"),
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT, description="Page size"),
    offset: int = Query(0, ge=0, description="Rows to skip"),
) -> ChangeListPage:
    """
    List change-list jobs, newest first.

    Returns:
        ChangeListPage: {data: [...], pagination: {total, limit, offset, has_more}}
    """
    try:
        return await controller.list_change_lists(status=status, limit=limit, offset=offset)
    except Exception as e:
        logger.exception("Error listing change lists")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list change lists: {str(e)}"
        )


# =============================================================================
# POST /ftc-change-lists - Register Upload
# =============================================================================


@router.post("", response_model=ChangeListJob, status_code=201)
async def create_change_list(
    data: ChangeListCreate,
    controller: ChangeListControllerDep,
) -> ChangeListJob:
    """
    Register an uploaded change-list file as a pending job.

    Raises:
        HTTPException 400: Bad change_type, missing ftc_file_date, empty or
            inactive area codes.
        HTTPException 409: A file with the same hash was already uploaded;
            detail carries the existing job id.
    """
    try:
        return await controller.create_change_list(data)

    except ChangeListValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ChangeListConflictError as e:
        raise HTTPException(
            status_code=409,
            detail={"error": str(e), "existing_id": e.duplicate_id},
        )
    except Exception as e:
        logger.exception("Error creating change list")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to create change list: {str(e)}"
        )


# =============================================================================
# GET /ftc-change-lists/{id} - Job Detail
# =============================================================================


@router.get("/{change_list_id}", response_model=ChangeListJob)
async def get_change_list(
    change_list_id: str,
    controller: ChangeListControllerDep,
) -> ChangeListJob:
    """Return a job with its current counters and progress."""
    try:
        return await controller.get_change_list(change_list_id)

    except ChangeListNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception(f"Error retrieving change list {change_list_id}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to retrieve change list: {str(e)}"
        )


# =============================================================================
# PATCH /ftc-change-lists/{id} - Update / Cancel
# =============================================================================


@router.patch("/{change_list_id}", response_model=ChangeListJob)
async def update_change_list(
    change_list_id: str,
    update: ChangeListUpdate,
    controller: ChangeListControllerDep,
) -> ChangeListJob:
    """
    Update file metadata, or cancel a job by setting status to failed.

    A processing job stops at its next batch boundary after cancellation,
    and is never marked completed once cancelled.

    Raises:
        HTTPException 400: Any status other than failed, or cancelling a
            finished job.
        HTTPException 404: Unknown job.
    """
    try:
        return await controller.update_change_list(change_list_id, update)

    except ChangeListNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ChangeListStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error updating change list {change_list_id}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to update change list: {str(e)}"
        )


# =============================================================================
# DELETE /ftc-change-lists/{id}
# =============================================================================


@router.delete("/{change_list_id}")
async def delete_change_list(
    change_list_id: str,
    controller: ChangeListControllerDep,
) -> Dict[str, Any]:
    """
    Delete a job.

    Raises:
        HTTPException 400: The job is processing.
        HTTPException 404: Unknown job.
    """
    try:
        await controller.delete_change_list(change_list_id)
        return {"success": True}

    except ChangeListNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ChangeListStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error deleting change list {change_list_id}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to delete change list: {str(e)}"
        )


# =============================================================================
# POST /ftc-change-lists/{id}/process - Start Processing
# =============================================================================


@router.post("/{change_list_id}/process", status_code=202)
async def process_change_list(
    change_list_id: str,
    background_tasks: BackgroundTasks,
    controller: ChangeListControllerDep,
) -> Dict[str, Any]:
    """
    Schedule processing of a pending job.

    The response returns immediately; progress is visible through
    GET /ftc-change-lists/{id}.

    Raises:
        HTTPException 400: The job is completed or failed (use retry).
        HTTPException 404: Unknown job.
        HTTPException 409: The job is already processing.
    """
    try:
        job = await controller.get_change_list(change_list_id)

        if job.status == ChangeListStatus.PROCESSING:
            raise HTTPException(
                status_code=409,
                detail=f"Change list {change_list_id} is already processing"
            )
        if job.status != ChangeListStatus.PENDING:
            raise HTTPException(
                status_code=400,
                detail=f"Change list {change_list_id} is {job.status.value}; use retry to reprocess it"
            )

        background_tasks.add_task(
            _run_change_list,
            controller,
            ChangeListRunRequest(change_list_id=job.id, change_type=job.change_type),
        )
        logger.info(f"Scheduled processing of change list {job.id}")

        return _accepted(job, "Processing started")

    except HTTPException:
        raise
    except ChangeListNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception(f"Error scheduling change list {change_list_id}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to start processing: {str(e)}"
        )


# =============================================================================
# POST /ftc-change-lists/{id}/retry - Reset and Reprocess
# =============================================================================


@router.post("/{change_list_id}/retry", status_code=202)
async def retry_change_list(
    change_list_id: str,
    background_tasks: BackgroundTasks,
    controller: ChangeListControllerDep,
) -> Dict[str, Any]:
    """
    Reset a failed or completed job to pending and reprocess it.

    Raises:
        HTTPException 400: The job is pending or processing.
        HTTPException 404: Unknown job.
    """
    try:
        job = await controller.reset_for_retry(change_list_id)

        background_tasks.add_task(
            _run_change_list,
            controller,
            ChangeListRunRequest(change_list_id=job.id, change_type=job.change_type, is_retry=True),
        )
        logger.info(f"Scheduled retry #{job.retry_count} of change list {job.id}")

        result = _accepted(job, "Retry started")
        result["retry_count"] = job.retry_count
        return result

    except ChangeListNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ChangeListStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error retrying change list {change_list_id}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to retry change list: {str(e)}"
        )


__all__ = [
    'router',
    'DEFAULT_LIST_LIMIT',
    'MAX_LIST_LIMIT',
]
