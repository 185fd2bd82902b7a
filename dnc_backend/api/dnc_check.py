"""
FastAPI router module for DNC risk checks.

Key Endpoints:
- POST /dnc-check - Score a batch of leads and return batch statistics
- POST /dnc-check/phone - Score a single phone number
- POST /dnc-check/export - Score a batch of leads and return it as CSV

Every lead batch costs three registry reads per chunk of
`lead_chunk_size` leads, whatever the batch size. Leads whose phone number
does not normalize to 10 digits are returned with the invalid_phone_number
flag instead of being rejected.

Dependencies:
- dnc_backend/core/dependencies.py: RegistryGatewayDep, SettingsDep
- dnc_backend/services/batch_check.py: process_leads_in_chunks
- dnc_backend/services/statistics.py: calculate_batch_stats
- dnc_backend/services/lead_export.py: processed_leads_to_csv
"""

import logging
import time
from typing import List

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from dnc_backend.core.dependencies import RegistryGatewayDep, SettingsDep
from dnc_backend.core.config import Settings
from dnc_backend.core.exceptions import RegistryLookupError
from dnc_backend.models.enums import DncStatus
from dnc_backend.models.schemas import (
    DncCheckRequest,
    DncCheckResponse,
    PhoneCheckRequest,
    PhoneCheckResponse,
    ProcessedLead,
)
from dnc_backend.services.batch_check import process_leads_in_chunks
from dnc_backend.services.lead_export import processed_leads_to_csv
from dnc_backend.services.phone import (
    format_phone_display,
    get_area_code,
    is_toll_free,
    is_valid_phone_key,
    normalize_phone_number,
)
from dnc_backend.services.registry_lookup import RegistryLookupGateway, RegistryLookupResult
from dnc_backend.services.risk_scoring import score_phone
from dnc_backend.services.statistics import calculate_batch_stats


# =============================================================================
# Module Configuration
# =============================================================================

logger = logging.getLogger(__name__)

EXPORT_FILE_NAME: str = "dnc-check-results.csv"


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter()


# =============================================================================
# Helper Functions
# =============================================================================


def _validate_batch_size(request: DncCheckRequest, settings: Settings) -> None:
    if not request.leads:
        raise HTTPException(status_code=400, detail="leads must be a non-empty array")

    if len(request.leads) > settings.max_risk_check_batch:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Too many leads: {len(request.leads)}. "
                f"Maximum per request is {settings.max_risk_check_batch}"
            ),
        )


async def _score_leads(
    request: DncCheckRequest,
    gateway: RegistryLookupGateway,
    settings: Settings,
) -> List[ProcessedLead]:
    try:
        return await process_leads_in_chunks(request.leads, gateway, settings.lead_chunk_size)
    except RegistryLookupError as e:
        logger.error(f"Registry lookup failed during risk check: {e}")
        raise HTTPException(
            status_code=503,
            detail="DNC registry is unavailable, please retry"
        )


# =============================================================================
# POST /dnc-check - Batch Risk Check
# =============================================================================


@router.post("", response_model=DncCheckResponse)
async def check_leads(
    request: DncCheckRequest,
    gateway: RegistryGatewayDep,
    settings: SettingsDep,
) -> DncCheckResponse:
    """
    Score a batch of leads against the DNC registry.

    Args:
        request: Leads with at least a phone_number each.
        gateway: Registry lookup gateway.
        settings: Application settings (batch limits).

    Returns:
        DncCheckResponse: Processed leads in input order, batch statistics
            and processing time.

    Raises:
        HTTPException 400: Empty batch or more than max_risk_check_batch leads.
        HTTPException 503: Registry lookup failed.
        HTTPException 500: Unexpected error.

    Example Request:
        POST /dnc-check
        {"leads": [{"phone_number": "(555) 123-4567", "first_name": "Pat"}]}
    """
    try:
        _validate_batch_size(request, settings)

        started = time.perf_counter()
        leads = await _score_leads(request, gateway, settings)
        stats = calculate_batch_stats(leads)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        logger.info(
            f"Risk check: {stats.total} leads, {stats.blocked} blocked, "
            f"{stats.caution} caution in {elapsed_ms}ms"
        )

        return DncCheckResponse(leads=leads, stats=stats, processing_time_ms=elapsed_ms)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error processing DNC check")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to process DNC check: {str(e)}"
        )


# =============================================================================
# POST /dnc-check/phone - Single Number Check
# =============================================================================


@router.post("/phone", response_model=PhoneCheckResponse)
async def check_phone(
    request: PhoneCheckRequest,
    gateway: RegistryGatewayDep,
) -> PhoneCheckResponse:
    """
    Score a single phone number.

    Invalid numbers are answered without touching the registry.

    Returns:
        PhoneCheckResponse: Normalized and formatted number, area code,
            toll-free flag, score, flags, status and is_safe_to_call.
    """
    try:
        phone = normalize_phone_number(request.phone_number)

        matches = RegistryLookupResult()
        if is_valid_phone_key(phone):
            try:
                matches = await gateway.lookup([phone])
            except RegistryLookupError as e:
                logger.error(f"Registry lookup failed for single number check: {e}")
                raise HTTPException(
                    status_code=503,
                    detail="DNC registry is unavailable, please retry"
                )

        assessment = score_phone(
            phone,
            is_active_dnc=phone in matches.active,
            deleted_cycle_count=matches.deleted_cycles.get(phone),
            litigator=matches.litigators.get(phone),
        )

        return PhoneCheckResponse(
            phone_number=phone,
            formatted=format_phone_display(phone),
            area_code=get_area_code(phone),
            is_toll_free=is_toll_free(phone),
            risk_score=assessment.score,
            risk_flags=assessment.flags,
            dnc_status=assessment.status,
            is_safe_to_call=assessment.status == DncStatus.CLEAN,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error processing single number check")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to check phone number: {str(e)}"
        )


# =============================================================================
# POST /dnc-check/export - Batch Risk Check as CSV
# =============================================================================


@router.post("/export")
async def export_leads(
    request: DncCheckRequest,
    gateway: RegistryGatewayDep,
    settings: SettingsDep,
) -> Response:
    """
    Score a batch of leads and return the result as a CSV attachment.

    Columns are the leads' own fields followed by phone_number, risk_score,
    risk_flags (semicolon separated) and dnc_status.
    """
    try:
        _validate_batch_size(request, settings)

        leads = await _score_leads(request, gateway, settings)
        content = processed_leads_to_csv(leads)

        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILE_NAME}"'},
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error exporting DNC check")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to export DNC check: {str(e)}"
        )


__all__ = [
    'router',
    'EXPORT_FILE_NAME',
]
