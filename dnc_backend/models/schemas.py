"""
Pydantic request/response models for the DNC compliance backend.

This module provides type-safe data validation and serialization for:
- Risk-check inputs and outputs (leads, assessments, batch statistics)
- Registry records (active entries, removed-number tracking, litigators)
- FTC change-list jobs, their progress and batch outcomes
- API request/response envelopes

All models use Pydantic v2 syntax.
"""

from datetime import datetime, date as DateType
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ConfigDict

from dnc_backend.models.enums import (
    DncStatus,
    RiskFlag,
    ChangeType,
    ChangeListStatus,
)


# =============================================================================
# Risk Check Models
# =============================================================================


class LitigatorInfo(BaseModel):
    """
    Litigation profile for a phone number.

    risk_level is kept as a plain string so unexpected values stored in the
    litigators table do not break scoring.
    """
    case_count: int = Field(
        default=0,
        ge=0,
        description="Number of TCPA cases associated with the number"
    )
    risk_level: Optional[str] = Field(
        default=None,
        description="Recorded risk level (low, medium, high, critical)"
    )


class RiskAssessment(BaseModel):
    """
    Score, flags and status produced for a single phone number.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "score": 95,
                "flags": ["federal_dnc", "known_litigator", "serial_litigator"],
                "status": "blocked"
            }
        }
    )

    score: int = Field(..., ge=0, description="Composite risk score")
    flags: List[RiskFlag] = Field(default_factory=list, description="Risk flags in fixed order")
    status: DncStatus = Field(..., description="Call-safety classification")


class LeadInput(BaseModel):
    """
    Lead submitted for a risk check.

    Only phone_number is required; every other field is passed through to
    the processed lead unchanged.
    """
    model_config = ConfigDict(
        extra='allow',
        json_schema_extra={
            "example": {
                "phone_number": "(555) 123-4567",
                "first_name": "Pat",
                "last_name": "Doe"
            }
        }
    )

    phone_number: str = Field(..., description="Raw phone number in any format")


class ProcessedLead(BaseModel):
    """
    Lead enriched with its risk assessment.

    phone_number holds the normalized value. Pass-through fields from the
    input lead are kept as extra attributes.
    """
    model_config = ConfigDict(
        extra='allow',
        json_schema_extra={
            "example": {
                "phone_number": "5551234567",
                "first_name": "Pat",
                "risk_score": 60,
                "risk_flags": ["federal_dnc"],
                "dnc_status": "blocked"
            }
        }
    )

    phone_number: str = Field(..., description="Normalized phone number")
    risk_score: int = Field(..., ge=0, description="Composite risk score")
    risk_flags: List[RiskFlag] = Field(default_factory=list, description="Risk flags")
    dnc_status: DncStatus = Field(..., description="Call-safety classification")


class BatchStats(BaseModel):
    """
    Summary of a scored lead batch.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "total": 2,
                "clean": 1,
                "caution": 0,
                "blocked": 1,
                "average_risk_score": 30,
                "compliance_rate": 50,
                "flag_counts": {"federal_dnc": 1},
                "area_codes": ["555"]
            }
        }
    )

    total: int = Field(default=0, ge=0)
    clean: int = Field(default=0, ge=0)
    caution: int = Field(default=0, ge=0)
    blocked: int = Field(default=0, ge=0)
    average_risk_score: int = Field(default=0, ge=0, description="Mean score, rounded half up")
    compliance_rate: int = Field(default=100, ge=0, le=100, description="Percent of clean leads")
    flag_counts: Dict[str, int] = Field(default_factory=dict, description="Occurrences per flag")
    area_codes: List[str] = Field(default_factory=list, description="Distinct area codes, first seen order")


class DncCheckRequest(BaseModel):
    """Request body for a batch risk check."""
    leads: List[LeadInput] = Field(..., description="Leads to score")


class DncCheckResponse(BaseModel):
    """Response body for a batch risk check."""
    leads: List[ProcessedLead]
    stats: BatchStats
    processing_time_ms: int = Field(..., ge=0)


class PhoneCheckRequest(BaseModel):
    """Request body for a single-number risk check."""
    phone_number: str = Field(..., min_length=1)


class PhoneCheckResponse(BaseModel):
    """Single-number risk check result."""
    phone_number: str
    formatted: str
    area_code: Optional[str] = None
    is_toll_free: bool = False
    risk_score: int
    risk_flags: List[RiskFlag] = Field(default_factory=list)
    dnc_status: DncStatus
    is_safe_to_call: bool


# =============================================================================
# Registry Models
# =============================================================================


class PhoneRecord(BaseModel):
    """Phone number parsed from an FTC change list."""
    phone_number: str = Field(..., min_length=10, max_length=10)
    area_code: str = Field(..., min_length=3, max_length=3)


class RegistryEntry(BaseModel):
    """
    Row of the active DNC registry (dnc_registry).

    Used both for rows read back from the registry and for rows written by
    an additions batch.
    """
    phone_number: str
    area_code: Optional[str] = None
    state: Optional[str] = None
    source: Optional[str] = None
    record_status: Optional[str] = None
    is_active: bool = True
    last_updated: Optional[datetime] = None
    ftc_release_date: Optional[DateType] = None
    created_at: Optional[datetime] = None


class DeletedTrackingEntry(BaseModel):
    """
    Row of the removed-number tracking table (dnc_deleted_numbers).

    times_added_removed only ever grows; delete_after moves forward on every
    removal.
    """
    id: Optional[Any] = None
    phone_number: str
    area_code: Optional[str] = None
    state: Optional[str] = None
    deleted_from_dnc_date: DateType
    original_add_date: Optional[datetime] = None
    times_added_removed: int = Field(default=1, ge=1)
    delete_after: datetime
    source: str = "ftc"


# =============================================================================
# Change-List Job Models
# =============================================================================


class BatchOutcome(BaseModel):
    """
    Counters produced by applying one change-list batch.
    """
    processed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    errors: List[str] = Field(default_factory=list, description="Error messages for failed work")


class ChangeListProgress(BaseModel):
    """
    Progress snapshot persisted after every batch.
    """
    processed_records: int = Field(default=0, ge=0)
    failed_records: int = Field(default=0, ge=0)
    skipped_records: int = Field(default=0, ge=0)
    progress_percent: int = Field(default=0, ge=0, le=100)
    current_batch: int = Field(default=0, ge=0)


class ChangeListJob(BaseModel):
    """
    FTC change-list job record (ftc_change_lists).
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "5d0c2c1e-8f7b-4b5e-9a59-0d7a4f0f3b1a",
                "change_type": "additions",
                "ftc_file_date": "2026-10-17",
                "area_codes": ["801", "385"],
                "status": "processing",
                "total_records": 2500,
                "processed_records": 1000,
                "failed_records": 0,
                "skipped_records": 0,
                "progress_percent": 33,
                "current_batch": 1,
                "total_batches": 3,
                "retry_count": 0
            }
        }
    )

    id: str
    change_type: ChangeType
    ftc_file_date: Optional[DateType] = None
    area_codes: List[str] = Field(default_factory=list)
    file_name: Optional[str] = None
    file_size_bytes: Optional[int] = None
    file_hash: Optional[str] = None
    file_url: Optional[str] = None
    status: ChangeListStatus = ChangeListStatus.PENDING
    total_records: int = 0
    processed_records: int = 0
    failed_records: int = 0
    skipped_records: int = 0
    progress_percent: int = 0
    current_batch: int = 0
    total_batches: int = 0
    retry_count: int = 0
    last_retry_at: Optional[datetime] = None
    error_message: Optional[str] = None
    error_details: List[str] = Field(default_factory=list)
    processing_started_at: Optional[datetime] = None
    processing_completed_at: Optional[datetime] = None
    processing_duration_ms: Optional[int] = None
    uploaded_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ChangeListCreate(BaseModel):
    """
    Request body for registering an uploaded change list.

    Fields are loosely typed here so the service can answer with the same
    validation messages the admin UI expects.
    """
    change_type: Optional[str] = None
    ftc_file_date: Optional[DateType] = None
    area_codes: Optional[List[str]] = None
    file_name: Optional[str] = None
    file_size_bytes: Optional[int] = Field(default=None, ge=0)
    file_hash: Optional[str] = None
    file_url: Optional[str] = None
    uploaded_by: Optional[str] = None


class ChangeListUpdate(BaseModel):
    """
    Request body for PATCH on a change list.

    status may only be set to `failed`, which cancels a running job at the
    next batch boundary.
    """
    status: Optional[ChangeListStatus] = None
    error_message: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_size_bytes: Optional[int] = Field(default=None, ge=0)


class ChangeListRunRequest(BaseModel):
    """Input for a change-list processing run."""
    change_list_id: str
    change_type: ChangeType
    is_retry: bool = False


class ChangeListRunResult(BaseModel):
    """
    Summary of a finished change-list run.
    """
    change_list_id: str
    change_type: ChangeType
    status: ChangeListStatus
    total_records: int = 0
    total_batches: int = 0
    processed_records: int = 0
    failed_records: int = 0
    skipped_records: int = 0
    duration_ms: int = 0
    errors: List[str] = Field(default_factory=list)
    notifications: Dict[str, Any] = Field(default_factory=dict)


class DncUpdateLogEntry(BaseModel):
    """Audit row written to dnc_update_log when a change list completes."""
    area_code: str
    update_type: ChangeType
    records_added: int = 0
    records_removed: int = 0
    total_records: int = 0
    status: ChangeListStatus
    started_at: datetime
    completed_at: datetime
    duration_seconds: int = 0
    source_file: Optional[str] = None
    ftc_release_date: Optional[DateType] = None


class Pagination(BaseModel):
    """Pagination block for list responses."""
    total: int = 0
    limit: int = 50
    offset: int = 0
    has_more: bool = False


class ChangeListPage(BaseModel):
    """Paged list of change-list jobs."""
    data: List[ChangeListJob] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
