"""
Error hierarchy for the DNC compliance backend.

Validation problems with individual phone numbers or file lines are never
raised; they are tagged or dropped by the services. The exceptions here cover
store failures, job state violations and fatal ingestion errors. API routers
translate them into HTTP status codes.
"""

from typing import Optional


class DncBackendError(Exception):
    """Base exception for all backend errors.

    Carries the underlying exception, when there is one, as ``cause``.
    """

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


# =============================================================================
# Store and Storage Errors
# =============================================================================

class RegistryLookupError(DncBackendError):
    """Raised when one of the batched registry reads fails.

    A lookup never returns partial data; scoring with a missing result set
    could report a DNC-listed number as clean.
    """


class RetryExhaustedError(DncBackendError):
    """Raised by RetryPolicy when every attempt failed."""

    def __init__(self, message: str, attempts: int, cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause)
        self.attempts = attempts


class StorageError(DncBackendError):
    """Raised when the blob store cannot list or download a file."""


# =============================================================================
# Change-List Job Errors
# =============================================================================

class ChangeListNotFoundError(DncBackendError):
    """Raised when a change-list job id does not exist."""


class ChangeListValidationError(DncBackendError):
    """Raised for malformed job input (bad change_type, empty area codes)."""


class ChangeListConflictError(DncBackendError):
    """Raised when a file with the same hash was already uploaded."""

    def __init__(self, message: str, duplicate_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.duplicate_id = duplicate_id


class ChangeListStateError(DncBackendError):
    """Raised when an operation is not allowed in the job's current status."""


class ChangeListFileNotFoundError(DncBackendError):
    """Raised when no file can be found for a change-list job."""


class ChangeListCancelledError(DncBackendError):
    """Raised when a job was marked failed externally while processing."""


class ChangeListProcessingError(DncBackendError):
    """Raised after a job has been marked failed because of a fatal error."""

    def __init__(self, message: str, change_list_id: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause)
        self.change_list_id = change_list_id


__all__ = [
    'DncBackendError',
    'RegistryLookupError',
    'RetryExhaustedError',
    'StorageError',
    'ChangeListNotFoundError',
    'ChangeListValidationError',
    'ChangeListConflictError',
    'ChangeListStateError',
    'ChangeListFileNotFoundError',
    'ChangeListCancelledError',
    'ChangeListProcessingError',
]
