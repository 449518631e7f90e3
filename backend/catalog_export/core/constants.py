"""Shared constants and enums used across the application."""

from enum import StrEnum


class JobState(StrEnum):
    """Lifecycle state of one export job."""

    IDLE = "IDLE"
    INPUT_COLLECTED = "INPUT_COLLECTED"
    RESOLVING = "RESOLVING"
    LOGISTICS_READY = "LOGISTICS_READY"
    GENERATING = "GENERATING"
    SUSPENDED = "SUSPENDED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"


TERMINAL_STATES = frozenset(
    {JobState.COMPLETED, JobState.CANCELLED, JobState.FAILED_PRECONDITION}
)


class ExportKind(StrEnum):
    """What a job produces once its identifiers are resolved."""

    LOGISTICS_REPORT = "LOGISTICS_REPORT"
    DOCUMENT_BATCH = "DOCUMENT_BATCH"


class Decision(StrEnum):
    """Classifier verdict for one resolved record."""

    NO_CATEGORY = "NO_CATEGORY"
    DIRECT_RENDER = "DIRECT_RENDER"
    REQUIRES_REVIEW = "REQUIRES_REVIEW"


class FailureReason(StrEnum):
    """Stable reason codes surfaced for precondition failures."""

    INVALID_INPUT = "InvalidInput"
    NO_IDENTIFIER_COLUMN = "NoIdentifierColumn"
    EMPTY_IDENTIFIER_SET = "EmptyIdentifierSet"
    LOOKUP_FAILED = "LookupFailed"
    NO_MATCHING_RECORDS = "NoMatchingRecords"
    POLICY_FETCH_FAILED = "PolicyFetchFailed"


class InputFormat(StrEnum):
    """Uploaded table formats accepted by the input readers."""

    XLSX = "XLSX"
    XLS = "XLS"
    CSV = "CSV"
