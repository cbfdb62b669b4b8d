from .enums import (
    ConfidenceLevel,
    FailureReason,
    MaterialType,
    ParseMethod,
    ScanState,
)
from .classification import (
    LedgerDiscrepancy,
    MaterialClassification,
    RecordedScan,
    RecordFailed,
    ScanRecord,
)
from .response import (
    EducationalContent,
    LocationSummary,
    RicCodeInfo,
    ScanFailure,
    ScanHistoryItem,
    ScanHistoryResponse,
    ScanOutcome,
    ScanSuccess,
)

__all__ = [
    "ConfidenceLevel",
    "FailureReason",
    "MaterialType",
    "ParseMethod",
    "ScanState",
    "LedgerDiscrepancy",
    "MaterialClassification",
    "RecordedScan",
    "RecordFailed",
    "ScanRecord",
    "EducationalContent",
    "LocationSummary",
    "RicCodeInfo",
    "ScanFailure",
    "ScanHistoryItem",
    "ScanHistoryResponse",
    "ScanOutcome",
    "ScanSuccess",
]
