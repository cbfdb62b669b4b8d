"""
Enums for type-safe string constants in Rescan.
"""

from enum import Enum


class MaterialType(str, Enum):
    """Canonical material vocabulary."""
    PLASTIC = "plastic"
    CARDBOARD = "cardboard"
    PAPER = "paper"
    GLASS = "glass"
    METAL = "metal"
    ALUMINUM = "aluminum"
    UNKNOWN = "unknown"


class FailureReason(str, Enum):
    """Why a scan did not end in the Recorded state."""
    INVALID_INPUT = "InvalidInputError"
    TRANSPORT = "TransportError"
    ANALYSIS_UNCERTAIN = "AnalysisUncertain"
    PERSISTENCE = "PersistenceError"


class ScanState(str, Enum):
    """States a single process_scan invocation moves through."""
    SUBMITTED = "submitted"
    ANALYZING = "analyzing"
    CLASSIFIED = "classified"
    ANALYSIS_FAILED = "analysis_failed"
    RECORDED = "recorded"
    RECORD_FAILED = "record_failed"


class ParseMethod(str, Enum):
    """Which normalizer stage produced a classification."""
    STRUCTURED = "structured"
    FALLBACK = "fallback"
    FAILED = "failed"


class ConfidenceLevel(str, Enum):
    """Coarse confidence bucket shown to users."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    VERY_LOW = "very_low"
