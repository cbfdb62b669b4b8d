from .vision import ClaudeVisionClient, GeminiVisionClient, MockVisionClient, get_vision_client
from .normalizer import ResponseNormalizer
from .points import calculate_points
from .ledger import LedgerStore, normalize_location_key
from .orchestrator import ScanOrchestrator, build_orchestrator

__all__ = [
    "ClaudeVisionClient",
    "GeminiVisionClient",
    "MockVisionClient",
    "get_vision_client",
    "ResponseNormalizer",
    "calculate_points",
    "LedgerStore",
    "normalize_location_key",
    "ScanOrchestrator",
    "build_orchestrator",
]
