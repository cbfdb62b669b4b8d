"""
Internal value objects passed between pipeline components.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .enums import MaterialType, ParseMethod


@dataclass(frozen=True)
class MaterialClassification:
    """Normalized result of analyzing an image for recyclable material."""
    material_type: MaterialType
    ric_code: Optional[int]        # 1-7, None when absent or invalid
    confidence: int                # 0-100
    recyclable: bool
    uncertain: bool
    description: Optional[str] = None
    parse_method: ParseMethod = ParseMethod.STRUCTURED


@dataclass(frozen=True)
class RecordedScan:
    """Successful ledger write."""
    scan_id: str
    location_key: str
    points_awarded: int
    new_total: int


@dataclass(frozen=True)
class RecordFailed:
    """Failed ledger write. Nothing was persisted."""
    location_key: str
    message: str


@dataclass(frozen=True)
class ScanRecord:
    """A ScanSession row as read back from the store."""
    id: str
    location_key: str
    material_type: MaterialType
    ric_code: Optional[int]
    confidence: int
    recyclable: bool
    uncertain: bool
    points_awarded: int
    parse_method: ParseMethod
    raw_analysis: str
    created_at: datetime


@dataclass(frozen=True)
class LedgerDiscrepancy:
    """A location whose total does not match its scan history."""
    location_key: str
    points_total: int
    scan_points_sum: int
