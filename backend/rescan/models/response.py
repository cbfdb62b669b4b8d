"""
Pydantic models for scan outcomes and the Rescan API responses.

ScanOutcome contract:
{
  "success": true,
  "material_type": "plastic",
  "ric_code": 1,
  "recyclable": true,
  "points_awarded": 10,
  "new_total": 10
}
or
{
  "success": false,
  "reason": "TransportError|InvalidInputError|AnalysisUncertain|PersistenceError",
  "message": "string"
}
"""

from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from .enums import ConfidenceLevel, FailureReason, MaterialType, ParseMethod


class RicCodeInfo(BaseModel):
    """Reference data for one Resin Identification Code."""
    code: int = Field(..., ge=1, le=7)
    name: str
    full_name: str
    description: str
    recyclability: str
    common_products: list[str] = Field(default_factory=list)
    educational_note: str


class EducationalContent(BaseModel):
    """Learning material attached to a successful scan."""
    material_description: str
    recycling_tips: list[str] = Field(default_factory=list)
    environmental_benefit: Optional[str] = None
    ric_info: Optional[RicCodeInfo] = None
    confidence_level: ConfidenceLevel


class ScanSuccess(BaseModel):
    """Scan classified and recorded."""
    success: Literal[True] = True
    scan_id: str
    material_type: MaterialType
    ric_code: Optional[int] = Field(None, ge=1, le=7)
    recyclable: bool
    confidence: int = Field(..., ge=0, le=100)
    points_awarded: int = Field(..., ge=0)
    new_total: int = Field(..., ge=0)
    description: Optional[str] = None
    educational: Optional[EducationalContent] = None


class ScanFailure(BaseModel):
    """Scan did not award points. `reason` tells the caller how to react."""
    success: Literal[False] = False
    reason: FailureReason
    message: str
    # Populated for AnalysisUncertain, where the scan is still audited
    scan_id: Optional[str] = None
    material_type: Optional[MaterialType] = None
    confidence: Optional[int] = Field(None, ge=0, le=100)
    points_awarded: int = 0
    new_total: Optional[int] = None

    @property
    def retryable(self) -> bool:
        return self.reason in (FailureReason.TRANSPORT, FailureReason.ANALYSIS_UNCERTAIN)


ScanOutcome = Union[ScanSuccess, ScanFailure]


class LocationSummary(BaseModel):
    """Ledger state for one location."""
    exists: bool
    location_key: str
    points_total: int = Field(0, ge=0)
    display_address: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ScanHistoryItem(BaseModel):
    """One audited scan, as shown in a location's history."""
    scan_id: str
    material_type: MaterialType
    ric_code: Optional[int] = None
    confidence: int
    recyclable: bool
    uncertain: bool
    points_awarded: int
    parse_method: ParseMethod
    created_at: datetime


class ScanHistoryResponse(BaseModel):
    """Response from /locations/{key}/scans."""
    location_key: str
    points_total: int
    scans: list[ScanHistoryItem] = Field(default_factory=list)
