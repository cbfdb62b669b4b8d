"""
/locations endpoints: ledger totals, registration and scan history.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..config import Config
from ..exceptions import InvalidInputError, PersistenceError
from ..feature_flags import FeatureFlags, get_feature_flags
from ..models import LocationSummary, ScanHistoryItem, ScanHistoryResponse
from ..services.ledger import LedgerStore
from ..services.orchestrator import ScanOrchestrator
from .scan import get_orchestrator

logger = logging.getLogger(__name__)
router = APIRouter()


class LocationRequest(BaseModel):
    """Register an address with the ledger."""
    address: str = Field(..., description="Street address or other location label")


def get_ledger(orchestrator: ScanOrchestrator = Depends(get_orchestrator)) -> LedgerStore:
    return orchestrator.ledger


@router.get("/locations/{key}/scans", response_model=ScanHistoryResponse)
def location_scans(
    key: str,
    limit: int = Query(Config.DEFAULT_HISTORY_LIMIT, ge=1, le=Config.MAX_HISTORY_LIMIT),
    ledger: LedgerStore = Depends(get_ledger),
    flags: FeatureFlags = Depends(get_feature_flags),
) -> ScanHistoryResponse:
    """Most recent scans credited to a location, newest first."""
    if not flags.feature_scan_history:
        raise HTTPException(status_code=404, detail="Scan history is disabled")

    try:
        summary = ledger.lookup_location(key)
        if not summary.exists:
            raise HTTPException(status_code=404, detail="Location not found")
        records = ledger.list_scans(key, limit=limit)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=e.message)

    return ScanHistoryResponse(
        location_key=summary.location_key,
        points_total=summary.points_total,
        scans=[
            ScanHistoryItem(
                scan_id=record.id,
                material_type=record.material_type,
                ric_code=record.ric_code,
                confidence=record.confidence,
                recyclable=record.recyclable,
                uncertain=record.uncertain,
                points_awarded=record.points_awarded,
                parse_method=record.parse_method,
                created_at=record.created_at,
            )
            for record in records
        ],
    )


@router.get("/locations/{key:path}", response_model=LocationSummary)
def get_location(
    key: str,
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
) -> LocationSummary:
    """Current points for a location. Unknown locations report exists=false."""
    try:
        return orchestrator.lookup_location(key)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=e.message)


@router.post("/locations", response_model=LocationSummary, status_code=201)
def register_location(
    request: LocationRequest,
    ledger: LedgerStore = Depends(get_ledger),
) -> LocationSummary:
    """Register a location with zero points. Existing locations are returned unchanged."""
    try:
        summary = ledger.ensure_location(request.address)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=e.message)

    logger.info(f"Location registered: '{summary.location_key}'")
    return summary
