"""
/scan endpoint for Rescan.

Receives a photo of a recyclable item plus the address to credit, and
returns the scan outcome. The body is always a ScanSuccess or ScanFailure;
the HTTP status mirrors the failure reason.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile

from ..config import Config
from ..models import FailureReason, ScanFailure, ScanOutcome
from ..services.orchestrator import ScanOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter()

STATUS_BY_REASON: dict[FailureReason, int] = {
    FailureReason.INVALID_INPUT: 400,
    FailureReason.ANALYSIS_UNCERTAIN: 422,
    FailureReason.TRANSPORT: 502,
    FailureReason.PERSISTENCE: 503,
}


# === Dependency Injection ===


def get_orchestrator(request: Request) -> ScanOrchestrator:
    """The process-wide orchestrator built in the app lifespan."""
    return request.app.state.orchestrator


# === Endpoints ===


@router.post("/scan", response_model=ScanOutcome)
async def scan_item(
    response: Response,
    image: UploadFile = File(..., description="Photo of the item or its recycling symbol"),
    location: Optional[str] = Form(None, description="Address to credit points to"),
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
) -> ScanOutcome:
    """
    Classify a recyclable item and award points to a location.

    Returns:
        ScanSuccess (200), or ScanFailure with status 400/422/502/503
    """
    if image.content_type not in Config.ALLOWED_CONTENT_TYPES:
        response.status_code = STATUS_BY_REASON[FailureReason.INVALID_INPUT]
        return ScanFailure(
            reason=FailureReason.INVALID_INPUT,
            message="Invalid image type. Only JPEG, PNG, WebP and HEIC are supported.",
        )

    try:
        image_bytes = await image.read()
    except IOError as e:
        logger.error(f"Failed to read uploaded image: {e}")
        response.status_code = STATUS_BY_REASON[FailureReason.INVALID_INPUT]
        return ScanFailure(reason=FailureReason.INVALID_INPUT, message="Failed to read image file")

    outcome = await orchestrator.process_scan(location or "", image_bytes)

    if isinstance(outcome, ScanFailure):
        response.status_code = STATUS_BY_REASON[outcome.reason]
    return outcome
