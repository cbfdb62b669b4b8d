"""
Scan orchestration: image in, points out.

One process_scan call moves through:

    Submitted -> Analyzing -> Classified -> Recorded
                     |            |
                     v            v
              AnalysisFailed  RecordFailed

Every failure is returned as a ScanFailure carrying exactly one
FailureReason. Nothing is raised to the caller for expected faults, and the
ledger is never touched unless a classification was produced.
"""

import asyncio
import logging
import time
from typing import Optional

from ..exceptions import (
    InvalidImageError,
    InvalidInputError,
    VisionAnalysisError,
)
from ..feature_flags import FeatureFlags, get_feature_flags
from ..models import (
    FailureReason,
    LocationSummary,
    MaterialClassification,
    RecordFailed,
    ScanFailure,
    ScanOutcome,
    ScanState,
    ScanSuccess,
)
from .image_utils import check_image
from .ledger import LedgerStore, normalize_location_key
from .normalizer import ResponseNormalizer
from .points import points_for
from .ric_codes import build_educational_content
from .vision import VisionAnalysisClient, get_vision_client

logger = logging.getLogger(__name__)

PERSISTENCE_MESSAGE = "We identified your item but could not save your points. Please try again."
TRANSPORT_MESSAGE = "The image analysis service is unavailable right now. Please try again."
UNCERTAIN_MESSAGE = (
    "We couldn't identify the material clearly enough to award points. "
    "Try a closer, well-lit photo of the recycling symbol."
)


class ScanOrchestrator:
    """
    Runs the scan pipeline for one request at a time.

    Holds no per-request state, so a single instance serves concurrent
    requests. Dependencies are injected so tests can pass fakes.
    """

    def __init__(
        self,
        vision_client: VisionAnalysisClient,
        ledger: LedgerStore,
        normalizer: Optional[ResponseNormalizer] = None,
        flags: Optional[FeatureFlags] = None,
    ):
        self.vision_client = vision_client
        self.ledger = ledger
        self.normalizer = normalizer or ResponseNormalizer()
        self.flags = flags or get_feature_flags()

    async def process_scan(self, location_key: str, image_bytes: bytes) -> ScanOutcome:
        """
        Classify an image and credit the location.

        Args:
            location_key: Address the scan is credited to
            image_bytes: Raw image bytes

        Returns:
            ScanSuccess, or ScanFailure with the reason the scan earned nothing
        """
        start = time.perf_counter()
        state = ScanState.SUBMITTED

        # Submitted: validate input before any remote call
        try:
            key = normalize_location_key(location_key)
            check_image(image_bytes)
        except (InvalidInputError, InvalidImageError) as e:
            logger.warning(f"Scan rejected at {state.value}: {e.message}")
            return ScanFailure(reason=FailureReason.INVALID_INPUT, message=e.message)

        # Analyzing
        state = ScanState.ANALYZING
        try:
            raw_text = await self.vision_client.analyze(image_bytes)
        except InvalidImageError as e:
            logger.warning(f"Scan for '{key}' {ScanState.ANALYSIS_FAILED.value}: {e.message}")
            return ScanFailure(reason=FailureReason.INVALID_INPUT, message=e.message)
        except VisionAnalysisError as e:
            logger.warning(f"Scan for '{key}' {ScanState.ANALYSIS_FAILED.value}: {type(e).__name__}: {e.message}")
            return ScanFailure(reason=FailureReason.TRANSPORT, message=TRANSPORT_MESSAGE)

        # Classified
        state = ScanState.CLASSIFIED
        classification = self.normalizer.normalize(raw_text)
        points = 0 if classification.uncertain else points_for(classification)
        logger.info(
            f"Scan for '{key}' classified as {classification.material_type.value} "
            f"(ric={classification.ric_code}, confidence={classification.confidence}, "
            f"parse={classification.parse_method.value}, uncertain={classification.uncertain})"
        )

        # Recorded / RecordFailed; the write runs in a worker thread and is not cancelled
        result = await asyncio.to_thread(
            self.ledger.record_scan, location_key, classification, points, raw_text
        )
        elapsed_ms = (time.perf_counter() - start) * 1000

        if isinstance(result, RecordFailed):
            logger.error(f"Scan for '{key}' reached {ScanState.RECORD_FAILED.value}: {result.message}")
            return ScanFailure(
                reason=FailureReason.PERSISTENCE,
                message=PERSISTENCE_MESSAGE,
                material_type=classification.material_type,
                confidence=classification.confidence,
            )

        if classification.uncertain:
            logger.info(f"Scan {result.scan_id[:8]} for '{key}' inconclusive ({elapsed_ms:.0f}ms)")
            return ScanFailure(
                reason=FailureReason.ANALYSIS_UNCERTAIN,
                message=UNCERTAIN_MESSAGE,
                scan_id=result.scan_id,
                material_type=classification.material_type,
                confidence=classification.confidence,
                points_awarded=0,
                new_total=result.new_total,
            )

        logger.info(
            f"Scan {result.scan_id[:8]} for '{key}' {ScanState.RECORDED.value}: "
            f"+{result.points_awarded} -> {result.new_total} ({elapsed_ms:.0f}ms)"
        )
        return ScanSuccess(
            scan_id=result.scan_id,
            material_type=classification.material_type,
            ric_code=classification.ric_code,
            recyclable=classification.recyclable,
            confidence=classification.confidence,
            points_awarded=result.points_awarded,
            new_total=result.new_total,
            description=classification.description,
            educational=self._educational(classification),
        )

    def lookup_location(self, location_key: str) -> LocationSummary:
        """
        Current points for a location. Does not create it.

        Raises:
            InvalidInputError: invalid key
            PersistenceError: store unreadable
        """
        return self.ledger.lookup_location(location_key)

    def _educational(self, classification: MaterialClassification):
        if not self.flags.feature_educational_content:
            return None
        return build_educational_content(classification)


def build_orchestrator(
    vision_client: Optional[VisionAnalysisClient] = None,
    ledger: Optional[LedgerStore] = None,
) -> ScanOrchestrator:
    """Wire the orchestrator from configuration. Called once per process."""
    return ScanOrchestrator(
        vision_client=vision_client or get_vision_client(),
        ledger=ledger or LedgerStore(),
        flags=get_feature_flags(),
    )
