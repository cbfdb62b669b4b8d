"""
Pytest configuration for the Rescan tests.

Every test that touches the ledger gets its own temporary SQLite database,
migrated to head. Vision calls are replaced by FakeVisionClient.
"""

import io
import os
import tempfile
from pathlib import Path
from typing import Optional

import pytest
from PIL import Image

from rescan.exceptions import VisionAnalysisError
from rescan.feature_flags import FeatureFlags
from rescan.services.ledger import LedgerStore
from rescan.services.orchestrator import ScanOrchestrator


def make_image_bytes(fmt: str = "JPEG", size: tuple[int, int] = (64, 64), color=(40, 120, 200)) -> bytes:
    """Encode a solid-color image in the given format."""
    mode = "RGBA" if fmt == "PNG" else "RGB"
    fill = color + (255,) if mode == "RGBA" else color
    img = Image.new(mode, size, fill)
    output = io.BytesIO()
    img.save(output, format=fmt)
    return output.getvalue()


class FakeVisionClient:
    """Returns a fixed response text, or raises a fixed error."""

    def __init__(self, response: str = "", error: Optional[VisionAnalysisError] = None):
        self.response = response
        self.error = error
        self.calls = 0

    async def analyze(self, image_bytes: bytes) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def temp_db():
    """Create a temporary database path for testing."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    # Cleanup, including WAL side files
    for suffix in ("", "-wal", "-shm"):
        path = Path(f"{db_path}{suffix}")
        if path.exists():
            os.unlink(path)


@pytest.fixture
def ledger(temp_db):
    """A migrated LedgerStore on a temporary database."""
    store = LedgerStore(str(temp_db))
    yield store
    store.close()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def flags() -> FeatureFlags:
    return FeatureFlags(feature_educational_content=True, feature_scan_history=True)


@pytest.fixture
def make_orchestrator(ledger, flags):
    """Build an orchestrator around a FakeVisionClient."""

    def _make(response: str = "", error: Optional[VisionAnalysisError] = None) -> ScanOrchestrator:
        return ScanOrchestrator(
            vision_client=FakeVisionClient(response=response, error=error),
            ledger=ledger,
            flags=flags,
        )

    return _make
