"""
Vision analysis clients for recycling material classification.

Sends a scan image plus a fixed instruction prompt to a multimodal model and
returns the model's raw text. Parsing is left to ResponseNormalizer: the
response is untrusted and may or may not follow the requested JSON schema.

Each call is exactly one remote request with an explicit deadline. Failures
are raised as typed errors, never retried here:
- VisionTransportError: network, auth, rate-limit, 5xx (caller may retry)
- VisionTimeoutError: deadline exceeded (caller may retry)
- InvalidImageError: image failed pre-validation or was rejected (terminal)

Backends:
1. ClaudeVisionClient (Anthropic Messages API, default)
2. GeminiVisionClient (google-genai)
3. MockVisionClient (canned responses for development and tests)
"""

import asyncio
import base64
import logging
from typing import Optional, Protocol

import anthropic
import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from ..config import Config
from ..exceptions import (
    InvalidImageError,
    VisionTimeoutError,
    VisionTransportError,
)
from ..mocks.fixtures import MOCK_VISION_RESPONSES
from .image_utils import check_image, prepare_for_vision

logger = logging.getLogger(__name__)


RECYCLING_ANALYSIS_PROMPT = """You are a recycling symbol recognition expert. Analyze this photo of an item and identify what it is made of.

1. Look for recycling symbol triangles with numbers (Resin Identification Codes 1-7)
2. Identify the material type (plastic, cardboard, paper, glass, metal, aluminum)
3. Assess the clarity of any recycling symbols visible
4. Determine general recyclability based on common curbside guidelines
5. Provide a confidence score based on how clearly you can see the item and its symbols

IMPORTANT:
- ric_code applies to plastics only; use null when no code is visible
- If symbols are unclear or partially visible, lower your confidence
- If you cannot tell what the item is made of, use "unknown" with a low confidence

Respond with a single JSON object:
{
  "material_type": "plastic|cardboard|paper|glass|metal|aluminum|unknown",
  "ric_code": 1-7 or null,
  "confidence": 0-100,
  "recyclable": true/false,
  "description": "What you see, in one or two sentences"
}

Return ONLY the JSON object, no other text."""


class VisionAnalysisClient(Protocol):
    """Protocol for vision backends (allows swapping providers and fakes)."""

    async def analyze(self, image_bytes: bytes) -> str: ...


class BaseVisionClient:
    """
    Shared request flow for vision backends.

    Subclasses only need to implement:
    - _request(): the provider API call, translating SDK errors to VisionAnalysisError
    """

    provider = "base"
    DEFAULT_MODEL = ""

    def __init__(
        self,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_tokens: int = Config.VISION_MAX_TOKENS,
        prompt: str = RECYCLING_ANALYSIS_PROMPT,
    ):
        """
        Args:
            model: Model name (default: provider's DEFAULT_MODEL)
            timeout: Deadline in seconds for one call (default: Config.vision_timeout())
            max_tokens: Maximum tokens in response
            prompt: Instruction text sent with every image
        """
        self.model = model or self.DEFAULT_MODEL
        self.timeout = timeout if timeout is not None else Config.vision_timeout()
        self.max_tokens = max_tokens
        self.prompt = prompt

    async def analyze(self, image_bytes: bytes) -> str:
        """
        Classify one image.

        Args:
            image_bytes: Raw image bytes (any format Pillow can decode)

        Returns:
            The model's raw response text

        Raises:
            InvalidImageError, VisionTransportError, VisionTimeoutError
        """
        info = check_image(image_bytes)
        payload = prepare_for_vision(image_bytes)

        logger.info(
            f"{self.provider} vision: analyzing {info.format} {info.width}x{info.height} "
            f"({len(payload) / 1024:.0f}KB sent, timeout={self.timeout:.0f}s)"
        )

        try:
            text = await asyncio.wait_for(self._request(payload), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"{self.provider} vision: no response within {self.timeout:.1f}s")
            raise VisionTimeoutError(
                f"Vision service did not respond within {self.timeout:.0f}s", cause=e
            ) from e

        text = (text or "").strip()
        logger.debug(f"{self.provider} vision raw response: {text[:500]}")
        return text

    async def _request(self, jpeg_bytes: bytes) -> str:
        raise NotImplementedError


class ClaudeVisionClient(BaseVisionClient):
    """Vision client using the Anthropic Messages API."""

    provider = "claude"
    DEFAULT_MODEL = "claude-3-5-haiku-latest"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        """
        Args:
            api_key: Anthropic API key. Falls back to ANTHROPIC_API_KEY env var.
        """
        super().__init__(**kwargs)
        self.api_key = api_key or Config.anthropic_api_key()
        self._client: Optional[anthropic.AsyncAnthropic] = None

    def _get_client(self) -> anthropic.AsyncAnthropic:
        """Get or create the Anthropic client. Retries are disabled on purpose."""
        if self._client is None:
            if not self.api_key:
                raise VisionTransportError("Vision service not configured: ANTHROPIC_API_KEY not set")
            self._client = anthropic.AsyncAnthropic(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def _request(self, jpeg_bytes: bytes) -> str:
        client = self._get_client()
        image_b64 = base64.standard_b64encode(jpeg_bytes).decode("utf-8")

        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=0.3,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": "image/jpeg",
                                    "data": image_b64,
                                },
                            },
                            {
                                "type": "text",
                                "text": self.prompt,
                            },
                        ],
                    }
                ],
            )
        except anthropic.APITimeoutError as e:
            raise VisionTimeoutError("Vision service request timed out", cause=e) from e
        except anthropic.APIConnectionError as e:
            logger.warning(f"Anthropic API connection failed: {e}")
            raise VisionTransportError("Vision service unreachable", cause=e) from e
        except anthropic.BadRequestError as e:
            logger.warning(f"Anthropic API rejected image: {e}")
            raise InvalidImageError("Vision service rejected the image", cause=e) from e
        except anthropic.APIStatusError as e:
            logger.error(f"Anthropic API error (status={e.status_code}): {e}")
            raise VisionTransportError(
                f"Vision service error (status {e.status_code})", cause=e
            ) from e

        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )


class GeminiVisionClient(BaseVisionClient):
    """Vision client using Google Gemini via google-genai."""

    provider = "gemini"
    DEFAULT_MODEL = "gemini-2.0-flash"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        """
        Args:
            api_key: Google API key. Falls back to GOOGLE_API_KEY env var.
        """
        super().__init__(**kwargs)
        self.api_key = api_key or Config.gemini_api_key()
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        """Lazy load Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise VisionTransportError("Vision service not configured: GOOGLE_API_KEY not set")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _request(self, jpeg_bytes: bytes) -> str:
        client = self._get_client()

        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=[
                    genai_types.Part.from_bytes(data=jpeg_bytes, mime_type="image/jpeg"),
                    self.prompt,
                ],
                config=genai_types.GenerateContentConfig(
                    max_output_tokens=self.max_tokens,
                    temperature=0.3,
                    response_mime_type="application/json",
                ),
            )
        except httpx.TimeoutException as e:
            raise VisionTimeoutError("Vision service request timed out", cause=e) from e
        except httpx.TransportError as e:
            logger.warning(f"Gemini API connection failed: {e}")
            raise VisionTransportError("Vision service unreachable", cause=e) from e
        except genai_errors.ClientError as e:
            if e.code == 400 and not _is_credential_error(e):
                logger.warning(f"Gemini API rejected image: {e}")
                raise InvalidImageError("Vision service rejected the image", cause=e) from e
            logger.error(f"Gemini API client error (status={e.code}): {e}")
            raise VisionTransportError(f"Vision service error (status {e.code})", cause=e) from e
        except genai_errors.APIError as e:
            logger.error(f"Gemini API error (status={e.code}): {e}")
            raise VisionTransportError(f"Vision service error (status {e.code})", cause=e) from e

        return response.text or ""


def _is_credential_error(error: genai_errors.APIError) -> bool:
    """Gemini reports a bad API key as 400 INVALID_ARGUMENT, same as a bad image."""
    text = f"{error.message or ''} {error.details or ''}".lower()
    return "api key" in text or "api_key" in text


class MockVisionClient(BaseVisionClient):
    """
    Vision client returning canned responses, for development without API keys.

    Scenarios are defined in rescan.mocks.fixtures. The special scenarios
    "transport_error" and "timeout" raise the corresponding failures.
    """

    provider = "mock"
    DEFAULT_MODEL = "mock"

    def __init__(self, scenario: str = "pet_bottle", **kwargs):
        super().__init__(**kwargs)
        if scenario not in MOCK_VISION_RESPONSES and scenario not in ("transport_error", "timeout"):
            raise ValueError(f"Unknown mock scenario: {scenario}")
        self.scenario = scenario
        self.calls = 0

    async def _request(self, jpeg_bytes: bytes) -> str:
        self.calls += 1
        if self.scenario == "transport_error":
            raise VisionTransportError("Mock vision service unavailable")
        if self.scenario == "timeout":
            # Sleep past the deadline so BaseVisionClient.analyze times out
            await asyncio.sleep(self.timeout + 1)
        return MOCK_VISION_RESPONSES[self.scenario]


def get_vision_client(provider: Optional[str] = None) -> VisionAnalysisClient:
    """
    Build the configured vision client.

    Called once at process start; the instance is injected into the
    ScanOrchestrator rather than shared through module state.
    """
    provider = (provider or Config.vision_provider()).lower()
    model = Config.vision_model()
    timeout = Config.vision_timeout()

    if provider == "claude":
        return ClaudeVisionClient(model=model, timeout=timeout)
    if provider == "gemini":
        return GeminiVisionClient(model=model, timeout=timeout)
    if provider == "mock":
        return MockVisionClient(timeout=timeout)
    raise ValueError(f"Unknown vision provider: {provider}")


__all__ = [
    "RECYCLING_ANALYSIS_PROMPT",
    "VisionAnalysisClient",
    "BaseVisionClient",
    "ClaudeVisionClient",
    "GeminiVisionClient",
    "MockVisionClient",
    "get_vision_client",
]
