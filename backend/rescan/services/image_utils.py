"""
Image validation and preparation for the vision service.

Scans arrive as raw upload bytes of any common raster format (JPEG, PNG,
WebP, HEIC). Before analysis they are checked for size and decodability,
then normalized to a JPEG small enough for the vision API.
"""

import io
import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from ..config import Config
from ..exceptions import InvalidImageError

logger = logging.getLogger(__name__)

# Register HEIF/HEIC opener with Pillow
register_heif_opener()

# Guard against decompression bombs on top of the byte-size limit
MAX_IMAGE_PIXELS = 50_000_000


@dataclass(frozen=True)
class ImageInfo:
    """Basic facts about a validated image."""
    format: str
    width: int
    height: int
    size_bytes: int


def check_image(image_bytes: Optional[bytes], max_size: int = Config.MAX_IMAGE_SIZE_BYTES) -> ImageInfo:
    """
    Verify that bytes are a decodable raster image within the size ceiling.

    Args:
        image_bytes: Raw upload bytes
        max_size: Maximum accepted size in bytes (default 10MB)

    Returns:
        ImageInfo for the decoded image

    Raises:
        InvalidImageError: empty, oversized or undecodable input
    """
    if not image_bytes:
        raise InvalidImageError("Image is empty")

    if len(image_bytes) > max_size:
        raise InvalidImageError(
            f"Image too large ({len(image_bytes) / 1024 / 1024:.1f}MB). "
            f"Maximum size is {max_size / 1024 / 1024:.0f}MB."
        )

    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img.verify()
            image_format = img.format or "unknown"
            width, height = img.size
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise InvalidImageError("Image could not be decoded", cause=e) from e
    except Image.DecompressionBombError as e:
        raise InvalidImageError("Image dimensions are too large", cause=e) from e

    if width <= 0 or height <= 0 or width * height > MAX_IMAGE_PIXELS:
        raise InvalidImageError(f"Unsupported image dimensions {width}x{height}")

    return ImageInfo(format=image_format, width=width, height=height, size_bytes=len(image_bytes))


def prepare_for_vision(image_bytes: bytes, max_size: int = Config.VISION_MAX_UPLOAD_BYTES) -> bytes:
    """
    Normalize image to JPEG and compress to fit within the vision upload limit.

    Always outputs JPEG to match the media type sent to the vision API.

    Strategy:
    1. If already JPEG and under limit, return as-is (fast path)
    2. If non-JPEG (PNG, WebP, HEIC), convert to JPEG
    3. If oversized, reduce JPEG quality (85 → 25)
    4. If still too large, resize progressively (80% → 30%)

    Args:
        image_bytes: Validated image bytes
        max_size: Maximum size in bytes (default 5MB)

    Returns:
        Compressed image bytes (JPEG format)
    """
    is_jpeg = image_bytes[:2] == b'\xff\xd8'
    if is_jpeg and len(image_bytes) <= max_size:
        return image_bytes

    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise InvalidImageError("Image could not be decoded", cause=e) from e

    if not is_jpeg:
        logger.info(f"Converting {img.format or 'unknown'} image to JPEG for vision analysis")

    if img.mode != "RGB":
        img = img.convert("RGB")

    if len(image_bytes) <= max_size:
        output = io.BytesIO()
        img.save(output, format="JPEG", quality=95)
        if output.tell() <= max_size:
            return output.getvalue()

    logger.info(
        f"Compressing image for vision analysis: {len(image_bytes) / 1024 / 1024:.1f}MB "
        f"→ target {max_size / 1024 / 1024:.1f}MB"
    )

    quality = 85
    while quality >= 25:
        output = io.BytesIO()
        img.save(output, format="JPEG", quality=quality)
        if output.tell() <= max_size:
            logger.info(f"Compressed with quality={quality}: {output.tell() / 1024 / 1024:.1f}MB")
            return output.getvalue()
        quality -= 15

    scale = 0.8
    while scale >= 0.3:
        new_size = (max(1, int(img.width * scale)), max(1, int(img.height * scale)))
        resized = img.resize(new_size, Image.Resampling.LANCZOS)
        output = io.BytesIO()
        resized.save(output, format="JPEG", quality=70)
        if output.tell() <= max_size:
            logger.info(f"Resized to {new_size[0]}x{new_size[1]} (scale={scale:.1f})")
            return output.getvalue()
        scale -= 0.1

    logger.warning(
        f"Could not compress image below {max_size / 1024 / 1024:.1f}MB, "
        f"using {output.tell() / 1024 / 1024:.1f}MB"
    )
    return output.getvalue()
