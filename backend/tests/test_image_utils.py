"""
Tests for image validation and preparation.
"""

import io

import pytest
from PIL import Image

from rescan.exceptions import InvalidImageError
from rescan.services.image_utils import check_image, prepare_for_vision


class TestCheckImage:
    """Tests for check_image."""

    def test_valid_jpeg(self, jpeg_bytes):
        info = check_image(jpeg_bytes)
        assert info.format == "JPEG"
        assert (info.width, info.height) == (64, 64)
        assert info.size_bytes == len(jpeg_bytes)

    def test_valid_png(self, png_bytes):
        assert check_image(png_bytes).format == "PNG"

    @pytest.mark.parametrize("data", [b"", None])
    def test_empty(self, data):
        with pytest.raises(InvalidImageError, match="empty"):
            check_image(data)

    def test_undecodable(self):
        with pytest.raises(InvalidImageError, match="decoded"):
            check_image(b"this is not an image at all")

    def test_too_large(self, jpeg_bytes):
        with pytest.raises(InvalidImageError, match="too large"):
            check_image(jpeg_bytes, max_size=100)


class TestPrepareForVision:
    """Tests for prepare_for_vision."""

    def test_small_jpeg_unchanged(self, jpeg_bytes):
        assert prepare_for_vision(jpeg_bytes) is jpeg_bytes

    def test_png_converted_to_jpeg(self, png_bytes):
        result = prepare_for_vision(png_bytes)
        assert result[:2] == b"\xff\xd8"
        with Image.open(io.BytesIO(result)) as img:
            assert img.mode == "RGB"

    def test_oversized_is_compressed(self):
        # Noise compresses poorly, so this is well over the tiny limit
        img = Image.effect_noise((400, 400), 100).convert("RGB")
        output = io.BytesIO()
        img.save(output, format="JPEG", quality=100)
        original = output.getvalue()

        limit = len(original) // 4
        result = prepare_for_vision(original, max_size=limit)

        assert len(result) <= limit
        assert result[:2] == b"\xff\xd8"
