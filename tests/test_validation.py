"""Tests for validation.py - image payload checks."""

import struct
import zlib

import pytest

from conftest import PNG_SIGNATURE, small_png
from errors import ValidationError
from validation import is_all_zero, sniff_content_type, validate_image


def png_header(width: int, height: int) -> bytes:
    """PNG signature plus a lone IHDR chunk declaring the given size."""
    body = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    chunk = b"IHDR" + body
    return PNG_SIGNATURE + struct.pack(">I", len(body)) + chunk + struct.pack(">I", zlib.crc32(chunk))


class TestSniffContentType:
    """Tests for content type detection."""

    def test_png(self):
        assert sniff_content_type(small_png()) == "image/png"

    def test_text(self):
        assert sniff_content_type(b'{"error": "nope"}') == "text/plain"

    def test_binary(self):
        assert sniff_content_type(b"\xff\xfe\x00\x81garbage\x9c") == "application/octet-stream"


class TestIsAllZero:
    """Tests for the placeholder signature check."""

    def test_all_zero(self):
        assert is_all_zero(b"\x00" * 1000)

    def test_not_all_zero(self):
        assert not is_all_zero(b"\x00" * 999 + b"\x01")


class TestValidateImage:
    """Tests for validate_image."""

    def test_accepts_large_payload(self, png_bytes):
        validate_image(png_bytes)

    def test_rejects_all_zero(self):
        with pytest.raises(ValidationError, match="all black"):
            validate_image(b"\x00" * 200_000)

    def test_rejects_undersized_png(self):
        data = small_png()
        with pytest.raises(ValidationError, match="too small") as exc_info:
            validate_image(data)
        assert exc_info.value.content_type == "image/png"
        assert exc_info.value.size == len(data)

    def test_flags_wrong_format(self):
        with pytest.raises(ValidationError, match="Unexpected file format: text/plain") as exc_info:
            validate_image(b"<html>rate limited</html>")
        assert exc_info.value.content_type == "text/plain"

    def test_custom_min_size(self):
        validate_image(small_png(), min_size=10)

    def test_huge_declared_dimensions(self):
        """A tiny PNG header claiming an enormous canvas is rejected, not decoded."""
        data = png_header(60000, 60000)
        assert sniff_content_type(data) == "application/octet-stream"
        with pytest.raises(ValidationError, match="Unexpected file format") as exc_info:
            validate_image(data)
        assert exc_info.value.size == len(data)

    def test_all_zero_is_placeholder(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_image(b"\x00" * 10)
        assert exc_info.value.placeholder

    def test_undersized_is_not_placeholder(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_image(small_png())
        assert not exc_info.value.placeholder
