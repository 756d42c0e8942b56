"""Validation of decoded image payloads before they are persisted."""

import io
import logging

from PIL import Image, UnidentifiedImageError

from config import settings
from errors import ValidationError

logger = logging.getLogger(__name__)

EXPECTED_CONTENT_TYPE = "image/png"


def sniff_content_type(data: bytes) -> str:
    """Guess the MIME type of a payload.

    Args:
        data: Raw payload bytes

    Returns:
        An image MIME type if Pillow recognizes the data, "text/plain" for
        UTF-8 text, otherwise "application/octet-stream"
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            mime = Image.MIME.get(img.format or "")
            if mime:
                return mime
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        # A header declaring huge dimensions is not an image we can use
        pass

    try:
        data.decode("utf-8")
        return "text/plain"
    except UnicodeDecodeError:
        return "application/octet-stream"


def is_all_zero(data: bytes) -> bool:
    """True if every byte is zero (the service's placeholder for a failed render)."""
    return not data.strip(b"\x00")


def validate_image(data: bytes, min_size: int | None = None) -> None:
    """
    Reject placeholder or undersized image payloads.

    Args:
        data: Decoded image bytes
        min_size: Minimum accepted size in bytes (defaults to the configured limit)

    Raises:
        ValidationError: If the payload is all zero bytes or smaller than
            min_size. For undersized payloads the sniffed content type is
            attached, and a non-PNG type is called out in the message.
    """
    if min_size is None:
        min_size = settings.limits.min_image_size

    if is_all_zero(data):
        raise ValidationError("Generated image was all black, retrying...", size=len(data), placeholder=True)

    if len(data) < min_size:
        content_type = sniff_content_type(data)
        logger.debug(f"Image too small or wrong format: {content_type}, size: {len(data)}")
        if content_type != EXPECTED_CONTENT_TYPE:
            message = f"Unexpected file format: {content_type} (expected PNG)"
        else:
            message = f"Image too small: {len(data)} bytes (minimum {min_size})"
        raise ValidationError(message, content_type=content_type, size=len(data))
