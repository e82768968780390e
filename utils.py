import base64
import binascii
import io
import logging
import re
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,", re.IGNORECASE)


def setup_logging(name: str = "neet_dost") -> logging.Logger:
    """Configure and return a logger instance."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def sniff_image_mime_type(data: bytes) -> Optional[str]:
    """Identify an image with Pillow and return its MIME type, or None if unknown."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return Image.MIME.get(image.format)
    except (UnidentifiedImageError, OSError):
        return None


def decode_image(image_base64: str, mime_type: Optional[str] = None) -> Tuple[bytes, str]:
    """
    Decode a base64 image payload and work out its MIME type.

    Accepts either raw base64 (line-wrapped or not) or a ``data:<mime>;base64,``
    URL as produced by browser file readers.

    Args:
        image_base64: Encoded image
        mime_type: Explicit MIME type; wins over anything detected

    Returns:
        (raw bytes, MIME type). The type comes from the image content, then
        the data URL prefix, then falls back to image/jpeg.

    Raises:
        ValueError: if the payload is not valid base64
    """
    payload = image_base64.strip()
    declared = None
    match = _DATA_URL_RE.match(payload)
    if match:
        declared = match.group("mime").lower()
        payload = payload[match.end():]
    payload = "".join(payload.split())

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Image must be base64 encoded") from e

    resolved = mime_type or sniff_image_mime_type(data) or declared or DEFAULT_IMAGE_MIME_TYPE
    return data, resolved
