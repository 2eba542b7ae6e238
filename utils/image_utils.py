"""
Image utilities for the hazard classification engine.
Handles image loading, resizing and encoding for inference payloads.
"""

import base64
import io
from pathlib import Path

from PIL import Image

from utils.config import config
from utils.logger import setup_logger

logger = setup_logger(__name__, level=config.log_level, component="IMAGE_UTILS")

# Provider payloads above this are rejected outright
MAX_PAYLOAD_BYTES = 10_000_000


def load_image(data: bytes) -> Image.Image:
    """
    Decode image bytes.

    Raises:
        ValueError: If the bytes are not a readable image
    """
    try:
        img = Image.open(io.BytesIO(data))
        img.load()  # Force load to catch corrupt images
        return img
    except Exception as e:
        raise ValueError(f"Failed to load image: {e}")


def resize_image(img: Image.Image, max_dimension: int = None) -> Image.Image:
    """
    Resize image to fit within max dimension while preserving aspect ratio.

    Args:
        img: PIL Image
        max_dimension: Maximum width or height (defaults to config)

    Returns:
        Resized PIL Image
    """
    max_dimension = max_dimension or config.max_image_dimension

    width, height = img.size
    if width <= max_dimension and height <= max_dimension:
        return img

    if width > height:
        new_width = max_dimension
        new_height = max(1, int(height * (max_dimension / width)))
    else:
        new_height = max_dimension
        new_width = max(1, int(width * (max_dimension / height)))

    resized = img.resize((new_width, new_height), Image.Resampling.LANCZOS)
    logger.debug(f"Resized image from {img.size} to {resized.size}")
    return resized


def encode_image_data_uri(data: bytes, max_dimension: int = None) -> str:
    """
    Resize and JPEG-compress image bytes into a base64 data URI.

    Args:
        data: Raw image bytes
        max_dimension: Maximum width or height

    Returns:
        data:image/jpeg;base64,... string
    """
    img = resize_image(load_image(data), max_dimension)

    # RGBA/P modes can't be saved as JPEG
    if img.mode != "RGB":
        img = img.convert("RGB")

    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=85, optimize=True)

    if buffer.tell() > 5_000_000:
        logger.debug(f"Image still large ({buffer.tell()} bytes), reducing quality")
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", quality=60, optimize=True)

    payload_size = buffer.tell()
    if payload_size > MAX_PAYLOAD_BYTES:
        raise ValueError(f"Image too large even after optimization: {payload_size} bytes")

    return "data:image/jpeg;base64," + base64.b64encode(buffer.getvalue()).decode()


def is_image_file(path: Path) -> bool:
    """Check the extension against the configured allow-list."""
    return path.is_file() and path.suffix.lower().lstrip(".") in config.allowed_extensions_list
