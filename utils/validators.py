"""
Input validators for batch submissions.
"""

import re
from pathlib import Path
from typing import List, Optional, Sequence

from src.exceptions import InvalidArgument


def validate_chunk_size(value: Optional[int], default: int) -> int:
    """Resolve and validate the chunk size for a run."""
    size = default if value is None else value
    if isinstance(size, bool) or not isinstance(size, int) or size < 1:
        raise InvalidArgument(f"Chunk size must be a positive integer, got {size!r}")
    return size


def validate_image_ids(ids: Sequence[str]) -> List[str]:
    """
    Ensure a batch is non-empty and its ids are unique.

    Returns:
        The ids as a list
    """
    ids = list(ids)
    if not ids:
        raise InvalidArgument("Batch contains no images")

    seen = set()
    duplicates = []
    for image_id in ids:
        if image_id in seen:
            duplicates.append(image_id)
        seen.add(image_id)

    if duplicates:
        raise InvalidArgument(f"Duplicate image ids in batch: {', '.join(sorted(set(duplicates)))}")
    return ids


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename for safe storage.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    # Remove path separators
    filename = Path(filename).name

    # Replace dangerous characters and whitespace
    sanitized = re.sub(r'[<>:"/\\|?*\s]+', '_', filename)

    # Limit length
    name = Path(sanitized).stem[:50]
    ext = Path(sanitized).suffix[:10].lower()

    return f"{name or 'image'}{ext}"
