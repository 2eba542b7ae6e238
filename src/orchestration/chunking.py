"""
Batch partitioning for provider-limited inference calls.
"""

from typing import List, Sequence, TypeVar

from src.exceptions import InvalidArgument

T = TypeVar("T")


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """
    Split items into ordered sub-lists of at most `size` elements.

    Args:
        items: Ordered items (e.g. ImageRefs)
        size: Maximum chunk length, at least 1

    Returns:
        List of chunks; the last one may be shorter. Empty input gives [].

    Raises:
        InvalidArgument: If size is not a positive integer
    """
    if isinstance(size, bool) or not isinstance(size, int) or size < 1:
        raise InvalidArgument(f"Chunk size must be a positive integer, got {size!r}")

    items = list(items)
    return [items[i:i + size] for i in range(0, len(items), size)]
