"""
Bundle Splitter
===============
Keeps every chunk handed to the relay within its size limit.

Order is preserved and the total envelope count never changes; empty
chunks are dropped.
"""

from typing import List, Sequence, TypeVar

from bundle_pipeline.config.constants import MAX_TRANSACTIONS_PER_BUNDLE
from bundle_pipeline.shared.system.logging import Logger

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    """Consecutive slices of at most `size` items (last one may be short)."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def split_large_bundles(
    chunks: Sequence[Sequence[str]],
    max_size: int = MAX_TRANSACTIONS_PER_BUNDLE,
) -> List[List[str]]:
    """
    Split chunks larger than `max_size` into ceil(n / max_size) sub-chunks.

    Example:
        split_large_bundles([[a, b, c, d, e, f, g]], 5) -> [[a..e], [f, g]]
    """
    result: List[List[str]] = []

    for chunk in chunks:
        if not chunk:
            Logger.debug("[SPLIT] Dropping empty chunk")
            continue

        if len(chunk) <= max_size:
            result.append(list(chunk))
            continue

        pieces = chunked(chunk, max_size)
        Logger.info(f"[SPLIT] Bundle of {len(chunk)} transactions split into {len(pieces)} chunks")
        result.extend(pieces)

    return result
