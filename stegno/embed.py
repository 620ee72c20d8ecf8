from __future__ import annotations

from typing import List

from .chunks import build_payload_chunk, validate_chunk_type
from .constants import (
    PAYLOAD_CHUNK_TYPE,
    STRATEGIES,
    STRATEGY_AUTO,
    STRATEGY_INDEX,
    STRATEGY_SCAN,
)
from .errors import EmbedWithoutAnchor, MarkerNotFound
from .image import Image


def embed(image: Image, payload: bytes, *, chunk_type: bytes = PAYLOAD_CHUNK_TYPE) -> Image:
    """Insert ``payload`` as a new chunk right before IEND.

    The image is updated in place and returned. Chunks after IEND are dropped
    and the anchor moves to the new chunk, so the latest payload is the one
    ``extract`` returns.
    """
    terminal = image.terminal
    if image.anchor is None or terminal is None:
        raise EmbedWithoutAnchor("Image has no IEND chunk to insert before")
    chunk = build_payload_chunk(payload, chunk_type)
    head = image.chunks[: image.anchor + 1]
    image.chunks = head + [chunk, terminal]
    image.anchor = len(head)
    return image


def _extract_at_anchor(image: Image, chunk_type: bytes) -> bytes:
    idx = image.anchor
    if idx is None or idx < 0 or idx >= len(image.chunks):
        raise MarkerNotFound("No payload chunk at the recorded insertion point")
    chunk = image.chunks[idx]
    if chunk.ctype != chunk_type:
        raise MarkerNotFound(
            f"Chunk at insertion point is {chunk.type_name!r}, not {chunk_type.decode('latin-1')!r}"
        )
    return chunk.data


def find_payload_indices(image: Image, chunk_type: bytes = PAYLOAD_CHUNK_TYPE) -> List[int]:
    return [i for i, ch in enumerate(image.chunks) if ch.ctype == chunk_type]


def _extract_by_scan(image: Image, chunk_type: bytes) -> bytes:
    found = find_payload_indices(image, chunk_type)
    if not found:
        raise MarkerNotFound(f"No {chunk_type.decode('latin-1')!r} chunk in image")
    return image.chunks[found[-1]].data


def extract(
    image: Image,
    *,
    strategy: str = STRATEGY_INDEX,
    chunk_type: bytes = PAYLOAD_CHUNK_TYPE,
) -> bytes:
    """Return the embedded payload bytes unmodified.

    Strategies:
    - index: the chunk at ``image.anchor`` must carry ``chunk_type``
    - scan: the last chunk carrying ``chunk_type``
    - auto: index, then scan
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"unknown extraction strategy: {strategy}")
    if strategy == STRATEGY_SCAN:
        return _extract_by_scan(image, chunk_type)
    try:
        return _extract_at_anchor(image, chunk_type)
    except MarkerNotFound:
        if strategy != STRATEGY_AUTO:
            raise
    return _extract_by_scan(image, chunk_type)


def strip_payloads(image: Image, chunk_type: bytes = PAYLOAD_CHUNK_TYPE) -> int:
    """Remove every ``chunk_type`` chunk; returns how many were removed."""
    chunk_type = validate_chunk_type(chunk_type)
    kept = [ch for ch in image.chunks if ch.ctype != chunk_type]
    removed = len(image.chunks) - len(kept)
    if not removed:
        return 0
    terminal = image.terminal
    image.chunks = kept
    if terminal is not None:
        image.anchor = next(i for i, ch in enumerate(kept) if ch is terminal) - 1
    return removed
