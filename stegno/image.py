from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional, Tuple

from .chunks import Chunk, read_chunk, write_chunk
from .constants import CTYPE_IEND, PNG_SIGNATURE
from .errors import CRCMismatch, TruncatedContainer
from .signature import read_signature, require_signature


@dataclass
class Image:
    signature: bytes = PNG_SIGNATURE
    chunks: List[Chunk] = field(default_factory=list)
    # Slot just before the IEND chunk; -1 when IEND is the first chunk,
    # None until an IEND chunk has been seen.
    anchor: Optional[int] = None

    @property
    def terminal(self) -> Optional[Chunk]:
        if self.anchor is None:
            return None
        idx = self.anchor + 1
        if idx < 0 or idx >= len(self.chunks):
            return None
        return self.chunks[idx]

    def append(self, chunk: Chunk) -> None:
        self.chunks.append(chunk)
        if chunk.ctype == CTYPE_IEND:
            self.anchor = len(self.chunks) - 2


def decode_stream(f: BinaryIO, *, strict: bool = False) -> Tuple[List[Chunk], int]:
    """
    Read chunks from ``f`` up to and including IEND.

    Returns ``(chunks, anchor)`` where ``anchor`` is the index of the chunk
    right before IEND. With ``strict`` every chunk's CRC is recomputed and the
    first mismatch raises CRCMismatch.
    """
    chunks: List[Chunk] = []
    index = 0
    while True:
        chunk = read_chunk(f)
        if chunk is None:
            raise TruncatedContainer(f"Stream ended after {index} chunk(s) without IEND")
        if strict:
            computed = chunk.computed_crc()
            if computed != chunk.crc:
                raise CRCMismatch(index, chunk.ctype, chunk.crc, computed)
        chunks.append(chunk)
        if chunk.ctype == CTYPE_IEND:
            return chunks, index - 1
        index += 1


def read_image(f: BinaryIO, *, strict: bool = False) -> Image:
    sig = read_signature(f)
    require_signature(sig)
    chunks, anchor = decode_stream(f, strict=strict)
    return Image(signature=sig, chunks=chunks, anchor=anchor)


def decode_image(data: bytes, *, strict: bool = False) -> Image:
    return read_image(io.BytesIO(data), strict=strict)


def write_image(f: BinaryIO, image: Image) -> None:
    f.write(image.signature)
    for chunk in image.chunks:
        write_chunk(f, chunk)


def encode(image: Image) -> bytes:
    buf = io.BytesIO()
    write_image(buf, image)
    return buf.getvalue()


def verify_chunks(image: Image) -> List[int]:
    """Indices of chunks whose stored CRC does not match type + data."""
    return [i for i, ch in enumerate(image.chunks) if not ch.crc_ok()]
