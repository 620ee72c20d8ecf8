from __future__ import annotations

import io
from dataclasses import dataclass
from typing import BinaryIO, Optional

from .constants import (
    CHUNK_CRC_STRUCT,
    CHUNK_HDR_STRUCT,
    MAX_CHUNK_LENGTH,
    PAYLOAD_CHUNK_TYPE,
    READ_BLOCK_SIZE,
    TYPE_CODE_STRUCT,
)
from .crc32 import checksum
from .errors import FormatError, ShortReadError


# Bit 5 of each type byte (lowercase letter) flags a property:
#  - byte 0: ancillary
#  - byte 1: private
#  - byte 2: reserved, must be 0
#  - byte 3: safe to copy
_PROPERTY_BIT = 0x20


@dataclass
class Chunk:
    length: int
    ctype: bytes
    data: bytes
    crc: int

    @property
    def type_code(self) -> int:
        return TYPE_CODE_STRUCT.unpack(self.ctype)[0]

    @property
    def type_name(self) -> str:
        return self.ctype.decode("latin-1")

    @property
    def is_critical(self) -> bool:
        return not self.ctype[0] & _PROPERTY_BIT

    @property
    def is_ancillary(self) -> bool:
        return bool(self.ctype[0] & _PROPERTY_BIT)

    @property
    def is_private(self) -> bool:
        return bool(self.ctype[1] & _PROPERTY_BIT)

    @property
    def is_safe_to_copy(self) -> bool:
        return bool(self.ctype[3] & _PROPERTY_BIT)

    def computed_crc(self) -> int:
        return checksum(self.ctype, self.data)

    def crc_ok(self) -> bool:
        return self.computed_crc() == self.crc

    def pack(self) -> bytes:
        buf = io.BytesIO()
        write_chunk(buf, self)
        return buf.getvalue()


def read_exact(f: BinaryIO, n: int) -> bytes:
    # n comes from an untrusted length field; never request more than one block
    buf = bytearray()
    while len(buf) < n:
        piece = f.read(min(READ_BLOCK_SIZE, n - len(buf)))
        if not piece:
            raise ShortReadError(f"Unexpected EOF: wanted {n} bytes, got {len(buf)}")
        buf += piece
    return bytes(buf)


def read_chunk(f: BinaryIO) -> Optional[Chunk]:
    """Read one chunk; return None on a clean EOF at a chunk boundary."""
    first = f.read(CHUNK_HDR_STRUCT.size)
    if not first:
        return None
    if len(first) != CHUNK_HDR_STRUCT.size:
        raise ShortReadError("Chunk header truncated")
    length, ctype = CHUNK_HDR_STRUCT.unpack(first)
    if length > MAX_CHUNK_LENGTH:
        raise FormatError(f"Chunk length {length} exceeds 2^31-1")
    data = read_exact(f, length)
    (crc,) = CHUNK_CRC_STRUCT.unpack(read_exact(f, CHUNK_CRC_STRUCT.size))
    return Chunk(length=length, ctype=ctype, data=data, crc=crc)


def write_chunk(f: BinaryIO, chunk: Chunk) -> None:
    # Fields are written as given; the caller owns length/crc consistency
    f.write(CHUNK_HDR_STRUCT.pack(chunk.length, chunk.ctype))
    f.write(chunk.data)
    f.write(CHUNK_CRC_STRUCT.pack(chunk.crc))


def validate_chunk_type(ctype: bytes) -> bytes:
    if not isinstance(ctype, (bytes, bytearray, memoryview)):
        raise TypeError("chunk type must be a bytes-like object")
    ctype = bytes(ctype)
    if len(ctype) != 4:
        raise ValueError("chunk type must be exactly 4 ASCII bytes")
    if not all(65 <= c <= 90 or 97 <= c <= 122 for c in ctype):
        raise ValueError("chunk type must contain ASCII letters only")
    if not ctype[0] & _PROPERTY_BIT:
        raise ValueError("chunk type must be ancillary (first letter lowercase)")
    return ctype


def build_payload_chunk(payload: bytes, chunk_type: bytes = PAYLOAD_CHUNK_TYPE) -> Chunk:
    ctype = validate_chunk_type(chunk_type)
    data = bytes(payload)
    return Chunk(length=len(data), ctype=ctype, data=data, crc=checksum(ctype, data))
