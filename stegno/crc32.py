"""
CRC-32 (ISO-HDLC) as used by PNG chunks, backed by zlib.
"""

import zlib


def crc32(data: bytes, crc: int = 0) -> int:
    return zlib.crc32(data, crc) & 0xFFFFFFFF


def checksum(type_bytes: bytes, data: bytes) -> int:
    """CRC of a chunk: the 4 type bytes followed by the data, no length field."""
    return crc32(data, crc32(type_bytes))
