from __future__ import annotations

from typing import BinaryIO

from .constants import PNG_SIGNATURE, SIGNATURE_SIZE
from .errors import ShortReadError, SignatureMismatch


def read_signature(f: BinaryIO) -> bytes:
    raw = f.read(SIGNATURE_SIZE)
    if len(raw) != SIGNATURE_SIZE:
        raise ShortReadError("Signature too short")
    return raw


def validate(sig: bytes) -> bool:
    """Return True only if ``sig`` is exactly the 8-byte PNG signature.

    Every byte is compared: besides the "PNG" marker the signature carries
    the high-bit byte, CR LF, the DOS EOF byte and LF that catch 7-bit
    channels and newline translation.
    """
    return bytes(sig) == PNG_SIGNATURE


def require_signature(sig: bytes) -> None:
    if not validate(sig):
        raise SignatureMismatch("Not a PNG file (bad signature)")
