"""
stegno: hide data inside PNG images as a private ancillary chunk.

- Chunk codec for the PNG container (signature, length/type/data/CRC-32 chunks)
- Optional strict decoding that verifies every chunk CRC
- Embedding of an opaque payload as a ``pUNK`` chunk right before IEND,
  and extraction by recorded insertion point or by scanning
- CLI to embed, extract, list and verify (``stegno`` / ``python -m stegno.cli``)

Payloads are stored in the clear; no encryption or authentication is applied.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "errors",
    "signature",
    "crc32",
    "chunks",
    "image",
    "embed",
]

# Programmatic API: stegno.image (read_image/decode_image/encode) and
# stegno.embed (embed/extract); the CLI functions live in stegno.cli.
