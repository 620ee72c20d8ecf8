from __future__ import annotations

import argparse
import os
import random
import sys
from typing import List, Optional, Tuple

from stegno.constants import CHUNK_HDR_STRUCT, CHUNK_CRC_STRUCT, SIGNATURE_SIZE
from stegno.errors import StegnoError
from stegno.image import read_image


def _flip_byte(path: str, offset: int, xor_val: int = 0xFF) -> None:
    if offset < 0:
        raise ValueError("Offset must be non-negative")
    with open(path, "r+b") as f:
        f.seek(offset)
        b = f.read(1)
        if not b:
            raise ValueError("Offset beyond end of file")
        f.seek(offset)
        f.write(bytes([b[0] ^ (xor_val & 0xFF)]))
        f.flush()
        os.fsync(f.fileno())


def _chunk_offsets(path: str) -> List[Tuple[bytes, int, int]]:
    """(type, data_offset, length) for each chunk, in file order."""
    with open(path, "rb") as f:
        png = read_image(f)
    out = []
    off = SIGNATURE_SIZE
    for ch in png.chunks:
        out.append((ch.ctype, off + CHUNK_HDR_STRUCT.size, ch.length))
        off += CHUNK_HDR_STRUCT.size + ch.length + CHUNK_CRC_STRUCT.size
    return out


def cmd_by_offset(args: argparse.Namespace) -> None:
    _flip_byte(args.image, args.offset, xor_val=args.xor)
    print(f"Flipped 1 byte at offset {args.offset}")


def cmd_chunk(args: argparse.Namespace) -> None:
    chunks = _chunk_offsets(args.image)
    if args.type is not None:
        want = args.type.encode("ascii")
        idx = next((i for i, (ctype, _o, _l) in enumerate(chunks) if ctype == want), None)
        if idx is None:
            raise ValueError(f"No {args.type} chunk in image")
    else:
        idx = args.index
        if idx < 0 or idx >= len(chunks):
            raise ValueError(f"Chunk index out of range (0..{len(chunks)-1})")
    ctype, data_off, length = chunks[idx]
    if args.crc:
        if args.within < 0 or args.within >= CHUNK_CRC_STRUCT.size:
            raise ValueError("--within must be 0..3 when targeting the CRC")
        off = data_off + length + args.within
    else:
        if args.within < 0 or args.within >= length:
            raise ValueError(f"--within must be within chunk data (0..{length-1})")
        off = data_off + args.within
    _flip_byte(args.image, off, xor_val=args.xor)
    where = "CRC" if args.crc else "data"
    print(f"Flipped 1 byte in chunk {idx} ({ctype.decode('latin-1')}) {where} at offset {off}")


def cmd_random(args: argparse.Namespace) -> None:
    rng = random.Random(args.seed)
    # Chunk data only; lengths, types and CRC fields stay intact
    bodies = [(off, length) for _ctype, off, length in _chunk_offsets(args.image) if length]
    if not bodies:
        raise ValueError("Image has no chunk data to corrupt")
    total = sum(length for _off, length in bodies)
    for _ in range(args.count):
        pick = rng.randrange(total)
        for off, length in bodies:
            if pick < length:
                _flip_byte(args.image, off + pick, xor_val=args.xor)
                break
            pick -= length
    print(f"Flipped {args.count} byte(s) at random offsets inside chunk data")


def main(argv: Optional[list[str]] = None) -> None:
    ap = argparse.ArgumentParser(prog="stegno.corrupt", description="Corrupt PNG images for testing")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_off = sub.add_parser("by-offset", help="Flip one byte at an absolute file offset")
    p_off.add_argument("image", help="Path to PNG image")
    p_off.add_argument("--offset", type=int, required=True, help="Absolute byte offset in file")
    p_off.add_argument("--xor", type=lambda x: int(x, 0), default=0xFF, help="XOR mask to apply (default 0xFF)")
    p_off.set_defaults(func=cmd_by_offset)

    p_chunk = sub.add_parser("chunk", help="Flip a byte inside one chunk's data or CRC")
    p_chunk.add_argument("image", help="Path to PNG image")
    which = p_chunk.add_mutually_exclusive_group()
    which.add_argument("--index", type=int, default=0, help="Chunk index (0-based, default 0)")
    which.add_argument("--type", help="First chunk of this 4-letter type")
    p_chunk.add_argument("--within", type=int, default=0, help="Byte offset within the data or CRC (default 0)")
    p_chunk.add_argument("--crc", action="store_true", help="Target the stored CRC instead of the data")
    p_chunk.add_argument("--xor", type=lambda x: int(x, 0), default=0xFF, help="XOR mask to apply (default 0xFF)")
    p_chunk.set_defaults(func=cmd_chunk)

    p_rand = sub.add_parser("random", help="Flip N random bytes inside chunk data")
    p_rand.add_argument("image", help="Path to PNG image")
    p_rand.add_argument("--count", type=int, default=1, help="Number of random byte flips (default 1)")
    p_rand.add_argument("--seed", type=int, default=None, help="PRNG seed for reproducibility")
    p_rand.add_argument("--xor", type=lambda x: int(x, 0), default=0xFF, help="XOR mask to apply (default 0xFF)")
    p_rand.set_defaults(func=cmd_random)

    args = ap.parse_args(argv)
    try:
        args.func(args)
    except (StegnoError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
