from __future__ import annotations

import os
import sys
import argparse

from typing import List, Optional

from stegno.constants import PAYLOAD_CHUNK_TYPE, STRATEGIES, STRATEGY_AUTO
from stegno.embed import embed, extract, find_payload_indices, strip_payloads
from stegno.errors import (
    StegnoError,
    FormatError,
    ShortReadError,
)
from stegno.image import Image, read_image, write_image, verify_chunks


def _load(path: str, *, strict: bool = False) -> Image:
    with open(path, "rb") as fh:
        return read_image(fh, strict=strict)


def _chunk_type_arg(value: Optional[str]) -> bytes:
    if value is None:
        return PAYLOAD_CHUNK_TYPE
    return value.encode("ascii")


def _atomic_write(path: str, write) -> None:
    """Write to a sibling temp file, then rename over ``path``."""
    tmp = f"{path}.tmp"
    try:
        with open(tmp, "wb") as fh:
            write(fh)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except OSError:
        try:
            os.remove(tmp)
        except OSError:
            pass
        raise


def cmd_embed(
    image_path: str,
    output: str,
    *,
    message: Optional[str] = None,
    file: Optional[str] = None,
    chunk_type: Optional[str] = None,
    replace: bool = False,
) -> bool:
    """Hide a message or a file's contents in a copy of a PNG image.

    Args:
        image_path: Source PNG path.
        output: Destination PNG path.
        message: Text to embed (UTF-8).
        file: Path of a file whose bytes are embedded.
        chunk_type: Override for the 4-letter payload chunk type.
        replace: Remove existing payload chunks of the same type first.
    """
    if (message is None) == (file is None):
        raise ValueError("Provide exactly one of --message or --file")
    if message is not None:
        payload = message.encode("utf-8")
    else:
        with open(file, "rb") as fh:
            payload = fh.read()
    ctype = _chunk_type_arg(chunk_type)
    png = _load(image_path)
    if replace:
        removed = strip_payloads(png, ctype)
        if removed:
            print(f"Removed {removed} existing payload chunk(s)")
    elif find_payload_indices(png, ctype):
        print(
            "Warning: image already carries a payload chunk; the new payload is added after it.",
            file=sys.stderr,
        )
    embed(png, payload, chunk_type=ctype)
    _atomic_write(output, lambda fh: write_image(fh, png))
    print(f"[+] {output} written ({len(payload)} payload bytes)")
    return True


def cmd_extract(
    image_path: str,
    *,
    output: Optional[str] = None,
    dump: bool = False,
    strategy: str = STRATEGY_AUTO,
    chunk_type: Optional[str] = None,
    strict: bool = False,
) -> bool:
    """Recover the payload embedded in a PNG image.

    Args:
        image_path: PNG path.
        output: Write the payload bytes here.
        dump: Print the payload to stdout.
        strategy: How the payload chunk is located (index, scan or auto).
        chunk_type: Override for the 4-letter payload chunk type.
        strict: Reject the image if any chunk CRC does not match.
    """
    if output is None and not dump:
        raise ValueError("Provide --output or --dump")
    png = _load(image_path, strict=strict)
    data = extract(png, strategy=strategy, chunk_type=_chunk_type_arg(chunk_type))
    if output is not None:
        _atomic_write(output, lambda fh: fh.write(data))
        print(f"[+] {output} written ({len(data)} bytes)")
    if dump:
        print("DATA:")
        print(data.decode("utf-8", errors="replace"))
    return True


def cmd_chunks(image_path: str) -> bool:
    """List the chunks of a PNG image.

    Args:
        image_path: PNG path.
    """
    png = _load(image_path)
    print(f"Image: {image_path}")
    print(f"  Chunks: {len(png.chunks)}")
    print(f"  Insertion point: {png.anchor}")
    for i, ch in enumerate(png.chunks):
        flags = "".join(
            (
                "C" if ch.is_critical else "a",
                "p" if ch.is_private else "-",
                "s" if ch.is_safe_to_copy else "-",
            )
        )
        state = "ok" if ch.crc_ok() else "BAD"
        print(f"{i}\t{ch.type_name}\t{flags}\t{ch.length}\t0x{ch.crc:08x}\t{state}")
    return True


def cmd_verify(image_path: str) -> bool:
    """Check every chunk's CRC.

    Args:
        image_path: PNG path.

    Prints:
        "OK" when every CRC matches, otherwise the bad chunks and "FAIL".
    """
    png = _load(image_path)
    bad = verify_chunks(png)
    for i in bad:
        ch = png.chunks[i]
        print(
            f"Chunk {i} ({ch.type_name}): stored 0x{ch.crc:08x}, computed 0x{ch.computed_crc():08x}",
            file=sys.stderr,
        )
    print("FAIL" if bad else "OK")
    return not bad


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="stegno",
        description="Hide data in a PNG image as a private ancillary chunk",
        epilog="Payloads are stored in the clear; anyone who reads the chunk can read the data.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    # embed
    ap_embed = sub.add_parser("embed", help="Embed a message or file")
    ap_embed.add_argument("image", help="Source PNG path")
    ap_embed.add_argument("output", help="Output PNG path")
    src = ap_embed.add_mutually_exclusive_group(required=True)
    src.add_argument("--message", help="Message to hide")
    src.add_argument("--file", help="File whose contents are hidden")
    ap_embed.add_argument("--chunk-type", help=f"Payload chunk type (default {PAYLOAD_CHUNK_TYPE.decode()})")
    ap_embed.add_argument("--replace", action="store_true", help="Drop existing payload chunks before embedding")

    # extract
    ap_extract = sub.add_parser("extract", help="Extract embedded data")
    ap_extract.add_argument("image", help="PNG path")
    ap_extract.add_argument("--output", help="Write payload to this path")
    ap_extract.add_argument("--dump", action="store_true", help="Print payload to stdout")
    ap_extract.add_argument(
        "--strategy",
        choices=list(STRATEGIES),
        default=STRATEGY_AUTO,
        help=(
            "How to locate the payload chunk (index: slot before IEND; "
            "scan: last chunk of the payload type; auto: index then scan). Default: auto"
        ),
    )
    ap_extract.add_argument("--chunk-type", help=f"Payload chunk type (default {PAYLOAD_CHUNK_TYPE.decode()})")
    ap_extract.add_argument("--strict", action="store_true", help="Fail on the first chunk whose CRC does not match")

    ap_chunks = sub.add_parser("chunks", help="List image chunks")
    ap_chunks.add_argument("image", help="PNG path")

    ap_verify = sub.add_parser("verify", help="Verify chunk CRCs")
    ap_verify.add_argument("image", help="PNG path")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "embed":
            cmd_embed(
                args.image,
                args.output,
                message=args.message,
                file=args.file,
                chunk_type=args.chunk_type,
                replace=args.replace,
            )
        elif args.cmd == "extract":
            cmd_extract(
                args.image,
                output=args.output,
                dump=args.dump,
                strategy=args.strategy,
                chunk_type=args.chunk_type,
                strict=args.strict,
            )
        elif args.cmd == "chunks":
            cmd_chunks(args.image)
        elif args.cmd == "verify":
            ok = cmd_verify(args.image)
            sys.exit(0 if ok else 1)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except (StegnoError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        if isinstance(e, (FormatError, ShortReadError)):
            print("Hint: the input does not look like a complete PNG file.", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
