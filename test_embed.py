from __future__ import annotations

import base64
import os
import struct
import unittest
import zlib

from stegno.chunks import Chunk
from stegno.constants import (
    PNG_SIGNATURE,
    PAYLOAD_CHUNK_TYPE,
    CTYPE_IEND,
    STRATEGY_AUTO,
    STRATEGY_INDEX,
    STRATEGY_SCAN,
)
from stegno.crc32 import checksum
from stegno.embed import embed, extract, find_payload_indices, strip_payloads
from stegno.errors import EmbedWithoutAnchor, MarkerNotFound
from stegno.image import Image, decode_image, encode, verify_chunks


# 1x1 RGBA image with IHDR, IDAT and IEND
SAMPLE_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR4nGP4z8DwHwAFAAH/iZk9HQAAAABJRU5ErkJggg=="
)


def _raw_chunk(ctype: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + ctype + data + struct.pack(">I", zlib.crc32(ctype + data) & 0xFFFFFFFF)


def _minimal_png(*middle: bytes) -> bytes:
    return PNG_SIGNATURE + _raw_chunk(b"IHDR", bytes(13)) + b"".join(middle) + _raw_chunk(b"IEND", b"")


class EmbedTests(unittest.TestCase):
    def test_embed_hello(self):
        png = decode_image(_minimal_png())
        embed(png, b"hello")
        self.assertEqual([c.ctype for c in png.chunks], [b"IHDR", PAYLOAD_CHUNK_TYPE, CTYPE_IEND])
        payload = png.chunks[1]
        self.assertEqual(payload.data, b"hello")
        self.assertEqual(payload.length, 5)
        self.assertTrue(payload.crc_ok())

        again = decode_image(encode(png), strict=True)
        self.assertEqual(len(again.chunks), 3)
        self.assertEqual(again.anchor, 1)
        self.assertEqual(extract(again), b"hello")

    def test_embed_empty_payload(self):
        png = decode_image(_minimal_png())
        embed(png, b"")
        ch = png.chunks[png.anchor]
        self.assertEqual(ch.length, 0)
        self.assertEqual(ch.crc, checksum(PAYLOAD_CHUNK_TYPE, b""))
        self.assertEqual(extract(decode_image(encode(png))), b"")

    def test_roundtrip_sample_png(self):
        payloads = [b"x", os.urandom(4096), "héllo wörld".encode("utf-8"), bytes(range(256)) * 3]
        for payload in payloads:
            png = decode_image(SAMPLE_PNG, strict=True)
            out = encode(embed(png, payload))
            self.assertEqual(extract(decode_image(out, strict=True)), payload)

    def test_ordering_invariant(self):
        raw = _minimal_png(_raw_chunk(b"IDAT", b"\x00" * 32), _raw_chunk(b"tEXt", b"a\x00b"))
        png = decode_image(raw)
        before = [c.ctype for c in png.chunks]
        embed(png, b"payload")
        types = [c.ctype for c in png.chunks]
        self.assertEqual(types[-1], CTYPE_IEND)
        self.assertEqual(types[-2], PAYLOAD_CHUNK_TYPE)
        self.assertEqual(types[:-2], before[:-1])
        self.assertEqual(types.count(CTYPE_IEND), 1)

    def test_original_chunks_untouched(self):
        png = decode_image(SAMPLE_PNG)
        originals = [(c.ctype, c.data, c.crc) for c in png.chunks[:-1]]
        embed(png, b"secret")
        self.assertEqual([(c.ctype, c.data, c.crc) for c in png.chunks[:-2]], originals)
        self.assertEqual(verify_chunks(png), [])

    def test_encoded_layout(self):
        png = decode_image(_minimal_png())
        out = encode(embed(png, b"hello"))
        ihdr_end = 8 + 12 + 13
        self.assertEqual(out[ihdr_end : ihdr_end + 8], struct.pack(">I", 5) + b"pUNK")
        self.assertEqual(out[ihdr_end + 8 : ihdr_end + 13], b"hello")
        self.assertEqual(out[ihdr_end + 13 : ihdr_end + 17], struct.pack(">I", zlib.crc32(b"pUNKhello") & 0xFFFFFFFF))
        self.assertEqual(out[ihdr_end + 17 :], _raw_chunk(b"IEND", b""))

    def test_embed_drops_chunks_after_iend(self):
        png = decode_image(_minimal_png())
        png.chunks.append(Chunk(length=1, ctype=b"tEXt", data=b"z", crc=checksum(b"tEXt", b"z")))
        embed(png, b"p")
        self.assertEqual([c.ctype for c in png.chunks], [b"IHDR", PAYLOAD_CHUNK_TYPE, CTYPE_IEND])

    def test_embed_iend_only(self):
        png = decode_image(PNG_SIGNATURE + _raw_chunk(b"IEND", b""))
        self.assertEqual(png.anchor, -1)
        with self.assertRaises(MarkerNotFound):
            extract(png)
        embed(png, b"first")
        self.assertEqual([c.ctype for c in png.chunks], [PAYLOAD_CHUNK_TYPE, CTYPE_IEND])
        self.assertEqual(png.anchor, 0)
        self.assertEqual(extract(decode_image(encode(png))), b"first")

    def test_embed_without_anchor(self):
        png = Image()
        png.append(Chunk(length=0, ctype=b"IHDR", data=b"", crc=checksum(b"IHDR", b"")))
        with self.assertRaises(EmbedWithoutAnchor):
            embed(png, b"data")

    def test_embed_on_programmatic_image(self):
        png = Image()
        png.append(Chunk(length=0, ctype=b"IHDR", data=b"", crc=checksum(b"IHDR", b"")))
        png.append(Chunk(length=0, ctype=b"IEND", data=b"", crc=checksum(b"IEND", b"")))
        embed(png, b"built")
        self.assertEqual(extract(png), b"built")

    def test_in_memory_extract_after_embed(self):
        png = decode_image(SAMPLE_PNG)
        embed(png, b"in memory")
        self.assertEqual(extract(png), b"in memory")

    def test_double_embed(self):
        png = decode_image(_minimal_png())
        embed(png, b"one")
        embed(png, b"two")
        self.assertEqual(
            [c.ctype for c in png.chunks],
            [b"IHDR", PAYLOAD_CHUNK_TYPE, PAYLOAD_CHUNK_TYPE, CTYPE_IEND],
        )
        again = decode_image(encode(png))
        self.assertEqual(extract(again), b"two")
        self.assertEqual(find_payload_indices(again), [1, 2])

    def test_custom_chunk_type(self):
        png = decode_image(_minimal_png())
        embed(png, b"custom", chunk_type=b"stGO")
        again = decode_image(encode(png))
        self.assertEqual(extract(again, chunk_type=b"stGO"), b"custom")
        with self.assertRaises(MarkerNotFound):
            extract(again)
        with self.assertRaises(ValueError):
            embed(png, b"x", chunk_type=b"IEND")


class ExtractTests(unittest.TestCase):
    def test_missing_marker(self):
        png = decode_image(_minimal_png())
        for strategy in (STRATEGY_INDEX, STRATEGY_SCAN, STRATEGY_AUTO):
            with self.assertRaises(MarkerNotFound):
                extract(png, strategy=strategy)

    def test_missing_marker_sample_png(self):
        with self.assertRaises(MarkerNotFound):
            extract(decode_image(SAMPLE_PNG))

    def test_no_anchor(self):
        with self.assertRaises(MarkerNotFound):
            extract(Image())

    def test_scan_finds_payload_away_from_anchor(self):
        # Payload chunk followed by another ancillary chunk
        raw = _minimal_png(_raw_chunk(b"pUNK", b"hidden"), _raw_chunk(b"tEXt", b"c\x00d"))
        png = decode_image(raw)
        with self.assertRaises(MarkerNotFound):
            extract(png, strategy=STRATEGY_INDEX)
        self.assertEqual(extract(png, strategy=STRATEGY_SCAN), b"hidden")
        self.assertEqual(extract(png, strategy=STRATEGY_AUTO), b"hidden")

    def test_scan_returns_last(self):
        png = decode_image(_minimal_png(_raw_chunk(b"pUNK", b"old"), _raw_chunk(b"pUNK", b"new")))
        self.assertEqual(extract(png, strategy=STRATEGY_SCAN), b"new")

    def test_unknown_strategy(self):
        png = decode_image(_minimal_png())
        with self.assertRaises(ValueError):
            extract(png, strategy="guess")

    def test_returns_data_unmodified(self):
        payload = b"\x00\xff" * 100
        png = decode_image(_minimal_png())
        embed(png, payload)
        self.assertEqual(extract(decode_image(encode(png))), payload)


class StripTests(unittest.TestCase):
    def test_strip_then_embed(self):
        png = decode_image(_minimal_png())
        embed(png, b"one")
        embed(png, b"two")
        self.assertEqual(strip_payloads(png), 2)
        self.assertEqual([c.ctype for c in png.chunks], [b"IHDR", CTYPE_IEND])
        self.assertEqual(png.anchor, 0)
        embed(png, b"three")
        again = decode_image(encode(png))
        self.assertEqual(find_payload_indices(again), [1])
        self.assertEqual(extract(again), b"three")

    def test_strip_nothing(self):
        png = decode_image(_minimal_png())
        self.assertEqual(strip_payloads(png), 0)
        self.assertEqual(png.anchor, 0)

    def test_strip_keeps_other_chunks(self):
        raw = _minimal_png(_raw_chunk(b"IDAT", b"abc"), _raw_chunk(b"pUNK", b"x"), _raw_chunk(b"tEXt", b"k\x00v"))
        png = decode_image(raw)
        self.assertEqual(strip_payloads(png), 1)
        self.assertEqual([c.ctype for c in png.chunks], [b"IHDR", b"IDAT", b"tEXt", CTYPE_IEND])
        self.assertEqual(png.anchor, 2)


if __name__ == "__main__":
    unittest.main()
