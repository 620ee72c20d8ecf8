import struct


# Magic
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"  # 8 bytes: 0x89 "PNG" CR LF 0x1A LF
SIGNATURE_SIZE = len(PNG_SIGNATURE)

# Well-known chunk types
CTYPE_IHDR = b"IHDR"
CTYPE_IDAT = b"IDAT"
CTYPE_IEND = b"IEND"

# Private, ancillary, unsafe-to-copy type carrying embedded payloads
PAYLOAD_CHUNK_TYPE = b"pUNK"

# Chunk framing (big endian)
#  - length u32
#  - type[4]
#  - data[length]
#  - crc u32 (CRC-32 over type + data)
CHUNK_HDR_STRUCT = struct.Struct(">I4s")
CHUNK_CRC_STRUCT = struct.Struct(">I")
TYPE_CODE_STRUCT = struct.Struct(">I")

# Largest length a chunk may declare (2^31 - 1)
MAX_CHUNK_LENGTH = 0x7FFFFFFF

# Chunk data is read in pieces of at most this size
READ_BLOCK_SIZE = 64 * 1024

# Extraction strategies
STRATEGY_INDEX = "index"
STRATEGY_SCAN = "scan"
STRATEGY_AUTO = "auto"
STRATEGIES = (STRATEGY_INDEX, STRATEGY_SCAN, STRATEGY_AUTO)
