class StegnoError(Exception):
    """Base class for stegno-specific errors."""


# Stream/IO
class ShortReadError(StegnoError, OSError):
    """The underlying stream ended in the middle of a field."""


# Container format
class FormatError(StegnoError):
    pass


class SignatureMismatch(FormatError):
    pass


class TruncatedContainer(FormatError):
    """The chunk stream ended before the IEND chunk was read."""


class CRCMismatch(StegnoError):
    def __init__(self, index: int, ctype: bytes, stored: int, computed: int):
        self.index = index
        self.ctype = ctype
        self.stored = stored
        self.computed = computed
        super().__init__(
            f"CRC mismatch in chunk {index} ({ctype.decode('latin-1')}): "
            f"stored 0x{stored:08x}, computed 0x{computed:08x}"
        )


# Embedding/extraction
class MarkerNotFound(StegnoError):
    pass


class EmbedWithoutAnchor(StegnoError):
    pass
