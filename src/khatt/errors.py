class KhattError(Exception):
    """Base class for all errors raised by khatt."""


class ConfigurationError(KhattError):
    """A required font, text or layout source is missing or malformed."""


class OutOfRangeError(KhattError, IndexError):
    """A page or line index outside of the loaded document."""

    def __init__(self, kind, index, count):
        self.kind = kind
        self.index = index
        self.count = count
        super().__init__("%s index %d out of range (0-%d)" % (kind, index,
                                                              count - 1))


class ResourceUnavailableError(KhattError):
    """The shaper or its font is not available (not loaded or closed)."""
