"""Exception types raised by pybloom_chain."""


class BloomError(Exception):
    """Base class for every error raised by this package."""


class InvalidParameters(BloomError, ValueError):
    """A filter was constructed with out-of-domain parameters."""


class InvalidSize(InvalidParameters):
    """A bit vector was requested with a non-positive bit count."""


class IndexOutOfRange(BloomError, IndexError):
    """A bit vector was accessed outside ``[0, bit_count)``."""


class MalformedState(BloomError, ValueError):
    """Persisted filter state is incomplete or inconsistent."""
