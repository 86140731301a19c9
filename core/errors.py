"""
core/errors.py
Error taxonomy.

Request-level (abort before any probe runs, surfaced to the caller):
  InvalidRangeFormat, RangeTooLarge, InvalidPort
Target-level (raised inside a probe, always absorbed into a negative outcome):
  ProbeTimeout, ProbeNetworkError
Fatal to the request (5xx):
  InternalSchedulingError
"""


class ScanError(Exception):
    """Base class for every error raised by the scan engine."""


class ScanRequestError(ScanError, ValueError):
    """The request itself is invalid; nothing was probed."""


class InvalidRangeFormat(ScanRequestError):
    """Raised when an IP range expression cannot be parsed."""


class RangeTooLarge(ScanRequestError):
    """Raised when a range expands to more addresses than allowed."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Range expands to {size} addresses, exceeds limit {limit}"
        )
        self.size = size
        self.limit = limit


class InvalidPort(ScanRequestError):
    """Raised when port mode is requested without a usable port."""


class ProbeError(ScanError):
    """Single-target failure. Never propagates out of a probe."""


class ProbeTimeout(ProbeError):
    pass


class ProbeNetworkError(ProbeError):
    pass


class InternalSchedulingError(ScanError):
    """Worker pool or cancellation plumbing failed."""
