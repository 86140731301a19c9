"""
core/range_expander.py
IPv4 range expression parser.

Accepts:
  "192.168.1.10"                   → [192.168.1.10]
  "192.168.1.1-192.168.1.20"       → [.1 .. .20]
  "192.168.1.1-20"                 → [.1 .. .20]   (last-octet short form)
  "192.168.1.0/24"                 → [.1 .. .254]  (host addresses only)
  "10.0.0.1,10.0.0.5-7"            → merged, sorted, deduped

Rejects (InvalidRangeFormat):
  "not-an-ip", "", "300.1.1.1", "10.0.0.9-10.0.0.1", "::1", "1.2.3.4/33"
Rejects (RangeTooLarge):
  anything expanding to more distinct addresses than the configured ceiling
"""

from __future__ import annotations

import ipaddress
import re
from typing import List, Tuple

from core.errors import InvalidRangeFormat, RangeTooLarge
from utils.constants import MAX_RANGE_SIZE


# (first, last) inclusive integer bounds of one token
_Span = Tuple[int, int]


class RangeExpander:
    """
    Expand an IPv4 range expression into an ascending list of addresses.

    Every error raises InvalidRangeFormat or RangeTooLarge with a
    human-readable message. The size ceiling is checked on integer bounds
    before any address list is built.
    """

    _SHORT_RE = re.compile(r"^(\d{1,3}\.\d{1,3}\.\d{1,3}\.)(\d{1,3})-(\d{1,3})$")

    def __init__(self, max_size: int = MAX_RANGE_SIZE):
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self.max_size = max_size

    # ── Public API ────────────────────────────────────────────────────────────

    def expand(self, spec: str) -> List[str]:
        """Parse spec → ascending deduplicated list of dotted addresses."""
        spans = self._merge(self._parse(spec))
        return [
            str(ipaddress.IPv4Address(value))
            for first, last in spans
            for value in range(first, last + 1)
        ]

    def count(self, spec: str) -> int:
        """Number of distinct addresses spec expands to. Nothing is materialized."""
        return self._size(self._merge(self._parse(spec)))

    def validate(self, spec: str) -> Tuple[bool, str]:
        """Return (ok, error_message). Never raises."""
        try:
            self.count(spec)
            return True, ""
        except (InvalidRangeFormat, RangeTooLarge) as exc:
            return False, str(exc)

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _parse(self, spec: str) -> List[_Span]:
        if not isinstance(spec, str):
            raise InvalidRangeFormat(f"Expected string, got {type(spec).__name__}")

        spec = spec.strip()
        if not spec:
            raise InvalidRangeFormat("IP range is empty")

        spans: List[_Span] = []
        for part in spec.split(","):
            part = part.strip()
            if not part:
                continue
            spans.append(self._parse_token(part))

        if not spans:
            raise InvalidRangeFormat(f"No addresses parsed from: {spec!r}")
        return spans

    def _parse_token(self, token: str) -> _Span:
        if "/" in token:
            return self._parse_cidr(token)

        m = self._SHORT_RE.match(token)
        if m:
            prefix, lo, hi = m.groups()
            return self._span(prefix + lo, prefix + hi, token)

        if "-" in token:
            parts = token.split("-")
            if len(parts) != 2:
                raise InvalidRangeFormat(
                    f"Invalid range {token!r}: expected start-end"
                )
            return self._span(parts[0].strip(), parts[1].strip(), token)

        value = self._address(token)
        return value, value

    def _span(self, start: str, end: str, token: str) -> _Span:
        first, last = self._address(start), self._address(end)
        if first > last:
            raise InvalidRangeFormat(f"Invalid range {token!r}: start > end")
        return first, last

    @staticmethod
    def _address(text: str) -> int:
        try:
            return int(ipaddress.IPv4Address(text))
        except (ipaddress.AddressValueError, ValueError):
            raise InvalidRangeFormat(f"Invalid IPv4 address: {text!r}") from None

    @staticmethod
    def _parse_cidr(token: str) -> _Span:
        try:
            net = ipaddress.IPv4Network(token, strict=False)
        except (ipaddress.AddressValueError, ipaddress.NetmaskValueError, ValueError):
            raise InvalidRangeFormat(f"Invalid CIDR: {token!r}") from None

        first, last = int(net.network_address), int(net.broadcast_address)
        # Network and broadcast addresses are not hosts, except in /31 and /32
        if net.prefixlen < 31:
            first, last = first + 1, last - 1
        return first, last

    def _merge(self, spans: List[_Span]) -> List[_Span]:
        merged: List[_Span] = []
        for first, last in sorted(spans):
            if merged and first <= merged[-1][1] + 1:
                merged[-1] = (merged[-1][0], max(merged[-1][1], last))
            else:
                merged.append((first, last))

        size = self._size(merged)
        if size > self.max_size:
            raise RangeTooLarge(size, self.max_size)
        return merged

    @staticmethod
    def _size(spans: List[_Span]) -> int:
        return sum(last - first + 1 for first, last in spans)


# ── Module-level convenience ──────────────────────────────────────────────────

_default_expander = RangeExpander()


def expand_range(spec: str) -> List[str]:
    return _default_expander.expand(spec)
