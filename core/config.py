"""
core/config.py
Explicit scan configuration passed into ScanCoordinator at construction.

Built from a named timing profile and optionally overridden by the
``scan:`` section of config.yaml.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional, Tuple

from core.timing import get_timing
from utils.constants import (
    DEFAULT_LABEL_TEMPLATE, DEFAULT_TIMING, FALLBACK_PORTS, LABEL_TEMPLATES,
    MAX_RANGE_SIZE, PORT_MAX, PORT_MIN, TimingProfile,
)


@dataclass(frozen=True)
class ScanConfig:
    pool_size:          int   = 100
    connect_timeout_ms: float = 3000.0
    ping_timeout_ms:    float = 1000.0
    request_deadline_s: float = 300.0
    max_range_size:     int   = MAX_RANGE_SIZE
    use_icmp:           bool  = True
    fallback_ports:     Tuple[int, ...] = FALLBACK_PORTS
    label_template:     str   = DEFAULT_LABEL_TEMPLATE
    profile_name:       str   = "T3-Normal"

    def __post_init__(self):
        if self.pool_size < 1:
            raise ValueError(f"pool_size must be >= 1, got {self.pool_size}")
        if self.connect_timeout_ms <= 0 or self.ping_timeout_ms <= 0:
            raise ValueError("probe timeouts must be positive")
        if self.request_deadline_s <= 0:
            raise ValueError("request_deadline_s must be positive")
        if self.max_range_size < 1:
            raise ValueError(f"max_range_size must be >= 1, got {self.max_range_size}")
        for port in self.fallback_ports:
            if not (PORT_MIN <= port <= PORT_MAX):
                raise ValueError(f"fallback port {port} out of range")

    @property
    def connect_timeout_s(self) -> float:
        return self.connect_timeout_ms / 1000.0

    @property
    def ping_timeout_s(self) -> float:
        return self.ping_timeout_ms / 1000.0

    # ── Constructors ──────────────────────────────────────────────────────────

    @classmethod
    def from_profile(cls, timing: str | TimingProfile = DEFAULT_TIMING) -> "ScanConfig":
        profile = get_timing(timing) if isinstance(timing, str) else timing
        return cls(
            pool_size=profile.pool_size,
            connect_timeout_ms=profile.connect_timeout_ms,
            ping_timeout_ms=profile.ping_timeout_ms,
            request_deadline_s=profile.request_deadline_s,
            profile_name=profile.name,
        )

    @classmethod
    def from_mapping(
        cls,
        data: Optional[Mapping[str, Any]],
        timing: str | TimingProfile = DEFAULT_TIMING,
    ) -> "ScanConfig":
        """
        Profile defaults overridden by a config mapping.

        ``timing`` inside the mapping wins over the argument. A
        ``label_template`` may name a preset (endpoint, metrics, telnet)
        or be a literal format string. Unknown keys raise ValueError.
        """
        data = dict(data or {})
        base = cls.from_profile(data.pop("timing", timing))
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown scan config keys: {sorted(unknown)}")

        template = data.get("label_template")
        if template is not None:
            data["label_template"] = LABEL_TEMPLATES.get(template, template)
        if "fallback_ports" in data:
            data["fallback_ports"] = tuple(int(p) for p in data["fallback_ports"])
        return replace(base, **data)
