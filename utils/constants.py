"""
RangeScan Constants & Enums
Scan modes, per-target probe states and named timing presets.
"""

from enum import IntEnum, Enum
from dataclasses import dataclass


# ─── Per-target probe states ─────────────────────────────────────────────────
class TargetState(IntEnum):
    PENDING   = 0
    PROBING   = 1
    SUCCEEDED = 2
    FAILED    = 3
    TIMED_OUT = 4


# ─── Scan Modes ───────────────────────────────────────────────────────────────
class ScanMode(str, Enum):
    PORT         = "port"           # TCP connect to one port per host
    REACHABILITY = "reachability"   # ICMP echo, TCP-connect fallback


# ─── How a reachability verdict was reached ──────────────────────────────────
class ProbeMethod(str, Enum):
    ICMP = "icmp"
    TCP  = "tcp"      # liveness heuristic only, never a port status
    NONE = "none"


# ─── Timing Presets (nmap -T2 to -T5 naming) ─────────────────────────────────
@dataclass(frozen=True)
class TimingProfile:
    """Named set of pool / timeout defaults."""
    name: str
    pool_size: int
    connect_timeout_ms: float
    ping_timeout_ms: float
    request_deadline_s: float


TIMING_PROFILES = {
    "polite":     TimingProfile("T2-Polite",     pool_size=20,
                                connect_timeout_ms=5000, ping_timeout_ms=3000,
                                request_deadline_s=900.0),

    "normal":     TimingProfile("T3-Normal",     pool_size=100,
                                connect_timeout_ms=3000, ping_timeout_ms=1000,
                                request_deadline_s=300.0),

    "aggressive": TimingProfile("T4-Aggressive", pool_size=256,
                                connect_timeout_ms=1000, ping_timeout_ms=1000,
                                request_deadline_s=120.0),

    "insane":     TimingProfile("T5-Insane",     pool_size=512,
                                connect_timeout_ms=300, ping_timeout_ms=1000,
                                request_deadline_s=60.0),
}

DEFAULT_TIMING = "normal"

# ─── Range / port limits ──────────────────────────────────────────────────────
PORT_MIN        = 1
PORT_MAX        = 65535
MAX_RANGE_SIZE  = 65536   # one /16

# Ports tried when ICMP is unavailable; a RST on any of them proves the host is up.
FALLBACK_PORTS = (80, 443, 22, 445, 139, 3389, 23, 8080)

# ─── Service label templates ─────────────────────────────────────────────────
LABEL_TEMPLATES = {
    "endpoint": "{scheme}://{ip}:{port}",
    "metrics":  "http://{ip}:{port}/metrics",
    "telnet":   "telnet://{ip}:{port}",
}
DEFAULT_LABEL_TEMPLATE = LABEL_TEMPLATES["endpoint"]

# ─── Layering Contract (hard import rules - enforced by tests) ───────────────
# core      → may import: utils
# utils     → may import: stdlib only
# dashboard → may import: core, utils
# NEVER: core imports dashboard or flask
