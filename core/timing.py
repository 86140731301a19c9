"""
core/timing.py
Timing profile lookup and a probe-rate meter.
"""

from __future__ import annotations

import time

from utils.constants import TimingProfile, TIMING_PROFILES, DEFAULT_TIMING


# ─── Probe Rate Meter ─────────────────────────────────────────────────────────

class RateMeter:
    """Probes completed per second since construction."""

    def __init__(self):
        self._total = 0.0
        self._start = time.monotonic()

    def update(self, amount: float = 1.0) -> None:
        self._total += amount

    def overall_rate(self) -> float:
        elapsed = time.monotonic() - self._start
        return self._total / elapsed if elapsed > 0 else 0.0

    @property
    def total(self) -> float:
        return self._total


# ─── Convenience factory ──────────────────────────────────────────────────────

def get_timing(name: str = DEFAULT_TIMING) -> TimingProfile:
    """
    Get a timing profile by name.
    Accepts: polite, normal, aggressive, insane
             or T2 .. T5 shorthand.
    """
    shorthand = {"t2": "polite", "t3": "normal",
                 "t4": "aggressive", "t5": "insane"}
    key = shorthand.get(name.lower(), name.lower())
    if key not in TIMING_PROFILES:
        raise ValueError(
            f"Unknown timing profile {name!r}. "
            f"Choose from: {list(TIMING_PROFILES)}"
        )
    return TIMING_PROFILES[key]
