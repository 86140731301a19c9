"""
core/results.py
Immutable per-target outcomes and the ordered ResultSet handed to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from utils.constants import ProbeMethod, ScanMode, TargetState


# ─── Data Classes ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScanTarget:
    index:   int
    address: str
    port:    Optional[int] = None


@dataclass(frozen=True)
class PortResult:
    address:       str
    port:          int
    is_open:       bool
    service_label: Optional[str] = None
    state:         TargetState = TargetState.SUCCEEDED

    def __post_init__(self):
        if self.is_open != (self.service_label is not None):
            raise ValueError(
                f"{self.address}:{self.port}: service_label must be set "
                f"if and only if the port is open"
            )

    @classmethod
    def negative(cls, address: str, port: int,
                 state: TargetState = TargetState.FAILED) -> "PortResult":
        return cls(address=address, port=port, is_open=False, state=state)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "ip":     self.address,
            "port":   self.port,
            "isOpen": self.is_open,
        }
        if self.is_open:
            data["uri"] = self.service_label
        return data


@dataclass(frozen=True)
class ReachabilityResult:
    address:      str
    is_reachable: bool
    method:       ProbeMethod = ProbeMethod.NONE
    state:        TargetState = TargetState.SUCCEEDED

    @classmethod
    def negative(cls, address: str,
                 state: TargetState = TargetState.FAILED) -> "ReachabilityResult":
        return cls(address=address, is_reachable=False, state=state)

    def to_dict(self) -> Dict[str, Any]:
        return {"ip": self.address, "isReachable": self.is_reachable}


ProbeResult = Union[PortResult, ReachabilityResult]


@dataclass(frozen=True)
class ScanStats:
    hosts_total:     int = 0
    hosts_positive:  int = 0
    timed_out:       int = 0
    elapsed_s:       float = 0.0
    rate_per_s:      float = 0.0
    deadline_hit:    bool = False


# ─── ResultSet ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ResultSet:
    """
    Ordered, complete outcome of one scan request.

    Entry i belongs to address i of the range expansion. The set is never
    shorter than the expansion: failed and unfinished targets are present
    as negative outcomes.
    """

    mode:    ScanMode
    results: Tuple[ProbeResult, ...]
    port:    Optional[int] = None
    stats:   ScanStats = field(default_factory=ScanStats)

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[ProbeResult]:
        return iter(self.results)

    def __getitem__(self, index: int) -> ProbeResult:
        return self.results[index]

    @property
    def addresses(self) -> List[str]:
        return [r.address for r in self.results]

    @property
    def positives(self) -> List[ProbeResult]:
        """Open ports (port mode) or reachable hosts (reachability mode)."""
        return [r for r in self.results if is_positive(r)]

    def to_list(self) -> List[Dict[str, Any]]:
        """JSON-ready list in canonical address order."""
        return [r.to_dict() for r in self.results]

    @classmethod
    def assemble(
        cls,
        mode: ScanMode,
        results: Sequence[ProbeResult],
        port: Optional[int] = None,
        stats: Optional[ScanStats] = None,
    ) -> "ResultSet":
        return cls(mode=mode, results=tuple(results), port=port,
                   stats=stats or ScanStats(hosts_total=len(results)))


def is_positive(result: ProbeResult) -> bool:
    if isinstance(result, PortResult):
        return result.is_open
    return result.is_reachable
