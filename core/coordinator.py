"""
core/coordinator.py
Bounded-concurrency scan orchestration.

  • the range is expanded once, before anything touches the network
  • a fixed pool of worker tasks drains a queue of ScanTargets
  • each worker writes only the result slot of the target it took
  • one request deadline; unfinished targets become TIMED_OUT negatives
  • results come back in expansion order whatever the completion order
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, List, Optional

from core.config import ScanConfig
from core.errors import InternalSchedulingError, InvalidPort
from core.port_probe import LabelFormatter, PortProbe
from core.range_expander import RangeExpander
from core.reachability import ReachabilityProbe
from core.results import (
    PortResult, ProbeResult, ReachabilityResult, ResultSet, ScanStats, ScanTarget,
    is_positive,
)
from core.timing import RateMeter
from utils.constants import ScanMode, TargetState
from utils.validators import validate_port


class ScanCoordinator:
    """
    Fan one probe per address across a fixed worker pool.

    The pool size caps simultaneous network operations regardless of how
    large the range is. The only state shared between workers is the
    target queue.
    """

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        port_probe: Optional[PortProbe] = None,
        reach_probe: Optional[ReachabilityProbe] = None,
        expander: Optional[RangeExpander] = None,
        progress_cb: Optional[Callable[[str], None]] = None,
    ):
        self.config = config or ScanConfig()
        self._port_probe = port_probe or PortProbe(
            LabelFormatter(self.config.label_template)
        )
        self._reach_probe = reach_probe or ReachabilityProbe(
            use_icmp=self.config.use_icmp,
            fallback_ports=self.config.fallback_ports,
        )
        self._expander = expander or RangeExpander(self.config.max_range_size)
        self._cb = progress_cb or (lambda _: None)

    # ── Public scan API ───────────────────────────────────────────────────────

    async def run(
        self,
        range_spec: str,
        port: Optional[int] = None,
        mode: ScanMode | str = ScanMode.PORT,
    ) -> ResultSet:
        """
        Probe every address of range_spec and return the ordered ResultSet.

        Raises InvalidRangeFormat, RangeTooLarge or InvalidPort before any
        probe runs, and InternalSchedulingError if the pool itself breaks.
        """
        mode = ScanMode(mode)
        if mode is ScanMode.PORT:
            ok, err = validate_port(port)
            if not ok:
                raise InvalidPort(err)
        else:
            port = None

        addresses = self._expander.expand(range_spec)
        targets = [ScanTarget(i, ip, port) for i, ip in enumerate(addresses)]
        self._cb(f"[*] {range_spec}: {len(targets)} hosts, mode={mode.value}"
                 + (f", port={port}" if port is not None else ""))

        t0 = time.monotonic()
        rate = RateMeter()
        slots, deadline_hit = await self._dispatch(targets, mode, rate)

        results: List[ProbeResult] = []
        timed_out = 0
        for target, result in zip(targets, slots):
            if result is None:
                if not deadline_hit:
                    raise InternalSchedulingError(
                        f"No result recorded for {target.address}"
                    )
                result = self._negative(target, mode, TargetState.TIMED_OUT)
            if result.state is TargetState.TIMED_OUT:
                timed_out += 1
            results.append(result)

        stats = ScanStats(
            hosts_total    = len(results),
            hosts_positive = sum(1 for r in results if is_positive(r)),
            timed_out      = timed_out,
            elapsed_s      = time.monotonic() - t0,
            rate_per_s     = rate.overall_rate(),
            deadline_hit   = deadline_hit,
        )
        self._cb(
            f"[✓] {range_spec} done: {stats.hosts_positive}/{stats.hosts_total} "
            f"{'open' if mode is ScanMode.PORT else 'reachable'} "
            f"in {stats.elapsed_s:.2f}s"
            + (" (deadline reached)" if deadline_hit else "")
        )
        return ResultSet.assemble(mode, results, port=port, stats=stats)

    async def scan_ports(self, range_spec: str, port: int) -> ResultSet:
        return await self.run(range_spec, port, ScanMode.PORT)

    async def scan_ping(self, range_spec: str) -> ResultSet:
        return await self.run(range_spec, None, ScanMode.REACHABILITY)

    def run_sync(
        self,
        range_spec: str,
        port: Optional[int] = None,
        mode: ScanMode | str = ScanMode.PORT,
    ) -> ResultSet:
        """Blocking wrapper for callers without an event loop (WSGI, CLI)."""
        return asyncio.run(self.run(range_spec, port, mode))

    # ── Worker pool ───────────────────────────────────────────────────────────

    async def _dispatch(
        self, targets: List[ScanTarget], mode: ScanMode, rate: RateMeter,
    ) -> tuple[List[Optional[ProbeResult]], bool]:
        slots: List[Optional[ProbeResult]] = [None] * len(targets)
        if not targets:
            return slots, False

        queue: asyncio.Queue = asyncio.Queue()
        for target in targets:
            queue.put_nowait(target)

        n_workers = min(self.config.pool_size, len(targets))
        workers = [
            asyncio.ensure_future(self._worker(queue, slots, mode, rate))
            for _ in range(n_workers)
        ]
        try:
            done, pending = await asyncio.wait(
                workers, timeout=self.config.request_deadline_s,
            )
        finally:
            # Covers deadline expiry and cancellation of the request itself
            for w in workers:
                if not w.done():
                    w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        for w in done:
            exc = w.exception()
            if exc is not None:
                raise InternalSchedulingError(f"Scan worker failed: {exc!r}") from exc

        return slots, bool(pending)

    async def _worker(
        self,
        queue: asyncio.Queue,
        slots: List[Optional[ProbeResult]],
        mode: ScanMode,
        rate: RateMeter,
    ) -> None:
        while True:
            try:
                target: ScanTarget = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            slots[target.index] = await self._probe(target, mode)
            rate.update()

    async def _probe(self, target: ScanTarget, mode: ScanMode) -> ProbeResult:
        if mode is ScanMode.PORT:
            result = await self._port_probe.probe(
                target.address, target.port, self.config.connect_timeout_s,
            )
            if result.is_open:
                self._cb(f"[+] {target.address}:{target.port} open")
        else:
            result = await self._reach_probe.probe(
                target.address, self.config.ping_timeout_s,
            )
            if result.is_reachable:
                self._cb(f"[+] {target.address} up ({result.method.value})")
        return result

    @staticmethod
    def _negative(target: ScanTarget, mode: ScanMode, state: TargetState) -> ProbeResult:
        if mode is ScanMode.PORT:
            return PortResult.negative(target.address, target.port, state)
        return ReachabilityResult.negative(target.address, state)
