"""
core/reachability.py
Host liveness check.

Strategy:
  1. One ICMP echo through the system ping binary (no raw-socket privilege
     needed by this process).
  2. If ICMP cannot be used at all (binary missing, not permitted, unexpected
     exit status) fall back to TCP connects on common ports, tried one
     after another so a probe never holds more than one socket.
     A completed handshake OR a refused connection (RST) proves the host is
     up. This fallback is a liveness heuristic; it says nothing reliable about
     the state of those ports.
"""

from __future__ import annotations

import asyncio
import math
import platform
from typing import List, Optional, Sequence, Tuple

from core.results import ReachabilityResult
from utils.constants import FALLBACK_PORTS, ProbeMethod, TargetState

# Extra time granted to the ping process beyond its own -W/-w wait
_PING_PROCESS_GRACE = 0.5
_PING_KILL_GRACE = 1.0

# ping exit statuses: 0 reply received, 1 no reply within the wait; anything else is an error
_PING_REPLY = 0
_PING_NO_REPLY = 1


def build_ping_command(address: str, timeout: float,
                       system: Optional[str] = None) -> List[str]:
    """Return a single-echo ping command for the platform."""
    system = (system or platform.system()).lower()
    if system == "windows":
        wait_ms = max(1, int(round(timeout * 1000)))
        return ["ping", "-n", "1", "-w", str(wait_ms), address]
    wait_s = max(1, int(math.ceil(timeout)))
    return ["ping", "-c", "1", "-W", str(wait_s), address]


class ReachabilityProbe:
    """ICMP echo with a TCP-connect fallback."""

    def __init__(self, use_icmp: bool = True,
                 fallback_ports: Sequence[int] = FALLBACK_PORTS):
        self.use_icmp = use_icmp
        self.fallback_ports = tuple(fallback_ports)

    async def probe(self, address: str, timeout: float) -> ReachabilityResult:
        """Never raises for network conditions; failures become is_reachable=False."""
        if self.use_icmp:
            status = await self._ping(address, timeout)
            if status == _PING_REPLY:
                return ReachabilityResult(address, True, ProbeMethod.ICMP)
            if status == _PING_NO_REPLY:
                return ReachabilityResult(address, False, ProbeMethod.ICMP,
                                          TargetState.TIMED_OUT)

        alive, state = await self._tcp_alive(address, timeout)
        if alive:
            return ReachabilityResult(address, True, ProbeMethod.TCP)
        return ReachabilityResult(address, False, ProbeMethod.TCP, state)

    # ── ICMP ──────────────────────────────────────────────────────────────────

    async def _ping(self, address: str, timeout: float) -> Optional[int]:
        """Exit status of one ping, or None when ping could not run to completion."""
        cmd = build_ping_command(address, timeout)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError:
            return None

        try:
            return await asyncio.wait_for(proc.wait(), timeout + _PING_PROCESS_GRACE)
        except asyncio.TimeoutError:
            return _PING_NO_REPLY
        finally:
            if proc.returncode is None:
                await self._reap(proc)

    @staticmethod
    async def _reap(proc: asyncio.subprocess.Process) -> None:
        try:
            proc.kill()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(proc.wait(), _PING_KILL_GRACE)
        except asyncio.TimeoutError:
            pass

    # ── TCP fallback ──────────────────────────────────────────────────────────

    async def _tcp_alive(self, address: str, timeout: float) -> Tuple[bool, TargetState]:
        """
        Try the fallback ports in turn; True on the first sign of life.

        Each attempt gets an equal slice of ``timeout`` so the whole check
        stays within it.
        """
        if not self.fallback_ports:
            return False, TargetState.FAILED

        per_port = timeout / len(self.fallback_ports)
        state = TargetState.FAILED
        for port in self.fallback_ports:
            try:
                _, w = await asyncio.wait_for(
                    asyncio.open_connection(address, port),
                    timeout=per_port,
                )
            except ConnectionRefusedError:
                return True, TargetState.SUCCEEDED   # RST received → host is UP
            except asyncio.TimeoutError:
                state = TargetState.TIMED_OUT
                continue
            except OSError:
                continue                             # unreachable / no route
            w.close()
            try:
                await w.wait_closed()
            except OSError:
                pass
            return True, TargetState.SUCCEEDED

        return False, state
