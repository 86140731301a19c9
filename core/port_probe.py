"""
core/port_probe.py
Single-target TCP connect probe with:
  • asyncio.open_connection — non-blocking, no raw sockets needed
  • bounded connect time via asyncio.wait_for
  • granular per-exception handling, every failure folded into is_open=False
  • configurable service label for open endpoints (no protocol handshake)
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, Optional

from core.errors import ProbeError, ProbeNetworkError, ProbeTimeout
from core.results import PortResult
from data import NMAP_SERVICES
from utils.constants import DEFAULT_LABEL_TEMPLATE, TargetState


# ─── Service DB loader (nmap-services format) ─────────────────────────────────

class ServiceDB:
    """Map TCP ports to well-known service names."""

    _FALLBACK: Dict[int, str] = {
        21: "ftp", 22: "ssh", 23: "telnet", 25: "smtp", 53: "domain",
        80: "http", 110: "pop3", 143: "imap", 443: "https", 445: "microsoft-ds",
        1883: "mqtt", 3306: "mysql", 3389: "ms-wbt-server", 5432: "postgresql",
        5900: "vnc", 6379: "redis", 8080: "http-proxy", 8443: "https-alt",
        9090: "http", 9100: "http",
    }

    def __init__(self, db_path: Optional[Path] = None):
        self._map: Dict[int, str] = {}
        self._load(db_path or NMAP_SERVICES)

    def _load(self, path: Path) -> None:
        if not path.exists():
            self._map = dict(self._FALLBACK)
            return
        for line in path.read_text(errors="ignore").splitlines():
            if line.startswith("#") or not line.strip():
                continue
            parts = line.split()
            if len(parts) < 2:
                continue
            try:
                name, port_proto = parts[0], parts[1]
                port_str, proto = port_proto.split("/")
                if proto == "tcp":
                    self._map.setdefault(int(port_str), name)
            except (ValueError, IndexError):
                continue
        if not self._map:
            self._map = dict(self._FALLBACK)

    def lookup(self, port: int) -> str:
        return self._map.get(port, "unknown")


# URL schemes for services whose nmap name is not a usable scheme
_SCHEMES: Dict[str, str] = {
    "http-proxy": "http",
    "https-alt":  "https",
    "ms-wbt-server": "rdp",
    "microsoft-ds": "smb",
    "domain": "dns",
}


class LabelFormatter:
    """
    Build the ``uri`` shown next to an open endpoint.

    The template is a str.format string with fields
    {ip}, {port}, {scheme} and {service}.
    """

    def __init__(self, template: str = DEFAULT_LABEL_TEMPLATE,
                 services: Optional[ServiceDB] = None):
        self.template = template
        self._services = services or _service_db
        # Template errors surface here rather than on the first open port
        try:
            self.format("127.0.0.1", 1)
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"Invalid label template {template!r}: {exc}") from exc

    def scheme_for(self, port: int) -> str:
        service = self._services.lookup(port)
        if service == "unknown":
            return "tcp"
        return _SCHEMES.get(service, service)

    def format(self, ip: str, port: int) -> str:
        return self.template.format(
            ip=ip,
            port=port,
            scheme=self.scheme_for(port),
            service=self._services.lookup(port),
        )


_service_db = ServiceDB()


# ─── Probe ────────────────────────────────────────────────────────────────────

class PortProbe:
    """TCP-connect open/closed check for one (address, port) pair."""

    def __init__(self, formatter: Optional[LabelFormatter] = None):
        self._formatter = formatter or LabelFormatter()

    async def probe(self, address: str, port: int, timeout: float) -> PortResult:
        """Never raises for network conditions; failures become is_open=False."""
        try:
            await self._connect(address, port, timeout)
        except ProbeTimeout:
            return PortResult.negative(address, port, TargetState.TIMED_OUT)
        except ProbeError:
            return PortResult.negative(address, port, TargetState.FAILED)

        return PortResult(
            address=address,
            port=port,
            is_open=True,
            service_label=self._formatter.format(address, port),
        )

    async def _connect(self, address: str, port: int, timeout: float) -> None:
        """Complete the handshake and close at once. Raises ProbeError subclasses."""
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(address, port),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ProbeTimeout(f"{address}:{port} no answer in {timeout:.2f}s") from exc
        except ConnectionRefusedError as exc:
            raise ProbeNetworkError(f"{address}:{port} refused") from exc
        except OSError as exc:
            raise ProbeNetworkError(f"{address}:{port} {exc}") from exc

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
