"""RangeScan Data — Bundled data files

Optional read-only data used by the scanner:

  nmap-services     — TCP port-to-service name mapping (Nmap project format).
                      When present, core.port_probe.ServiceDB reads it to pick
                      the URL scheme of a service label; otherwise a built-in
                      table of well-known ports is used.
"""
from pathlib import Path as _Path

DATA_DIR       = _Path(__file__).parent
NMAP_SERVICES  = DATA_DIR / "nmap-services"

__all__ = [
    "DATA_DIR",
    "NMAP_SERVICES",
]
