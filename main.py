#!/usr/bin/env python3
"""
RangeScan v1.0 — Concurrent IP-range port & reachability scanner
main.py — CLI entry point

Usage:
  python3 main.py --scan 192.168.1.1-192.168.1.254 --port 23
  python3 main.py --scan 10.0.0.0/24 --port 9100 --timing aggressive --json
  python3 main.py --ping 192.168.1.1-50
  python3 main.py --serve --host 0.0.0.0 --dash-port 8080
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import yaml

# Try uvloop for 2-4× speed on Linux/macOS
try:
    import uvloop
    asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
except ImportError:
    pass

from core.config import ScanConfig
from core.coordinator import ScanCoordinator
from core.errors import InternalSchedulingError, ScanRequestError
from core.results import PortResult, ResultSet
from utils.constants import TIMING_PROFILES, ScanMode
from utils.logger import get_logger, set_level

log = get_logger("rangescan")

BANNER = r"""
  ╔═══════════════════════════════════════════════╗
  ║  RangeScan v1.0                               ║
  ║  Async Engine  ·  Bounded Pool  ·  TCP / ICMP ║
  ╚═══════════════════════════════════════════════╝"""


def _load_config(path: str) -> dict:
    try:
        with open(path) as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}


def build_config(cfg: dict, timing: str | None) -> ScanConfig:
    """ScanConfig from the ``scan:`` section; a --timing flag overrides it."""
    section = dict(cfg.get("scan") or {})
    if timing:
        section["timing"] = timing
    return ScanConfig.from_mapping(section)


# ─── Output ───────────────────────────────────────────────────────────────────

def print_results(result: ResultSet, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result.to_list(), indent=2))
        return

    stats = result.stats
    label = "OPEN" if result.mode is ScanMode.PORT else "REACHABLE"
    print(f"\n{'═'*60}")
    print(f"  SCAN COMPLETE  ({result.mode.value}"
          + (f", port {result.port})" if result.port else ")"))
    print(f"{'─'*60}")
    print(f"  Hosts        : {stats.hosts_total}")
    print(f"  {label.title():<13}: {stats.hosts_positive}")
    print(f"  Timed out    : {stats.timed_out}")
    print(f"  Duration     : {stats.elapsed_s:.2f}s")
    print(f"  Rate         : {stats.rate_per_s:.0f} probes/sec")
    if stats.deadline_hit:
        print("  Deadline     : reached, unfinished hosts reported negative")
    print(f"{'═'*60}\n")

    for r in result:
        if isinstance(r, PortResult):
            status = "open" if r.is_open else "closed"
            print(f"  {r.address:<16} {r.port:<6} {status:<8} {r.service_label or '-'}")
        else:
            status = "reachable" if r.is_reachable else "unreachable"
            print(f"  {r.address:<16} {status:<12} {r.method.value}")
    print()


# ─── CLI ─────────────────────────────────────────────────────────────────────

def build_cli() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="rangescan",
        description="RangeScan v1.0 — Concurrent IP-range port & reachability scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Ranges:   192.168.1.7  |  192.168.1.1-192.168.1.20  |  192.168.1.1-20
          192.168.1.0/24  |  10.0.0.1,10.0.0.5-9
Timing:   polite t2   normal t3   aggressive t4   insane t5

Examples:
  %(prog)s --scan 192.168.1.1-192.168.1.254 --port 23
  %(prog)s --ping 192.168.1.0/24 --timing t4
  %(prog)s --serve --host 127.0.0.1 --dash-port 8080
""",
    )
    timings = list(TIMING_PROFILES) + ["t2", "t3", "t4", "t5"]
    g = ap.add_argument_group
    s = g("Scan")
    s.add_argument("--scan",       metavar="RANGE",   help="Port-scan every host of RANGE")
    s.add_argument("--port",       metavar="PORT",    type=int, help="TCP port for --scan")
    s.add_argument("--ping",       metavar="RANGE",   help="Reachability-scan every host of RANGE")
    s.add_argument("--timing",     metavar="PROFILE", default=None, choices=timings)
    s.add_argument("--json",       action="store_true", help="Print results as JSON")

    d = g("Server")
    d.add_argument("--serve",      action="store_true", help="Start HTTP API and control panel")
    d.add_argument("--host",       default=None)
    d.add_argument("--dash-port",  type=int, default=None, metavar="PORT")

    ap.add_argument("--config",    default="config.yaml", metavar="FILE")
    ap.add_argument("--quiet",     action="store_true", help="Suppress progress output")
    ap.add_argument("--no-logo",   action="store_true", help="Hide ASCII banner")
    ap.add_argument("--version",   action="version",   version="RangeScan 1.0")
    return ap


def main() -> None:
    ap   = build_cli()
    if len(sys.argv) == 1:
        ap.print_help(); sys.exit(0)
    args = ap.parse_args()

    if not args.no_logo and not args.json:
        print(BANNER)
    if args.quiet or args.json:
        set_level(logging.WARNING)

    try:
        cfg    = _load_config(args.config)
        config = build_config(cfg, args.timing)
    except (yaml.YAMLError, ValueError) as exc:
        log.error(f"Config error: {exc}")
        sys.exit(2)

    def cb(msg: str):
        log.info(msg)

    coordinator = ScanCoordinator(config, progress_cb=cb)
    log.info(f"Timing   : {config.profile_name}  (pool {config.pool_size})")

    try:
        if args.scan:
            if args.port is None:
                log.error("--port required for --scan"); sys.exit(2)
            result = asyncio.run(coordinator.scan_ports(args.scan, args.port))
            print_results(result, args.json)

        elif args.ping:
            result = asyncio.run(coordinator.scan_ping(args.ping))
            print_results(result, args.json)

        elif args.serve:
            dash_cfg = dict(cfg.get("dashboard") or {})
            if args.host:
                dash_cfg["host"] = args.host
            if args.dash_port:
                dash_cfg["port"] = args.dash_port
            from dashboard.app import run_dashboard
            run_dashboard(dash_cfg, coordinator)

        else:
            ap.print_help()

    except ScanRequestError as exc:
        log.error(f"Invalid request: {exc}")
        sys.exit(2)
    except InternalSchedulingError as exc:
        log.error(f"Scan failed: {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n  [!] Interrupted by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
