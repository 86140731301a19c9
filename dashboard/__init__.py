"""RangeScan Dashboard — Public API

Flask adapter exposing /scan and /scanPing plus the browser control panel.

Usage:
    from dashboard.app import create_app, run_dashboard
"""
from dashboard.app import create_app, run_dashboard

__all__ = [
    "create_app",
    "run_dashboard",
]
