"""
dashboard/app.py
Flask adapter in front of the scan engine.

  GET /scan?ipRange=<range>&port=<int>  → [{ip, port, isOpen, uri?}, ...]
  GET /scanPing?ipRange=<range>         → [{ip, isReachable}, ...]
  GET /                                 → control panel
  GET /health                           → liveness + active profile

Properties:
  - debug=False enforced programmatically (cannot be overridden by env)
  - Stacktraces never exposed to client
  - Request errors map to 4xx before any probe runs

Layering: dashboard -> core, utils (core never imports dashboard)
"""

from __future__ import annotations

import secrets
from typing import Optional

from flask import Flask, jsonify, render_template, request
from werkzeug.exceptions import HTTPException

from core.config import ScanConfig
from core.coordinator import ScanCoordinator
from core.errors import (
    InternalSchedulingError, InvalidPort, InvalidRangeFormat, RangeTooLarge,
    ScanRequestError,
)
from utils.constants import ScanMode
from utils.logger import get_logger
from utils.validators import parse_port, validate_range_text

log = get_logger("rangescan")


# -- Factory ------------------------------------------------------------------

def create_app(cfg: Optional[dict] = None,
               coordinator: Optional[ScanCoordinator] = None) -> Flask:
    """
    Application factory.

    cfg keys:
      secret_key     str  -- random per process when absent
      host           str
      port           int
    coordinator: engine used by the scan routes; built from defaults if None
    """
    cfg = cfg or {}
    app = Flask(__name__, template_folder="templates", static_folder="static")

    app.config["SECRET_KEY"]           = cfg.get("secret_key") or secrets.token_hex(32)
    app.config["DEBUG"]                = False   # HARD -- no env override
    app.config["PROPAGATE_EXCEPTIONS"] = False
    app.config["TRAP_HTTP_EXCEPTIONS"] = False
    app.json.sort_keys = False

    engine = coordinator or ScanCoordinator(ScanConfig())

    # Error handlers (no stacktrace leakage)
    @app.errorhandler(RangeTooLarge)
    def _too_large(e):
        return jsonify({"error": str(e)}), 413

    @app.errorhandler(ScanRequestError)
    def _bad_request(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(InternalSchedulingError)
    def _scheduling(e):
        app.logger.error("Scan scheduling failed: %s", e)
        return jsonify({"error": "scan could not be completed"}), 500

    @app.errorhandler(404)
    def _e404(e):
        return jsonify({"error": "not found"}), 404

    @app.errorhandler(405)
    def _e405(e):
        return jsonify({"error": "method not allowed"}), 405

    @app.errorhandler(500)
    def _e500(e):
        app.logger.exception("Internal server error")
        return jsonify({"error": "internal server error"}), 500

    @app.errorhandler(Exception)
    def _unhandled(e):
        if isinstance(e, HTTPException):
            return e
        app.logger.exception("Unhandled exception")
        return jsonify({"error": "internal server error"}), 500

    # Routes
    @app.route("/")
    def index():
        return render_template("index.html")

    @app.route("/scan")
    def scan():
        ip_range = _range_arg()
        port, err = parse_port(request.args.get("port"))
        if port is None:
            raise InvalidPort(err)

        log.info(f"/scan {ip_range} port {port}")
        result = engine.run_sync(ip_range, port, ScanMode.PORT)
        return jsonify(result.to_list())

    @app.route("/scanPing")
    def scan_ping():
        ip_range = _range_arg()
        log.info(f"/scanPing {ip_range}")
        result = engine.run_sync(ip_range, None, ScanMode.REACHABILITY)
        return jsonify(result.to_list())

    @app.route("/health")
    def health():
        return jsonify({
            "status": "ok",
            "profile": engine.config.profile_name,
            "pool_size": engine.config.pool_size,
            "max_range_size": engine.config.max_range_size,
        })

    return app


# -- Helpers ------------------------------------------------------------------

def _range_arg() -> str:
    ip_range = request.args.get("ipRange", "")
    ok, err = validate_range_text(ip_range)
    if not ok:
        raise InvalidRangeFormat(err)
    return ip_range


# -- Server runner ------------------------------------------------------------

def run_dashboard(cfg: dict, coordinator: ScanCoordinator) -> None:
    app = create_app(cfg, coordinator)
    host = cfg.get("host", "127.0.0.1")
    port = cfg.get("port", 8080)
    log.info(f"Control panel at http://{host}:{port}")
    log.info(f"Profile: {coordinator.config.profile_name}  "
             f"(pool {coordinator.config.pool_size}, "
             f"range limit {coordinator.config.max_range_size})")
    app.run(host=host, port=port, debug=False, use_reloader=False, threaded=True)
