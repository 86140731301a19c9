"""
tests/test_dashboard.py
Flask routes through the test client, backed by fake probes.
Run: pytest tests/test_dashboard.py -v
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from flask import abort

from core.config import ScanConfig
from core.coordinator import ScanCoordinator
from dashboard.app import create_app
from tests.fakes import FakePortProbe, FakeReachProbe


@pytest.fixture
def probes():
    return (FakePortProbe(open_hosts={"192.168.1.2"}),
            FakeReachProbe(up_hosts={"192.168.1.1"}))


@pytest.fixture
def client(probes):
    port_probe, reach_probe = probes
    coordinator = ScanCoordinator(
        ScanConfig(max_range_size=256),
        port_probe=port_probe,
        reach_probe=reach_probe,
    )
    app = create_app({}, coordinator)
    return app.test_client()


class TestScanRoute:

    def test_scan_example(self, client):
        resp = client.get("/scan", query_string={
            "ipRange": "192.168.1.1-192.168.1.3", "port": "23",
        })
        assert resp.status_code == 200
        assert resp.get_json() == [
            {"ip": "192.168.1.1", "port": 23, "isOpen": False},
            {"ip": "192.168.1.2", "port": 23, "isOpen": True,
             "uri": "telnet://192.168.1.2:23"},
            {"ip": "192.168.1.3", "port": 23, "isOpen": False},
        ]

    def test_bad_range_is_400(self, client, probes):
        resp = client.get("/scan", query_string={"ipRange": "not-an-ip", "port": "23"})
        assert resp.status_code == 400
        assert "error" in resp.get_json()
        assert probes[0].calls == []

    def test_missing_range_is_400(self, client):
        resp = client.get("/scan", query_string={"port": "23"})
        assert resp.status_code == 400

    @pytest.mark.parametrize("port", ["", "abc", "0", "70000", "²", "٢٣"])
    def test_bad_port_is_400(self, client, probes, port):
        resp = client.get("/scan", query_string={"ipRange": "192.168.1.1", "port": port})
        assert resp.status_code == 400
        assert resp.get_json()["error"]
        assert probes[0].calls == []

    def test_too_large_is_413(self, client, probes):
        resp = client.get("/scan", query_string={"ipRange": "10.0.0.0/8", "port": "23"})
        assert resp.status_code == 413
        assert "exceeds limit" in resp.get_json()["error"]
        assert probes[0].calls == []


class TestScanPingRoute:

    def test_scan_ping(self, client):
        resp = client.get("/scanPing", query_string={"ipRange": "192.168.1.1-2"})
        assert resp.status_code == 200
        assert resp.get_json() == [
            {"ip": "192.168.1.1", "isReachable": True},
            {"ip": "192.168.1.2", "isReachable": False},
        ]

    def test_scan_ping_bad_range(self, client, probes):
        resp = client.get("/scanPing", query_string={"ipRange": "1.2.3"})
        assert resp.status_code == 400
        assert probes[1].calls == []


class TestErrorsAndPages:

    def test_scheduling_error_is_500_without_trace(self):
        coordinator = ScanCoordinator(
            ScanConfig(), port_probe=FakePortProbe(fail_on={"10.0.0.1"}),
        )
        client = create_app({}, coordinator).test_client()
        resp = client.get("/scan", query_string={"ipRange": "10.0.0.1", "port": "23"})
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "scan could not be completed"}

    def test_unknown_route_404(self, client):
        resp = client.get("/nope")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "not found"}

    def test_post_not_allowed(self, client):
        assert client.post("/scan").status_code == 405

    @pytest.mark.parametrize("code", [400, 403, 429])
    def test_http_errors_keep_their_status(self, code):
        app = create_app({}, ScanCoordinator(ScanConfig(), port_probe=FakePortProbe()))
        app.add_url_rule("/refuse", "refuse", lambda: abort(code))
        resp = app.test_client().get("/refuse")
        assert resp.status_code == code

    def test_health(self, client):
        data = client.get("/health").get_json()
        assert data["status"] == "ok"
        assert data["max_range_size"] == 256

    def test_index_page(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert b"ipRange" in resp.data
        assert b"script.js" in resp.data

    def test_script_uses_text_content(self, client):
        resp = client.get("/static/script.js")
        assert resp.status_code == 200
        assert b"textContent" in resp.data
        assert b"innerHTML" not in resp.data
        resp.close()

    def test_debug_forced_off(self, client):
        assert client.application.config["DEBUG"] is False


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
