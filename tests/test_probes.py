"""
tests/test_probes.py
Unit tests for PortProbe, LabelFormatter, ServiceDB and ReachabilityProbe.
TCP tests use a listener on 127.0.0.1; ping is replaced by a stub process.
Run: pytest tests/test_probes.py -v
"""

import sys
import os
import asyncio
import socket
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import AsyncMock, patch

from core.errors import ProbeNetworkError, ProbeTimeout
from core.port_probe import LabelFormatter, PortProbe, ServiceDB
from core.reachability import ReachabilityProbe, build_ping_command
from utils.constants import LABEL_TEMPLATES, ProbeMethod, TargetState


def _closed_port() -> int:
    """A localhost port nothing listens on (bound then released)."""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


async def _never_connects(*args, **kwargs):
    await asyncio.sleep(10)


class _DoneProc:
    def __init__(self, code):
        self.returncode = code
        self.killed = False

    async def wait(self):
        return self.returncode

    def kill(self):
        self.killed = True


class _HangingProc:
    """ping that never answers until killed."""

    def __init__(self):
        self.returncode = None
        self.killed = False
        self._exited = asyncio.Event()

    async def wait(self):
        await self._exited.wait()
        return self.returncode

    def kill(self):
        self.killed = True
        self.returncode = -9
        self._exited.set()


# ─── Service DB ───────────────────────────────────────────────────────────────

class TestServiceDB:

    def test_fallback_when_missing(self, tmp_path):
        db = ServiceDB(tmp_path / "absent")
        assert db.lookup(23) == "telnet"
        assert db.lookup(80) == "http"
        assert db.lookup(40000) == "unknown"

    def test_load_nmap_format(self, tmp_path):
        path = tmp_path / "nmap-services"
        path.write_text(
            "# comment line\n"
            "telnet\t23/tcp\t0.221265\n"
            "foo\t5555/tcp\t0.001\n"
            "bar\t5555/udp\t0.001\n"
            "broken-line\n"
            "baz\tnot-a-port/tcp\n"
        )
        db = ServiceDB(path)
        assert db.lookup(23) == "telnet"
        assert db.lookup(5555) == "foo"
        assert db.lookup(80) == "unknown"

    def test_empty_file_uses_fallback(self, tmp_path):
        path = tmp_path / "nmap-services"
        path.write_text("# nothing here\n")
        assert ServiceDB(path).lookup(22) == "ssh"


# ─── Label formatter ──────────────────────────────────────────────────────────

class TestLabelFormatter:

    def test_default_endpoint(self):
        assert LabelFormatter().format("10.0.0.1", 23) == "telnet://10.0.0.1:23"

    def test_scheme_alias(self):
        assert LabelFormatter().format("10.0.0.1", 8080) == "http://10.0.0.1:8080"

    def test_unknown_port_is_tcp(self):
        assert LabelFormatter().format("10.0.0.1", 40000) == "tcp://10.0.0.1:40000"

    def test_metrics_preset(self):
        fmt = LabelFormatter(LABEL_TEMPLATES["metrics"])
        assert fmt.format("10.0.0.1", 9100) == "http://10.0.0.1:9100/metrics"

    def test_service_field(self):
        fmt = LabelFormatter("{service}@{ip}")
        assert fmt.format("10.0.0.1", 22) == "ssh@10.0.0.1"

    def test_custom_db(self, tmp_path):
        path = tmp_path / "svc"
        path.write_text("modbus 502/tcp\n")
        fmt = LabelFormatter(services=ServiceDB(path))
        assert fmt.format("10.0.0.1", 502) == "modbus://10.0.0.1:502"

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="Invalid label template"):
            LabelFormatter("{host}:{port}")

    def test_positional_field_rejected(self):
        with pytest.raises(ValueError):
            LabelFormatter("{0}")


# ─── Port probe ───────────────────────────────────────────────────────────────

class TestPortProbe:

    @pytest.mark.asyncio
    async def test_open_port(self):
        server = await asyncio.start_server(lambda r, w: w.close(), "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            probe = PortProbe(LabelFormatter("{ip}:{port}"))
            result = await probe.probe("127.0.0.1", port, 2.0)
        finally:
            server.close()
            await server.wait_closed()

        assert result.is_open is True
        assert result.service_label == f"127.0.0.1:{port}"
        assert result.state is TargetState.SUCCEEDED
        assert result.to_dict() == {
            "ip": "127.0.0.1", "port": port, "isOpen": True,
            "uri": f"127.0.0.1:{port}",
        }

    @pytest.mark.asyncio
    async def test_refused_is_closed(self):
        port = _closed_port()
        result = await PortProbe().probe("127.0.0.1", port, 2.0)
        assert result.is_open is False
        assert result.service_label is None
        assert result.state is TargetState.FAILED
        assert "uri" not in result.to_dict()

    @pytest.mark.asyncio
    async def test_timeout_is_closed(self):
        with patch("core.port_probe.asyncio.open_connection", new=_never_connects):
            result = await PortProbe().probe("192.0.2.1", 23, 0.05)
        assert result.is_open is False
        assert result.service_label is None
        assert result.state is TargetState.TIMED_OUT

    @pytest.mark.asyncio
    async def test_network_error_is_closed(self):
        failing = AsyncMock(side_effect=OSError(113, "No route to host"))
        with patch("core.port_probe.asyncio.open_connection", new=failing):
            result = await PortProbe().probe("192.0.2.1", 23, 1.0)
        assert result.is_open is False
        assert result.state is TargetState.FAILED

    @pytest.mark.asyncio
    async def test_connect_raises_probe_timeout(self):
        with patch("core.port_probe.asyncio.open_connection", new=_never_connects):
            with pytest.raises(ProbeTimeout):
                await PortProbe()._connect("192.0.2.1", 23, 0.05)

    @pytest.mark.asyncio
    async def test_connect_raises_network_error(self):
        with pytest.raises(ProbeNetworkError):
            await PortProbe()._connect("127.0.0.1", _closed_port(), 2.0)


# ─── Ping command ─────────────────────────────────────────────────────────────

class TestPingCommand:

    def test_posix(self):
        assert build_ping_command("10.0.0.1", 3.0, system="Linux") == [
            "ping", "-c", "1", "-W", "3", "10.0.0.1",
        ]

    def test_posix_rounds_up_to_one_second(self):
        assert build_ping_command("10.0.0.1", 0.2, system="Darwin")[4] == "1"

    def test_windows(self):
        assert build_ping_command("10.0.0.1", 1.5, system="Windows") == [
            "ping", "-n", "1", "-w", "1500", "10.0.0.1",
        ]


# ─── Reachability probe ───────────────────────────────────────────────────────

class TestReachabilityProbe:

    @pytest.mark.asyncio
    async def test_echo_reply(self):
        spawn = AsyncMock(return_value=_DoneProc(0))
        with patch("core.reachability.asyncio.create_subprocess_exec", new=spawn):
            result = await ReachabilityProbe().probe("10.0.0.1", 1.0)
        assert result.is_reachable is True
        assert result.method is ProbeMethod.ICMP
        assert result.to_dict() == {"ip": "10.0.0.1", "isReachable": True}
        cmd = spawn.call_args.args
        assert cmd[0] == "ping"
        assert cmd[-1] == "10.0.0.1"

    @pytest.mark.asyncio
    async def test_no_reply_is_authoritative(self):
        spawn = AsyncMock(return_value=_DoneProc(1))
        probe = ReachabilityProbe()
        with patch("core.reachability.asyncio.create_subprocess_exec", new=spawn), \
             patch.object(probe, "_tcp_alive", new=AsyncMock()) as tcp:
            result = await probe.probe("10.0.0.1", 1.0)
        assert result.is_reachable is False
        assert result.method is ProbeMethod.ICMP
        tcp.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_ping_binary_falls_back(self):
        spawn = AsyncMock(side_effect=FileNotFoundError("ping"))
        probe = ReachabilityProbe()
        alive = AsyncMock(return_value=(True, TargetState.SUCCEEDED))
        with patch("core.reachability.asyncio.create_subprocess_exec", new=spawn), \
             patch.object(probe, "_tcp_alive", new=alive):
            result = await probe.probe("10.0.0.1", 1.0)
        assert result.is_reachable is True
        assert result.method is ProbeMethod.TCP
        alive.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ping_error_status_falls_back(self):
        # exit 2: e.g. "socket: Operation not permitted"
        spawn = AsyncMock(return_value=_DoneProc(2))
        probe = ReachabilityProbe()
        dead = AsyncMock(return_value=(False, TargetState.FAILED))
        with patch("core.reachability.asyncio.create_subprocess_exec", new=spawn), \
             patch.object(probe, "_tcp_alive", new=dead):
            result = await probe.probe("10.0.0.1", 1.0)
        assert result.is_reachable is False
        assert result.method is ProbeMethod.TCP
        assert result.state is TargetState.FAILED

    @pytest.mark.asyncio
    async def test_hanging_ping_is_killed(self):
        proc = _HangingProc()
        spawn = AsyncMock(return_value=proc)
        with patch("core.reachability.asyncio.create_subprocess_exec", new=spawn):
            result = await ReachabilityProbe().probe("10.0.0.1", 0.05)
        assert result.is_reachable is False
        assert result.state is TargetState.TIMED_OUT
        assert proc.killed is True

    @pytest.mark.asyncio
    async def test_icmp_disabled_skips_ping(self):
        spawn = AsyncMock()
        probe = ReachabilityProbe(use_icmp=False)
        alive = AsyncMock(return_value=(True, TargetState.SUCCEEDED))
        with patch("core.reachability.asyncio.create_subprocess_exec", new=spawn), \
             patch.object(probe, "_tcp_alive", new=alive):
            result = await probe.probe("10.0.0.1", 1.0)
        spawn.assert_not_called()
        assert result.method is ProbeMethod.TCP

    @pytest.mark.asyncio
    async def test_fallback_refused_means_alive(self):
        probe = ReachabilityProbe(use_icmp=False, fallback_ports=[_closed_port()])
        result = await probe.probe("127.0.0.1", 2.0)
        assert result.is_reachable is True
        assert result.method is ProbeMethod.TCP

    @pytest.mark.asyncio
    async def test_fallback_accepted_means_alive(self):
        server = await asyncio.start_server(lambda r, w: w.close(), "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            probe = ReachabilityProbe(use_icmp=False, fallback_ports=[port])
            result = await probe.probe("127.0.0.1", 2.0)
        finally:
            server.close()
            await server.wait_closed()
        assert result.is_reachable is True

    @pytest.mark.asyncio
    async def test_fallback_silence_is_unreachable(self):
        probe = ReachabilityProbe(use_icmp=False, fallback_ports=[80, 443])
        with patch("core.reachability.asyncio.open_connection", new=_never_connects):
            result = await probe.probe("192.0.2.1", 0.05)
        assert result.is_reachable is False
        assert result.state in (TargetState.TIMED_OUT, TargetState.FAILED)

    @pytest.mark.asyncio
    async def test_fallback_ports_tried_one_at_a_time(self):
        tried, open_now, peak = [], [0], [0]

        async def connect(host, port):
            tried.append(port)
            open_now[0] += 1
            peak[0] = max(peak[0], open_now[0])
            try:
                await asyncio.sleep(10)
            finally:
                open_now[0] -= 1

        probe = ReachabilityProbe(use_icmp=False, fallback_ports=[80, 443, 22])
        with patch("core.reachability.asyncio.open_connection", new=connect):
            result = await probe.probe("192.0.2.1", 0.15)
        assert tried == [80, 443, 22]
        assert peak[0] == 1
        assert result.state is TargetState.TIMED_OUT

    @pytest.mark.asyncio
    async def test_fallback_stops_at_first_refusal(self):
        tried = []

        async def connect(host, port):
            tried.append(port)
            if port == 443:
                raise ConnectionRefusedError
            raise OSError("no route to host")

        probe = ReachabilityProbe(use_icmp=False, fallback_ports=[80, 443, 22])
        with patch("core.reachability.asyncio.open_connection", new=connect):
            result = await probe.probe("10.0.0.1", 1.0)
        assert tried == [80, 443]
        assert result.is_reachable is True

    @pytest.mark.asyncio
    async def test_no_fallback_ports(self):
        probe = ReachabilityProbe(use_icmp=False, fallback_ports=())
        result = await probe.probe("10.0.0.1", 1.0)
        assert result.is_reachable is False


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
