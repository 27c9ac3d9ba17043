"""Tests for core/http.py against a local aiohttp server."""

# pylint: disable=missing-function-docstring,redefined-outer-name

import asyncio
from dataclasses import dataclass, field
from typing import Optional

import pytest
from aiohttp import test_utils, web

from dns_readiness.core.http import AiohttpChecker, endpoint_url
from dns_readiness.core.models import ProbeRequest, Ready
from dns_readiness.core.probe import ReadinessProbe
from dns_readiness.utils.exceptions import HTTPConnectionError, UnexpectedStatusError


@dataclass
class EchoServerState:
    """Counts requests and the server's open connections while handling them."""

    ready_after: int = 0
    requests: int = 0
    peak_connections: int = 0
    server: Optional[test_utils.TestServer] = None


def build_app(state: EchoServerState) -> web.Application:
    async def index(_request):
        state.requests += 1
        open_now = len(state.server.runner.server.connections)
        state.peak_connections = max(state.peak_connections, open_now)

        if state.requests <= state.ready_after:
            return web.Response(status=503, text="warming up")

        return web.Response(text="ok")

    async def moved(_request):
        raise web.HTTPFound("/")

    async def teapot(_request):
        return web.Response(status=418, text="short and stout")

    app = web.Application()
    app.router.add_get("/", index)
    app.router.add_get("/moved", moved)
    app.router.add_get("/teapot", teapot)
    return app


@pytest.fixture
async def echo_server():
    state = EchoServerState()
    server = test_utils.TestServer(build_app(state))
    state.server = server
    await server.start_server()
    yield state
    await server.close()


@dataclass
class LoopbackResolver:
    """Resolves every name to the loopback address."""

    calls: list[str] = field(default_factory=list)

    async def resolve(self, hostname, dns_server, dial_timeout=None):
        self.calls.append(hostname)
        return frozenset({"127.0.0.1"})


class TestEndpointUrl:
    """Tests for endpoint_url."""

    def test_default_port(self):
        assert endpoint_url("echo.example.com") == "http://echo.example.com/"

    def test_port_80_is_implicit(self):
        assert endpoint_url("echo.example.com", 80) == "http://echo.example.com/"

    def test_custom_port(self):
        assert endpoint_url("echo.example.com", 8080) == "http://echo.example.com:8080/"


class TestAiohttpChecker:
    """Tests for AiohttpChecker."""

    async def test_200_returns_status(self, echo_server):
        checker = AiohttpChecker()
        status = await checker.check(endpoint_url("127.0.0.1", echo_server.server.port), 5.0)
        assert status == 200

    async def test_503_raises_unexpected_status(self, echo_server):
        echo_server.ready_after = 1
        checker = AiohttpChecker()

        with pytest.raises(UnexpectedStatusError) as exc_info:
            await checker.check(endpoint_url("127.0.0.1", echo_server.server.port), 5.0)

        assert exc_info.value.status == 503
        assert exc_info.value.reason == "Service Unavailable"
        assert str(exc_info.value) == "unexpected status code: 503 Service Unavailable"

    async def test_other_status_raises(self, echo_server):
        url = f"http://127.0.0.1:{echo_server.server.port}/teapot"

        with pytest.raises(UnexpectedStatusError) as exc_info:
            await AiohttpChecker().check(url, 5.0)

        assert exc_info.value.status == 418
        assert exc_info.value.url == url

    async def test_redirect_is_followed(self, echo_server):
        url = f"http://127.0.0.1:{echo_server.server.port}/moved"
        assert await AiohttpChecker().check(url, 5.0) == 200

    async def test_refused_connection_raises_connection_error(self):
        url = endpoint_url("127.0.0.1", test_utils.unused_port())

        with pytest.raises(HTTPConnectionError) as exc_info:
            await AiohttpChecker().check(url, 5.0)

        assert exc_info.value.url == url
        assert exc_info.value.cause is not None
        assert exc_info.value.__cause__ is exc_info.value.cause

    async def test_no_timeout_uses_client_default(self, echo_server):
        url = endpoint_url("127.0.0.1", echo_server.server.port)
        assert await AiohttpChecker().check(url) == 200


class TestProbeAgainstServer:
    """The probe loop with the real HTTP checker."""

    @pytest.fixture
    def probe_for(self, test_settings):
        def factory(server: test_utils.TestServer) -> ReadinessProbe:
            settings = test_settings.model_copy(
                update={"http_port": server.port, "poll_interval": 0.0}
            )
            return ReadinessProbe(settings=settings, resolver=LoopbackResolver())

        return factory

    async def test_ready_after_warmup(self, echo_server, probe_for):
        echo_server.ready_after = 2
        probe = probe_for(echo_server.server)

        outcome = await probe.await_ready(
            ProbeRequest(hostname="127.0.0.1", dns_server="8.8.8.8", timeout=10.0)
        )

        assert isinstance(outcome, Ready)
        assert outcome.attempts == 3
        assert outcome.addresses == frozenset({"127.0.0.1"})

    async def test_connections_do_not_accumulate(self, echo_server, probe_for):
        echo_server.ready_after = 499
        probe = probe_for(echo_server.server)

        outcome = await probe.await_ready(
            ProbeRequest(hostname="127.0.0.1", dns_server="8.8.8.8", timeout=120.0)
        )

        assert isinstance(outcome, Ready)
        assert outcome.attempts == 500
        assert echo_server.peak_connections <= 3

        for _ in range(50):
            if not echo_server.server.runner.server.connections:
                break
            await asyncio.sleep(0.02)

        assert echo_server.server.runner.server.connections == []
