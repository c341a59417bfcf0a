"""Unit tests for HealthReporter."""

import asyncio

import httpx

from relayer.src.HealthReporter import HealthReporter


def make_reporter(handler, key: str | None = "push-key") -> HealthReporter:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HealthReporter(
        "https://uptime.example/", key, environment="PEAQ Mainnet", client=client
    )


class TestHealthReporter:
    """Test heartbeat delivery."""

    def test_sends_push(self) -> None:
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"ok": True})

        reporter = make_reporter(handler)
        assert asyncio.run(reporter.report(3)) is True

        url = requests[0].url
        assert url.path == "/api/push/push-key"
        assert url.params["status"] == "up"
        assert url.params["msg"] == "PEAQMainnetFulfillingOK"
        assert url.params["ping"] == "3"

    def test_disabled_without_key(self) -> None:
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        reporter = make_reporter(handler, key=None)
        assert reporter.enabled is False
        assert asyncio.run(reporter.report(1)) is False
        assert requests == []

    def test_rejected_heartbeat_is_swallowed(self) -> None:
        reporter = make_reporter(lambda request: httpx.Response(404, text="no monitor"))
        assert asyncio.run(reporter.report(1)) is False

    def test_transport_error_is_swallowed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        reporter = make_reporter(handler)
        assert asyncio.run(reporter.report(1)) is False

    def test_invalid_key_is_swallowed(self) -> None:
        """A key that cannot form a URL should fail the heartbeat, not raise."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        reporter = make_reporter(handler, key="abc\x01def")
        assert asyncio.run(reporter.report(1)) is False
        assert requests == []

    def test_unexpected_error_is_swallowed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise RuntimeError("transport blew up")

        reporter = make_reporter(handler)
        assert asyncio.run(reporter.report(1)) is False
