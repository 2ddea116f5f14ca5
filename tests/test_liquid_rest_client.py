from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx
import jwt
import pytest

from liquid_connector.adapters.liquid.rate_limit import AsyncTokenBucket
from liquid_connector.adapters.liquid.rest_client import LiquidRestClient
from liquid_connector.domain.errors import (
    AuthenticationError,
    ExchangeError,
    InsufficientFunds,
    NotSupported,
    RateLimitExceeded,
)
from liquid_connector.observability import Instrumentation

API_KEY = "1234567"
API_SECRET = "liquid-test-secret-with-at-least-32-bytes"


class RecordingInstrumentation(Instrumentation):
    def __init__(self) -> None:
        self.counters: list[tuple[str, dict[str, Any]]] = []
        self.spans: list[str] = []

    def counter(self, name: str, value: int = 1, *, attrs: dict[str, Any] | None = None) -> None:
        self.counters.append((name, dict(attrs or {})))

    @contextmanager
    def trace(self, name: str, *, attrs: dict[str, Any] | None = None) -> Iterator[None]:
        self.spans.append(name)
        yield


def _make_client(handler) -> LiquidRestClient:  # type: ignore[no-untyped-def]
    return LiquidRestClient(
        api_key=API_KEY,
        api_secret=API_SECRET,
        limiter=AsyncTokenBucket(rate_per_sec=10_000, burst=10_000),
        transport=httpx.MockTransport(handler),
    )


def test_successful_request_returns_decoded_json() -> None:
    client = _make_client(lambda request: httpx.Response(200, json=[{"currency": "BTC"}]))

    payload = asyncio.run(client.request("currencies"))

    assert payload == [{"currency": "BTC"}]


def test_undeclared_endpoint_is_rejected_before_io() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    client = _make_client(handler)

    with pytest.raises(NotSupported):
        asyncio.run(client.request("orders", api="public", method="DELETE"))
    with pytest.raises(NotSupported):
        asyncio.run(client.request("currencies", api="private"))

    assert calls == []


def test_error_response_is_classified_and_annotated() -> None:
    client = _make_client(
        lambda request: httpx.Response(422, json={"errors": {"user": ["not_enough_free_balance"]}})
    )

    with pytest.raises(InsufficientFunds) as exc_info:
        asyncio.run(client.request("orders", api="private", method="POST", params={"side": "buy"}))

    assert exc_info.value.status_code == 422
    assert exc_info.value.request_method == "POST"
    assert exc_info.value.request_path == "orders"
    assert "not_enough_free_balance" in (exc_info.value.response_body or "")


def test_401_plain_text_body_is_matched() -> None:
    client = _make_client(lambda request: httpx.Response(401, text="API Authentication failed"))

    with pytest.raises(AuthenticationError):
        asyncio.run(client.request("accounts/balance", api="private"))


def test_transport_error_is_wrapped_and_chained() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _make_client(handler)

    with pytest.raises(ExchangeError) as exc_info:
        asyncio.run(client.request("products"))

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
    assert exc_info.value.request_path == "products"
    assert "ConnectError" in str(exc_info.value)


def test_non_json_success_is_an_error() -> None:
    client = _make_client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(ExchangeError, match="non-JSON"):
        asyncio.run(client.request("products"))


def test_rate_limited_response_counts_and_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    recorder = RecordingInstrumentation()
    monkeypatch.setattr(
        "liquid_connector.adapters.liquid.rest_client.get_instrumentation", lambda: recorder
    )
    client = _make_client(lambda request: httpx.Response(429, text="Too Many Requests"))

    with pytest.raises(RateLimitExceeded):
        asyncio.run(client.request("products"))

    names = [name for name, _ in recorder.counters]
    assert names == ["rest_requests_total", "rest_429_total"]
    assert recorder.counters[0][1]["status"] == "429"
    assert recorder.spans == ["rest_call"]


def test_failure_log_does_not_leak_auth_token(caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text=f"echo {request.headers['X-Quoine-Auth']}")

    client = _make_client(handler)

    with caplog.at_level(logging.WARNING):
        with pytest.raises(ExchangeError):
            asyncio.run(client.request("accounts/balance", api="private"))

    record = next(r for r in caplog.records if r.getMessage() == "Liquid request failed")
    assert "eyJ" not in record.extra["response"]  # type: ignore[attr-defined]
    assert "[REDACTED_TOKEN]" in record.extra["response"]  # type: ignore[attr-defined]


def test_close_closes_underlying_client() -> None:
    client = _make_client(lambda request: httpx.Response(200, json={}))

    asyncio.run(client.close())

    assert client._client.is_closed


def test_concurrent_private_requests_reach_venue_in_nonce_order() -> None:
    nonces: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        claims = jwt.decode(request.headers["X-Quoine-Auth"], API_SECRET, algorithms=["HS256"])
        nonces.append(claims["nonce"])
        return httpx.Response(200, json={"balance": "1"})

    client = LiquidRestClient(
        api_key=API_KEY,
        api_secret=API_SECRET,
        limiter=AsyncTokenBucket(rate_per_sec=200.0),
        transport=httpx.MockTransport(handler),
    )

    async def _run() -> None:
        await asyncio.gather(
            *(
                client.request("accounts/{id}", api="private", params={"id": f"C{index}"})
                for index in range(8)
            )
        )

    asyncio.run(_run())

    assert len(nonces) == 8
    assert nonces == sorted(nonces)
    assert len(set(nonces)) == 8
