from __future__ import annotations

import logging
from collections.abc import Mapping
from time import monotonic
from typing import Any
from uuid import uuid4

import httpx

from liquid_connector.adapters.liquid.auth import MonotonicNonceGenerator, sign_request
from liquid_connector.adapters.liquid.errors import handle_errors
from liquid_connector.adapters.liquid.metadata import (
    API_VERSION,
    RATE_LIMIT_MS,
    SKIP_JSON_ON_STATUS_CODES,
    URLS,
    is_declared,
)
from liquid_connector.adapters.liquid.rate_limit import AsyncTokenBucket
from liquid_connector.domain.errors import ExchangeError, NotSupported
from liquid_connector.logging_context import with_logging_context
from liquid_connector.observability import get_instrumentation
from liquid_connector.security.redaction import sanitize_text

logger = logging.getLogger(__name__)


class LiquidRestClient:
    """Signs, rate-limits and sends Liquid REST calls, then classifies the response.

    Failures are raised to the caller as typed ``ExchangeError`` subclasses; no
    request is retried here.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        api_secret: str | None = None,
        base_url: str = URLS["api"],
        api_version: str = API_VERSION,
        timeout: float | httpx.Timeout = 10.0,
        limiter: AsyncTokenBucket | None = None,
        nonce: MonotonicNonceGenerator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.limiter = limiter or AsyncTokenBucket.from_interval_ms(RATE_LIMIT_MS)
        self.nonce = nonce or MonotonicNonceGenerator()
        resolved_timeout = (
            timeout
            if isinstance(timeout, httpx.Timeout)
            else httpx.Timeout(timeout=timeout, connect=5.0)
        )
        self._client = client or httpx.AsyncClient(timeout=resolved_timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        path: str,
        *,
        api: str = "public",
        method: str = "GET",
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        normalized_method = method.upper()
        if not is_declared(api, normalized_method, path):
            raise NotSupported(f"liquid does not declare {api} {normalized_method} {path}")

        request_id = uuid4().hex
        instrumentation = get_instrumentation()
        waited = await self.limiter.acquire()
        instrumentation.histogram("rate_limiter_wait_seconds", waited, attrs={"api": api})

        # Signed after the limiter so nonces leave in the order they were issued.
        signed = sign_request(
            path,
            base_url=self.base_url,
            api=api,
            method=normalized_method,
            params=params,
            api_key=self.api_key,
            api_secret=self.api_secret,
            nonce=self.nonce,
            api_version=self.api_version,
        )

        with with_logging_context(request_id=request_id):
            started = monotonic()
            try:
                with instrumentation.trace(
                    "rest_call", attrs={"method": normalized_method, "path": path, "api": api}
                ):
                    response = await self._client.request(
                        signed.method,
                        signed.url,
                        headers=signed.headers,
                        content=signed.body,
                    )
            except httpx.TransportError as exc:
                logger.warning(
                    "Liquid transport failure",
                    extra={
                        "extra": {
                            "method": normalized_method,
                            "path": path,
                            "error_type": type(exc).__name__,
                        }
                    },
                )
                raise ExchangeError(
                    f"liquid transport error {type(exc).__name__}: {sanitize_text(str(exc))}",
                    request_method=normalized_method,
                    request_path=path,
                ) from exc

            status = response.status_code
            instrumentation.histogram(
                "rest_latency_ms", (monotonic() - started) * 1000, attrs={"path": path}
            )
            instrumentation.counter(
                "rest_requests_total", 1, attrs={"api": api, "path": path, "status": str(status)}
            )
            if status == 429:
                instrumentation.counter("rest_429_total", 1, attrs={"path": path})

            body = response.text
            payload = self._decode(response)
            try:
                handle_errors(status, body, payload)
            except ExchangeError as exc:
                exc.request_method = normalized_method
                exc.request_path = path
                logger.warning(
                    "Liquid request failed",
                    extra={
                        "extra": {
                            "method": normalized_method,
                            "path": path,
                            "status_code": status,
                            "error_type": type(exc).__name__,
                            "response": sanitize_text(body[:240]),
                        }
                    },
                )
                raise

            logger.debug(
                "Liquid request succeeded",
                extra={"extra": {"method": normalized_method, "path": path, "status_code": status}},
            )
            if payload is None:
                raise ExchangeError(
                    "liquid returned a non-JSON success response",
                    status_code=status,
                    request_method=normalized_method,
                    request_path=path,
                    response_body=body,
                )
            return payload

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code in SKIP_JSON_ON_STATUS_CODES or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None
