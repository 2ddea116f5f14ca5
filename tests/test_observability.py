from __future__ import annotations

import sys

import pytest

from liquid_connector.observability import (
    NoopInstrumentation,
    configure_instrumentation,
    get_instrumentation,
)


def test_disabled_instrumentation_is_noop() -> None:
    instrumentation = configure_instrumentation(enabled=False)

    assert isinstance(instrumentation, NoopInstrumentation)
    assert get_instrumentation() is instrumentation
    with instrumentation.trace("rest_call", attrs={"path": "products"}):
        instrumentation.counter("rest_requests_total", 1, attrs={"status": "200"})
        instrumentation.histogram("rest_latency_ms", 1.5)
    instrumentation.shutdown()


def test_missing_opentelemetry_falls_back_to_noop(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "opentelemetry", None)

    instrumentation = configure_instrumentation(enabled=True, otlp_endpoint="http://localhost:4317")

    assert isinstance(instrumentation, NoopInstrumentation)
