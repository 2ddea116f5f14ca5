from __future__ import annotations

import logging
import re
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

logger = logging.getLogger(__name__)

SERVICE_NAME = "liquid_connector"

_INVALID_METRIC_CHARS = re.compile(r"[^a-zA-Z0-9_.-]+")


def metric_name(name: str) -> str:
    return _INVALID_METRIC_CHARS.sub("_", name).strip("_") or "invalid_metric"


class Instrumentation:
    """Metrics and tracing hooks used by the REST client. Does nothing by default."""

    def counter(self, name: str, value: int = 1, *, attrs: dict[str, Any] | None = None) -> None:
        return None

    def histogram(self, name: str, value: float, *, attrs: dict[str, Any] | None = None) -> None:
        return None

    @contextmanager
    def trace(self, name: str, *, attrs: dict[str, Any] | None = None) -> Iterator[None]:
        del name, attrs
        yield

    def shutdown(self) -> None:
        return None


class NoopInstrumentation(Instrumentation):
    pass


class OTelInstrumentation(Instrumentation):
    """Exports spans and metrics over OTLP/gRPC.

    OpenTelemetry is an optional extra (``liquid-connector[otel]``); the imports
    fail with ``ImportError`` when it is not installed.
    """

    def __init__(self, *, service_name: str, otlp_endpoint: str | None) -> None:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        exporter_kwargs = {"endpoint": otlp_endpoint} if otlp_endpoint else {}
        resource = Resource.create({"service.name": service_name})

        self._tracer_provider = TracerProvider(resource=resource)
        self._tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(**exporter_kwargs))
        )
        self._meter_provider = MeterProvider(
            resource=resource,
            metric_readers=[PeriodicExportingMetricReader(OTLPMetricExporter(**exporter_kwargs))],
        )
        trace.set_tracer_provider(self._tracer_provider)
        metrics.set_meter_provider(self._meter_provider)
        self._tracer = trace.get_tracer(service_name)
        self._meter = metrics.get_meter(service_name)
        self._instruments: dict[tuple[str, str], Any] = {}

    def _instrument(self, kind: str, name: str) -> Any:
        key = (kind, metric_name(name))
        instrument = self._instruments.get(key)
        if instrument is None:
            factory = self._meter.create_counter if kind == "counter" else self._meter.create_histogram
            instrument = factory(key[1])
            self._instruments[key] = instrument
        return instrument

    def counter(self, name: str, value: int = 1, *, attrs: dict[str, Any] | None = None) -> None:
        self._instrument("counter", name).add(value, attrs or {})

    def histogram(self, name: str, value: float, *, attrs: dict[str, Any] | None = None) -> None:
        self._instrument("histogram", name).record(value, attrs or {})

    @contextmanager
    def trace(self, name: str, *, attrs: dict[str, Any] | None = None) -> Iterator[None]:
        with self._tracer.start_as_current_span(name, attributes=attrs or {}):
            yield

    def shutdown(self) -> None:
        self._meter_provider.shutdown()
        self._tracer_provider.shutdown()


_lock = threading.Lock()
_current: Instrumentation = NoopInstrumentation()


def configure_instrumentation(
    *,
    enabled: bool,
    service_name: str = SERVICE_NAME,
    otlp_endpoint: str | None = None,
) -> Instrumentation:
    global _current
    with _lock:
        _current = NoopInstrumentation()
        if enabled:
            try:
                _current = OTelInstrumentation(
                    service_name=service_name, otlp_endpoint=otlp_endpoint
                )
            except ImportError:
                logger.warning(
                    "OpenTelemetry is not installed; instrumentation disabled",
                    extra={"extra": {"otlp_endpoint": otlp_endpoint}},
                )
        return _current


def get_instrumentation() -> Instrumentation:
    return _current
