from __future__ import annotations

from typing import Dict

from fastapi import FastAPI
from loguru import logger
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.semconv.resource import ResourceAttributes

from berkomunitas_api.core.settings import settings

TRACER_NAME = "berkomunitas_api.rewards"

_PROVIDER_INSTALLED = False


def _parse_headers(raw: str | None) -> Dict[str, str] | None:
    if not raw:
        return None
    headers: Dict[str, str] = {}
    for pair in raw.split(","):
        key, sep, value = pair.partition("=")
        if sep and key.strip():
            headers[key.strip()] = value.strip()
    return headers or None


def _build_exporter() -> SpanExporter:
    if settings.otel_exporter_endpoint:
        return OTLPSpanExporter(
            endpoint=settings.otel_exporter_endpoint,
            headers=_parse_headers(settings.otel_exporter_headers),
        )
    return ConsoleSpanExporter()


def configure_tracing(
    app: FastAPI,
    *,
    service_name: str,
    service_version: str,
    environment: str,
) -> None:
    """Install the span exporter once per process and instrument ``app``.

    With ``tracing_enabled`` off the global no-op provider stays in place.
    """

    global _PROVIDER_INSTALLED

    if not settings.tracing_enabled:
        logger.debug("Tracing disabled", service=service_name)
        return

    if not _PROVIDER_INSTALLED:
        resource = Resource.create(
            {
                ResourceAttributes.SERVICE_NAME: service_name,
                ResourceAttributes.SERVICE_VERSION: service_version,
                ResourceAttributes.DEPLOYMENT_ENVIRONMENT: environment,
            }
        )
        provider = TracerProvider(resource=resource)
        provider.add_span_processor(BatchSpanProcessor(_build_exporter()))
        trace.set_tracer_provider(provider)
        LoggingInstrumentor().instrument(set_logging_format=False)
        _PROVIDER_INSTALLED = True

    FastAPIInstrumentor.instrument_app(app, tracer_provider=trace.get_tracer_provider())


def get_tracer() -> trace.Tracer:
    return trace.get_tracer(TRACER_NAME)


__all__ = ["TRACER_NAME", "configure_tracing", "get_tracer"]
