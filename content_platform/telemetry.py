"""
Observability setup:
  - OpenTelemetry distributed tracing → Jaeger (via OTLP gRPC)
  - Prometheus metrics: feed latency, social mutations, dangling references,
    slug collisions

Both are initialised once at startup and injected into FastAPI via middleware.
"""
import logging
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from prometheus_client import Counter, Histogram

from content_platform.config import settings

logger = logging.getLogger(__name__)

# ─────────────────────────── Prometheus Metrics ───────────────────────────
FEED_LATENCY = Histogram(
    "feed_latency_seconds",
    "Latency of composed feed reads (relational id set → document fetch)",
    ["feed"],  # 'following' | 'following_moments' | 'favorites'
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

SOCIAL_MUTATIONS_TOTAL = Counter(
    "social_mutations_total",
    "Follow-graph and favorite-set writes",
    ["op"],  # 'follow' | 'unfollow' | 'favorite' | 'unfavorite'
)

DANGLING_REFERENCES_TOTAL = Counter(
    "dangling_references_total",
    "Relational ids whose document no longer exists (dropped from results)",
    ["source"],
)

SLUG_COLLISIONS_TOTAL = Counter(
    "slug_collisions_total",
    "Post writes that lost a slug race on the unique index and were retried",
)


# ─────────────────────────── OpenTelemetry Setup ──────────────────────────
def _otlp_processor() -> Optional[BatchSpanProcessor]:
    try:
        exporter = OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint, insecure=True)
    except Exception as exc:
        logger.warning("OTLP exporter unavailable (%s); spans stay in-process", exc)
        return None
    return BatchSpanProcessor(exporter)


def setup_tracing() -> None:
    """
    Install the global TracerProvider and instrument the three storage clients.

    Spans from the MySQL, MongoDB and Redis drivers nest under the manual
    feed/follow/favorite spans, so one trace shows both halves of a composed read.
    """
    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.service_name,
                "deployment.environment": settings.environment,
            }
        )
    )
    processor = _otlp_processor()
    if processor is not None:
        provider.add_span_processor(processor)
        logger.info("OTel tracing → %s", settings.otel_exporter_otlp_endpoint)
    trace.set_tracer_provider(provider)

    SQLAlchemyInstrumentor().instrument()
    PymongoInstrumentor().instrument()
    if settings.slug_lock_enabled:
        RedisInstrumentor().instrument()


def instrument_app(app) -> None:  # noqa: ANN001
    """Call after app is created to add FastAPI request spans."""
    FastAPIInstrumentor.instrument_app(app)
