"""
Observability utilities for quorumlock.

Provides the tracer abstraction used by the lock manager and the standard
span attribute names. OpenTelemetry is optional; without it every tracer
created by ``create_tracer`` is a ``NullTracer``.
"""

from quorumlock.observability.attributes import (
    ATTR_ATTEMPT,
    ATTR_ELAPSED_MS,
    ATTR_GRANTED,
    ATTR_LOCK_ACQUIRED,
    ATTR_LOCK_RESOURCE,
    ATTR_LOCK_TTL_MS,
    ATTR_LOCK_VALIDITY_MS,
    ATTR_NODE_COUNT,
    ATTR_NODE_FAILURES,
    ATTR_QUORUM,
    ATTR_RETRY_COUNT,
)
from quorumlock.observability.tracer import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    RecordedSpan,
    Tracer,
    create_tracer,
)
from quorumlock.observability.tracing import (
    OTEL_AVAILABLE,
    get_tracer,
    should_trace,
)

__all__ = [
    # Tracing utilities
    "OTEL_AVAILABLE",
    "get_tracer",
    "should_trace",
    # Tracer (composition-based API)
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "RecordedSpan",
    "create_tracer",
    # Attributes - Lock
    "ATTR_LOCK_RESOURCE",
    "ATTR_LOCK_TTL_MS",
    "ATTR_LOCK_ACQUIRED",
    "ATTR_LOCK_VALIDITY_MS",
    # Attributes - Quorum
    "ATTR_NODE_COUNT",
    "ATTR_QUORUM",
    "ATTR_GRANTED",
    "ATTR_NODE_FAILURES",
    # Attributes - Retry
    "ATTR_ATTEMPT",
    "ATTR_RETRY_COUNT",
    "ATTR_ELAPSED_MS",
]
