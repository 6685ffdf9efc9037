"""
Tracers used by the lock manager.

The manager never imports OpenTelemetry itself. It receives an object that
satisfies the ``Tracer`` protocol and opens spans through it, so tracing
can be switched off, swapped for OpenTelemetry, or recorded in tests
without touching the locking code.

Example:
    >>> from quorumlock.observability import create_tracer
    >>>
    >>> tracer = create_tracer(__name__, enable_tracing=True)
    >>> with tracer.span("quorumlock.acquire", {"quorumlock.lock.resource": "jobs"}) as span:
    ...     if span:
    ...         span.set_attribute("quorumlock.lock.acquired", True)
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from quorumlock.observability.tracing import get_tracer, should_trace


@runtime_checkable
class Tracer(Protocol):
    """
    Anything that can open a span around a block of code.

    ``span()`` yields an object with ``set_attribute(key, value)``, or None
    when nothing is recorded. Callers guard attribute updates with
    ``if span:``.
    """

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Any]: ...

    @property
    def enabled(self) -> bool: ...


class NullTracer:
    """Tracer that records nothing. Used when tracing is off or unavailable."""

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Iterator[None]:
        yield None

    @property
    def enabled(self) -> bool:
        return False


class OpenTelemetryTracer:
    """
    Tracer backed by the global OpenTelemetry tracer provider.

    Spans are started with ``start_as_current_span``, so lock spans nest
    under whatever span the caller has open.

    Raises:
        ImportError: If OpenTelemetry is not installed
    """

    def __init__(self, tracer_name: str) -> None:
        tracer = get_tracer(tracer_name)
        if tracer is None:
            raise ImportError(
                "OpenTelemetry is not installed. Install it with: "
                "pip install quorumlock-py[telemetry]"
            )
        self._tracer = tracer

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Any]:
        return self._tracer.start_as_current_span(name, attributes=attributes or {})

    @property
    def enabled(self) -> bool:
        return True


@dataclass
class RecordedSpan:
    """A span captured by MockTracer, with every attribute it ended up with."""

    name: str
    attributes: dict[str, Any] = field(default_factory=dict)

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def __bool__(self) -> bool:
        return True


class MockTracer:
    """
    Tracer for tests. Keeps every span it opened, in opening order.

    Example:
        >>> tracer = MockTracer()
        >>> with tracer.span("quorumlock.release", {"quorumlock.lock.resource": "a"}):
        ...     pass
        >>> tracer.span_names
        ['quorumlock.release']
        >>> tracer.spans[0].attributes
        {'quorumlock.lock.resource': 'a'}
    """

    def __init__(self) -> None:
        self.spans: list[RecordedSpan] = []

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Iterator[RecordedSpan]:
        recorded = RecordedSpan(name, dict(attributes or {}))
        self.spans.append(recorded)
        yield recorded

    @property
    def enabled(self) -> bool:
        return True

    @property
    def span_names(self) -> list[str]:
        return [recorded.name for recorded in self.spans]

    def find(self, name: str) -> list[RecordedSpan]:
        """Return the recorded spans called ``name``."""
        return [recorded for recorded in self.spans if recorded.name == name]

    def clear(self) -> None:
        self.spans.clear()


def create_tracer(name: str, enable_tracing: bool = True) -> Tracer:
    """
    Build the tracer for a component.

    Returns an OpenTelemetryTracer when ``enable_tracing`` is set and
    OpenTelemetry is importable, otherwise a NullTracer.
    """
    if should_trace(enable_tracing):
        return OpenTelemetryTracer(name)
    return NullTracer()


__all__ = [
    "MockTracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "RecordedSpan",
    "Tracer",
    "create_tracer",
]
