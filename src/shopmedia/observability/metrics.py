"""Metrics hook protocol and no-op default implementation.

shopmedia emits counters, timings and gauges at key points of the
pipeline.  By default a :class:`NoopMetricsHook` is used so there is zero
overhead.  Supply any object satisfying :class:`MetricsHook` through
``ShopMediaConfig(metrics=...)`` to route them elsewhere.

Emitted metric names:

* ``shopmedia.validation_rejected_total``    -- counter
* ``shopmedia.transcode_total``              -- counter
* ``shopmedia.transcode_duration_ms``        -- timing
* ``shopmedia.preview_live``                 -- gauge
* ``shopmedia.preview_double_release_total`` -- counter
* ``shopmedia.upload_success_total``         -- counter
* ``shopmedia.upload_failure_total``         -- counter
* ``shopmedia.upload_duration_ms``           -- timing
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict whose keys and values are
    strings.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass


def resolve_metrics(metrics: object | None) -> MetricsHook:
    """Return *metrics*, or a :class:`NoopMetricsHook` when it is ``None``."""
    return metrics if metrics is not None else NoopMetricsHook()  # type: ignore[return-value]
