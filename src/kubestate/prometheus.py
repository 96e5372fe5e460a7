"""Typed Prometheus helpers for kubestate's own instrumentation.

The helpers wrap :mod:`prometheus_client` constructors behind small protocols
so call sites depend on the behaviour they use rather than on concrete
collector classes, and so registering the same metric twice on one registry
returns the collector that is already there.

Examples
--------
>>> from prometheus_client import CollectorRegistry
>>> from kubestate.prometheus import build_generator_failures_counter
>>> counter = build_generator_failures_counter(registry=CollectorRegistry())
>>> counter.labels(resource="verticalpodautoscalers", generator="example").inc()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, Protocol, cast

from prometheus_client import REGISTRY, Counter

if TYPE_CHECKING:
    from collections.abc import Sequence

    from prometheus_client.registry import CollectorRegistry

__all__ = [
    "GENERATOR_FAILURES_TOTAL",
    "CounterLike",
    "build_counter",
    "build_generator_failures_counter",
]

GENERATOR_FAILURES_TOTAL: Final[str] = "kube_state_metrics_generator_failures_total"


class CounterLike(Protocol):
    """Protocol describing Prometheus counter behaviour relied upon."""

    def labels(self, **labels: object) -> CounterLike:
        """Return a counter labelled with the provided fields."""
        ...

    def inc(self, amount: float = 1.0) -> None:
        """Increment the counter by ``amount``."""
        ...


def _existing_collector(name: str, registry: CollectorRegistry) -> object | None:
    names_to_collectors = cast(
        "dict[str, object] | None",
        getattr(registry, "_names_to_collectors", None),
    )
    if isinstance(names_to_collectors, dict):
        return names_to_collectors.get(name)
    return None


def build_counter(
    name: str,
    documentation: str,
    labelnames: Sequence[str] | None = None,
    *,
    registry: CollectorRegistry | None = None,
) -> CounterLike:
    """Return a counter registered on ``registry``.

    Parameters
    ----------
    name : str
        Metric name registered with Prometheus.
    documentation : str
        Human readable description of the metric.
    labelnames : Sequence[str] | None, optional
        Label names applied to the metric (defaults to empty tuple).
    registry : CollectorRegistry | None, optional
        Prometheus registry to register against (defaults to the global
        registry).

    Returns
    -------
    CounterLike
        The new counter, or the collector already registered under ``name``.

    Raises
    ------
    ValueError
        If registration fails and no existing collector is found.
    """
    target = registry if registry is not None else REGISTRY
    try:
        return cast(
            "CounterLike",
            Counter(name, documentation, tuple(labelnames or ()), registry=target),
        )
    except ValueError:
        # prometheus_client registers counters under their ``_total`` name.
        existing = _existing_collector(name, target)
        if existing is None:
            raise
        return cast("CounterLike", existing)


def build_generator_failures_counter(*, registry: CollectorRegistry | None = None) -> CounterLike:
    """Return the counter of metric family generators that failed on an object."""
    return build_counter(
        GENERATOR_FAILURES_TOTAL,
        "Number of times a metric family generator failed and produced an empty family.",
        ("resource", "generator"),
        registry=registry,
    )
