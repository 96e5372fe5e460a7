"""Expose generated metric families through a ``prometheus_client`` registry.

:class:`FamilyCollector` runs a :class:`~kubestate.generator.GeneratorRegistry`
over the objects a source returns at scrape time and renders one
``prometheus_client`` metric family per generator, samples ordered by object
and then by the order the generator produced them.

Examples
--------
>>> from prometheus_client import CollectorRegistry, generate_latest
>>> from kubestate.settings import KubeStateSettings
>>> from kubestate.stores import build_registry
>>> registry = build_registry("verticalpodautoscalers", KubeStateSettings())
>>> prometheus_registry = CollectorRegistry()
>>> prometheus_registry.register(FamilyCollector(registry, list))
>>> b"kube_verticalpodautoscaler_labels" in generate_latest(prometheus_registry)
True
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client.metrics_core import Metric as PrometheusMetric
from prometheus_client.registry import Collector

from kubestate.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from kubestate.generator import GeneratorRegistry
    from kubestate.metric import Family

__all__ = ["FamilyCollector", "to_prometheus"]

logger = get_logger(__name__)


def to_prometheus(family: Family) -> PrometheusMetric:
    """Render ``family`` as a ``prometheus_client`` metric family."""
    rendered = PrometheusMetric(family.name, family.help_text, family.type.value)
    for metric in family.metrics:
        rendered.add_sample(family.name, metric.labels(), metric.value)
    return rendered


class FamilyCollector(Collector):
    """Collector bridging a generator registry to ``prometheus_client``.

    Parameters
    ----------
    registry : GeneratorRegistry
        Generators of one resource kind.
    source : Callable[[], Iterable[object]]
        Returns the current objects of that kind, typically a snapshot of a
        watch-fed cache.
    """

    def __init__(self, registry: GeneratorRegistry, source: Callable[[], Iterable[object]]) -> None:
        self._registry = registry
        self._source = source

    def collect(self) -> Iterator[PrometheusMetric]:
        rendered = [to_prometheus(generator.empty_family()) for generator in self._registry]
        count = 0
        for obj in self._source():
            count += 1
            for target, family in zip(rendered, self._registry.invoke(obj), strict=True):
                for metric in family.metrics:
                    target.add_sample(family.name, metric.labels(), metric.value)
        logger.debug(
            "Collected metric families",
            extra={
                "operation": "collect",
                "resource": self._registry.resource,
                "objects": count,
            },
        )
        yield from rendered

    def describe(self) -> Iterator[PrometheusMetric]:
        """Describe the families without touching the source."""
        for generator in self._registry:
            yield to_prometheus(generator.empty_family())
