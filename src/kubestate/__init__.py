"""Overview of kubestate.

kubestate turns Kubernetes API objects into Prometheus metric families. A
store declares, per resource kind, an ordered list of
:class:`~kubestate.generator.FamilyGenerator` rules; a
:class:`~kubestate.generator.GeneratorRegistry` runs them over object
snapshots mirrored through the list/watch pairs of :mod:`kubestate.listwatch`,
and :class:`~kubestate.collector.FamilyCollector` hands the result to
``prometheus_client``.
"""

from __future__ import annotations

from kubestate import (
    assembly,
    collector,
    errors,
    generator,
    labels,
    listwatch,
    logging,
    metric,
    models,
    prometheus,
    quantity,
    settings,
    stores,
)

__all__ = [
    "assembly",
    "collector",
    "errors",
    "generator",
    "labels",
    "listwatch",
    "logging",
    "metric",
    "models",
    "prometheus",
    "quantity",
    "settings",
    "stores",
]
