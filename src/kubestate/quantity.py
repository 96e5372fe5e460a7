"""Convert Kubernetes resource quantities into labeled metrics.

Resource lists map a resource name (``cpu``, ``memory``...) to a quantity
string such as ``"500m"`` or ``"128Mi"``. Each recognized name becomes one
metric labeled with the container, the sanitized resource name and its unit.

Examples
--------
>>> from kubestate.quantity import resources_to_metrics
>>> [(m.label_values, m.value) for m in resources_to_metrics("app", {"cpu": "500m"})]
[(('app', 'cpu', 'core'), 0.5)]
"""

from __future__ import annotations

import math
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from kubernetes.utils import parse_quantity

from kubestate.labels import sanitize_label_name
from kubestate.metric import Metric

if TYPE_CHECKING:
    from collections.abc import Mapping
    from decimal import Decimal

__all__ = [
    "RESOURCE_LABEL_KEYS",
    "Quantity",
    "ResourceName",
    "Unit",
    "milli_value",
    "resources_to_metrics",
    "whole_value",
]

Quantity = str | int | float


class Unit(StrEnum):
    """Unit label attached to resource metrics."""

    CORE = "core"
    BYTE = "byte"


class ResourceName(StrEnum):
    """Resource names converted into metrics."""

    CPU = "cpu"
    MEMORY = "memory"
    STORAGE = "storage"
    EPHEMERAL_STORAGE = "ephemeral-storage"


RESOURCE_LABEL_KEYS: Final[tuple[str, ...]] = ("container", "resource", "unit")

_UNITS: Final[dict[str, Unit]] = {
    ResourceName.CPU: Unit.CORE,
    ResourceName.MEMORY: Unit.BYTE,
    ResourceName.STORAGE: Unit.BYTE,
    ResourceName.EPHEMERAL_STORAGE: Unit.BYTE,
}


def milli_value(quantity: Quantity) -> int:
    """Return ``quantity`` in thousandths, rounded up.

    >>> milli_value("250m"), milli_value("1.5")
    (250, 1500)
    """
    amount: Decimal = parse_quantity(quantity)
    return math.ceil(amount * 1000)


def whole_value(quantity: Quantity) -> int:
    """Return ``quantity`` as an integer, rounded up.

    >>> whole_value("1Ki")
    1024
    """
    amount: Decimal = parse_quantity(quantity)
    return math.ceil(amount)


def _to_float(resource_name: str, quantity: Quantity) -> float:
    if _UNITS[resource_name] is Unit.CORE:
        return milli_value(quantity) / 1000
    return float(whole_value(quantity))


def resources_to_metrics(container_name: str, resources: Mapping[str, Quantity] | None) -> list[Metric]:
    """Return one metric per recognized resource in ``resources``.

    Parameters
    ----------
    container_name : str
        Value of the ``container`` label.
    resources : Mapping[str, Quantity] | None
        Resource name to quantity map. Unrecognized names are skipped.

    Returns
    -------
    list[Metric]
        Metrics labeled ``container``, ``resource`` and ``unit``, ordered by
        resource name. CPU is expressed in cores, every other resource in
        bytes.
    """
    if not resources:
        return []

    metrics: list[Metric] = []
    for resource_name in sorted(resources):
        unit = _UNITS.get(resource_name)
        if unit is None:
            continue
        metrics.append(
            Metric(
                RESOURCE_LABEL_KEYS,
                (container_name, sanitize_label_name(resource_name), unit.value),
                _to_float(resource_name, resources[resource_name]),
            )
        )
    return metrics
