"""Metric data model shared by every generator.

A :class:`Metric` is one labeled observation; a :class:`Family` is the ordered
set of metrics one generator produced for one object. Both are frozen so a
family can be handed to concurrent consumers without copying.

Examples
--------
>>> from kubestate.metric import Family, Metric
>>> metric = Metric(("container",), ("app",), 1.0)
>>> metric.prepend_labels(("namespace",), ("default",)).label_keys
('namespace', 'container')
>>> len(Family(metrics=(metric,)))
1
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

__all__ = [
    "Family",
    "Metric",
    "MetricType",
]


class MetricType(StrEnum):
    """Exposition type of a metric family."""

    GAUGE = "gauge"
    COUNTER = "counter"
    INFO = "info"
    STATESET = "stateset"


@dataclass(frozen=True, slots=True)
class Metric:
    """One labeled numeric observation.

    Parameters
    ----------
    label_keys : Sequence[str]
        Ordered label names.
    label_values : Sequence[str]
        Label values, parallel to ``label_keys``.
    value : float
        Observed value.

    Raises
    ------
    ValueError
        If ``label_keys`` and ``label_values`` differ in length.
    """

    label_keys: tuple[str, ...] = ()
    label_values: tuple[str, ...] = ()
    value: float = 0.0

    def __post_init__(self) -> None:
        keys = tuple(self.label_keys)
        values = tuple(self.label_values)
        if len(keys) != len(values):
            message = (
                f"label keys and values differ in length ({len(keys)} != {len(values)}): {keys!r}"
            )
            raise ValueError(message)
        object.__setattr__(self, "label_keys", keys)
        object.__setattr__(self, "label_values", values)
        object.__setattr__(self, "value", float(self.value))

    def prepend_labels(self, keys: Sequence[str], values: Sequence[str]) -> Metric:
        """Return a copy with ``keys``/``values`` placed before the existing labels."""
        return Metric(
            (*keys, *self.label_keys),
            (*values, *self.label_values),
            self.value,
        )

    def labels(self) -> dict[str, str]:
        """Return the labels as an ordered mapping."""
        return dict(zip(self.label_keys, self.label_values, strict=True))


@dataclass(frozen=True, slots=True)
class Family:
    """Ordered metrics produced by one generator for one object.

    Extraction functions return a family with only ``metrics`` set; the
    generator stamps ``name``, ``help_text`` and ``type`` on the way out.
    """

    metrics: tuple[Metric, ...] = ()
    name: str = ""
    help_text: str = ""
    type: MetricType = MetricType.GAUGE

    def __post_init__(self) -> None:
        object.__setattr__(self, "metrics", tuple(self.metrics))

    @classmethod
    def of(cls, metrics: Iterable[Metric]) -> Family:
        """Build an unnamed family from ``metrics``."""
        return cls(metrics=tuple(metrics))

    def with_metrics(self, metrics: Iterable[Metric]) -> Family:
        """Return a copy of this family holding ``metrics``."""
        return replace(self, metrics=tuple(metrics))

    def __iter__(self) -> Iterator[Metric]:
        return iter(self.metrics)

    def __len__(self) -> int:
        return len(self.metrics)
