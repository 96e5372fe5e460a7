"""Tests for the default-label wrapper of extraction functions."""

from __future__ import annotations

from dataclasses import dataclass, replace

import pytest

from kubestate.assembly import wrap_family_func
from kubestate.errors import MalformedObjectError
from kubestate.metric import Family, Metric


@dataclass(frozen=True)
class Widget:
    name: str
    namespace: str = "default"
    size: int | None = None


def _sizes(widget: Widget) -> Family:
    return Family.of([Metric(("unit",), ("count",), float(widget.size or 0))])


def _wrap(func=_sizes, **kwargs):  # noqa: ANN001, ANN003, ANN202
    return wrap_family_func(
        Widget,
        func,
        default_label_keys=("namespace", "widget"),
        default_label_values=lambda w: (w.namespace, w.name),
        **kwargs,
    )


class TestWrapFamilyFunc:
    """Verify type resolution, defaults and label prepending."""

    def test_default_labels_leftmost(self) -> None:
        """Identifying labels precede the labels the function produced."""
        family = _wrap()(Widget("w1", size=3))

        (metric,) = family.metrics
        assert metric.label_keys == ("namespace", "widget", "unit")
        assert metric.label_values == ("default", "w1", "count")
        assert metric.value == 3.0

    def test_wrong_type_is_malformed(self) -> None:
        """An object of another type raises MalformedObjectError."""
        with pytest.raises(MalformedObjectError, match="expected Widget, got dict"):
            _wrap()({"name": "w1"})

    def test_defaults_applied_before_function(self) -> None:
        """Unset substructures are filled before the function and label values run."""
        seen: list[Widget] = []

        def record(widget: Widget) -> Family:
            seen.append(widget)
            return _sizes(widget)

        family = _wrap(record, defaults=lambda w: replace(w, size=w.size or 7))(Widget("w1"))

        assert seen == [Widget("w1", size=7)]
        assert family.metrics[0].value == 7.0

    def test_function_family_not_mutated(self) -> None:
        """The family returned by the function keeps its original labels."""
        original = Family.of([Metric(("unit",), ("count",), 1.0)])

        wrapped = _wrap(lambda widget: original)(Widget("w1"))

        assert original.metrics[0].label_keys == ("unit",)
        assert wrapped.metrics[0].label_keys == ("namespace", "widget", "unit")

    def test_label_value_count_mismatch(self) -> None:
        """Returning the wrong number of default values is a contract violation."""
        extract = wrap_family_func(
            Widget,
            _sizes,
            default_label_keys=("namespace", "widget"),
            default_label_values=lambda w: (w.name,),
        )

        with pytest.raises(ValueError, match="2 default label keys but 1 values"):
            extract(Widget("w1"))

    def test_empty_family_stays_empty(self) -> None:
        """A function producing no metrics yields an empty family."""
        assert len(_wrap(lambda widget: Family())(Widget("w1"))) == 0
