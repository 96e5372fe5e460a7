"""Adapt typed per-kind extraction functions to the generic generator signature.

Generators are declared against a concrete resource model, but the registry
calls them with whatever object the cache handed over. :func:`wrap_family_func`
is the single place where the object's type is resolved, unset optional
substructures are filled with their zero values and the identifying labels of
the object are prepended to every metric.

Examples
--------
>>> from dataclasses import dataclass
>>> from kubestate.metric import Family, Metric
>>> @dataclass
... class Widget:
...     name: str
>>> extract = wrap_family_func(
...     Widget,
...     lambda w: Family.of([Metric((), (), 1)]),
...     default_label_keys=("widget",),
...     default_label_values=lambda w: (w.name,),
... )
>>> extract(Widget("w1")).metrics[0].labels()
{'widget': 'w1'}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from kubestate.errors import MalformedObjectError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from kubestate.metric import Family

__all__ = [
    "ExtractFunc",
    "wrap_family_func",
]

type ExtractFunc = Callable[[object], Family]


def wrap_family_func[T](
    model: type[T],
    func: Callable[[T], Family],
    *,
    default_label_keys: Sequence[str],
    default_label_values: Callable[[T], Sequence[str]],
    defaults: Callable[[T], T] | None = None,
) -> ExtractFunc:
    """Wrap a typed extraction function into an ``object -> Family`` callable.

    Parameters
    ----------
    model : type[T]
        Concrete resource type ``func`` understands.
    func : Callable[[T], Family]
        Typed extraction function.
    default_label_keys : Sequence[str]
        Identifying label names placed first on every metric.
    default_label_values : Callable[[T], Sequence[str]]
        Returns the identifying label values of an object, one per key.
    defaults : Callable[[T], T] | None, optional
        Returns the object with every unset optional substructure replaced by
        its zero value. Applied before ``func`` and ``default_label_values``.

    Returns
    -------
    ExtractFunc
        Callable accepting any object.

    Raises
    ------
    MalformedObjectError
        From the returned callable, when the object is not a ``model``.
    """
    label_keys = tuple(default_label_keys)

    def extract(obj: object) -> Family:
        if not isinstance(obj, model):
            message = f"expected {model.__name__}, got {type(obj).__name__}"
            raise MalformedObjectError(message, context={"expected": model.__name__})
        resource = defaults(obj) if defaults is not None else obj

        family = func(resource)
        label_values = tuple(default_label_values(resource))
        if len(label_values) != len(label_keys):
            message = (
                f"{len(label_keys)} default label keys but {len(label_values)} values "
                f"for {model.__name__}"
            )
            raise ValueError(message)

        return family.with_metrics(
            metric.prepend_labels(label_keys, label_values) for metric in family.metrics
        )

    return extract
