"""Compose Prometheus label pairs from free-form Kubernetes maps.

Annotations and labels are arbitrary string maps. Turning every entry into a
Prometheus label would make series cardinality unbounded, so each resource
kind carries an :class:`AllowList` deciding which keys are converted.

Examples
--------
>>> from kubestate.labels import AllowList, create_label_keys_values
>>> create_label_keys_values("label", {"app.kubernetes.io/name": "web"}, AllowList.all())
(['label_app_kubernetes_io_name'], ['web'])
>>> create_label_keys_values("label", {"team": "a", "tier": "b"}, AllowList.of(["tier"]))
(['label_tier'], ['b'])
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

__all__ = [
    "WILDCARD",
    "AllowList",
    "create_label_keys_values",
    "sanitize_label_name",
]

WILDCARD: Final[str] = "*"

_INVALID_LABEL_CHARS: Final[re.Pattern[str]] = re.compile(r"[^A-Za-z0-9_]")


@dataclass(frozen=True, slots=True)
class AllowList:
    """Keys of a free-form map that may become labels.

    Attributes
    ----------
    wildcard : bool
        When true every key passes and ``keys`` is ignored.
    keys : tuple[str, ...]
        Explicit keys in declaration order.
    """

    wildcard: bool = False
    keys: tuple[str, ...] = ()

    @classmethod
    def all(cls) -> AllowList:
        """Return the wildcard allow-list."""
        return cls(wildcard=True)

    @classmethod
    def none(cls) -> AllowList:
        """Return an allow-list no key passes."""
        return cls()

    @classmethod
    def of(cls, keys: Iterable[str]) -> AllowList:
        """Return an explicit allow-list, dropping repeated keys."""
        return cls(keys=tuple(dict.fromkeys(keys)))

    @classmethod
    def parse(cls, values: Iterable[str] | None) -> AllowList:
        """Build an allow-list from configuration values.

        ``None`` and an empty sequence allow nothing; any ``"*"`` entry makes
        the list a wildcard.
        """
        if values is None:
            return cls.none()
        items = [value.strip() for value in values if value.strip()]
        if WILDCARD in items:
            return cls.all()
        return cls.of(items)

    @property
    def empty(self) -> bool:
        return not self.wildcard and not self.keys


def sanitize_label_name(name: str) -> str:
    """Turn ``name`` into a valid Prometheus label name.

    Every character outside ``[A-Za-z0-9_]`` becomes ``_`` and a leading
    ``_`` is added when the result does not start with a letter or underscore.

    Examples
    --------
    >>> sanitize_label_name("app.kubernetes.io/name")
    'app_kubernetes_io_name'
    >>> sanitize_label_name("3scale")
    '_3scale'
    """
    sanitized = _INVALID_LABEL_CHARS.sub("_", name)
    if not sanitized or not (sanitized[0].isalpha() or sanitized[0] == "_"):
        sanitized = f"_{sanitized}"
    return sanitized


def create_label_keys_values(
    prefix: str,
    source: Mapping[str, str] | None,
    allow_list: AllowList,
) -> tuple[list[str], list[str]]:
    """Compose parallel label keys and values from a free-form map.

    Parameters
    ----------
    prefix : str
        Key namespace, joined to every sanitized key with ``_`` (for example
        ``"annotation"`` or ``"label"``).
    source : Mapping[str, str] | None
        Annotations or labels of an object.
    allow_list : AllowList
        Keys allowed to become labels.

    Returns
    -------
    tuple[list[str], list[str]]
        Label keys and values of equal length. With a wildcard list entries
        are ordered by sanitized key; with an explicit list they follow the
        list's order. When two source keys sanitize to the same label the
        first one in that order wins and the rest are dropped.
    """
    if not source or allow_list.empty:
        return [], []

    if allow_list.wildcard:
        # Source key breaks ties so the surviving entry never depends on map order.
        candidates = sorted(source.items(), key=lambda item: (sanitize_label_name(item[0]), item[0]))
    else:
        candidates = [(key, source[key]) for key in allow_list.keys if key in source]

    keys: list[str] = []
    values: list[str] = []
    seen: set[str] = set()
    for key, value in candidates:
        label = f"{prefix}_{sanitize_label_name(key)}"
        if label in seen:
            continue
        seen.add(label)
        keys.append(label)
        values.append(value)
    return keys, values
