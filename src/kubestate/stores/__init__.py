"""Catalogue of resource stores and their wiring from settings.

Each store pairs a :class:`~kubestate.listwatch.ResourceDescriptor` with the
factory declaring its metric family generators. The catalogue is a read-only
mapping; registries and list/watch pairs are built from an explicit
:class:`~kubestate.settings.KubeStateSettings` and handed to the caller.

Examples
--------
>>> from kubestate.settings import KubeStateSettings
>>> from kubestate.stores import build_registry
>>> registry = build_registry("verticalpodautoscalers", KubeStateSettings())
>>> len(registry)
9
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from kubestate.errors import UnknownResourceError
from kubestate.generator import GeneratorRegistry
from kubestate.listwatch import create_list_watch
from kubestate.stores import verticalpodautoscaler

if TYPE_CHECKING:
    from collections.abc import Mapping

    from kubestate.generator import GeneratorFactory
    from kubestate.listwatch import CustomObjectsClient, ListWatch, ResourceDescriptor
    from kubestate.prometheus import CounterLike
    from kubestate.settings import KubeStateSettings

__all__ = [
    "STORES",
    "StoreSpec",
    "build_list_watches",
    "build_registry",
    "get_store",
]


@dataclass(frozen=True, slots=True)
class StoreSpec:
    descriptor: ResourceDescriptor
    factory: GeneratorFactory


STORES: Final[Mapping[str, StoreSpec]] = MappingProxyType(
    {
        verticalpodautoscaler.RESOURCE: StoreSpec(
            descriptor=verticalpodautoscaler.DESCRIPTOR,
            factory=verticalpodautoscaler.vpa_metric_families,
        ),
    }
)


def get_store(resource: str) -> StoreSpec:
    """Return the store of ``resource``.

    Raises
    ------
    UnknownResourceError
        If no store is registered for ``resource``.
    """
    try:
        return STORES[resource]
    except KeyError:
        raise UnknownResourceError(resource, tuple(sorted(STORES))) from None


def build_registry(
    resource: str,
    settings: KubeStateSettings,
    *,
    failures: CounterLike | None = None,
) -> GeneratorRegistry:
    """Build the generator registry of ``resource`` from ``settings``.

    Parameters
    ----------
    resource : str
        Resource kind, as named in ``settings.resources``.
    settings : KubeStateSettings
        Allow-lists and metric filters.
    failures : CounterLike | None, optional
        Counter of isolated generator failures.

    Returns
    -------
    GeneratorRegistry
        Registry of the families that pass the metric filter.
    """
    store = get_store(resource)
    return GeneratorRegistry.build(
        resource,
        store.factory,
        settings.resource_config(resource),
        family_filter=settings.family_filter(),
        failures=failures,
    )


def build_list_watches(
    resource: str,
    settings: KubeStateSettings,
    client: CustomObjectsClient,
) -> dict[str, ListWatch]:
    """Return one list/watch pair per configured namespace, keyed by namespace."""
    store = get_store(resource)
    return {
        namespace: create_list_watch(
            store.descriptor,
            namespace,
            client,
            request_timeout=settings.request_timeout,
        )
        for namespace in dict.fromkeys(settings.namespaces)
    }
