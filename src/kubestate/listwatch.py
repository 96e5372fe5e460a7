"""List/watch function pairs for custom resources.

:func:`create_list_watch` binds a resource kind, a namespace scope and a
``CustomObjectsApi`` client into a :class:`ListWatch`: ``list`` returns a
full enumeration plus the resource-version cursor, ``watch`` streams changes
from a cursor. The pair carries no state between calls and never retries;
reconnecting and re-listing belong to whatever mirrors the objects.

Examples
--------
>>> from kubernetes import client
>>> from kubestate.stores.verticalpodautoscaler import DESCRIPTOR
>>> lw = create_list_watch(DESCRIPTOR, "default", client.CustomObjectsApi())  # doctest: +SKIP
>>> result = lw.list()  # doctest: +SKIP
>>> for event in lw.watch(ListOptions(resource_version=result.resource_version)):  # doctest: +SKIP
...     print(event.type, event.object.metadata.name)
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from http import HTTPStatus
from typing import TYPE_CHECKING, Final, NamedTuple, Protocol

from kubernetes import watch
from kubernetes.client.exceptions import ApiException

from kubestate.errors import MalformedObjectError, ResourceVersionExpiredError
from kubestate.logging import get_logger
from kubestate.models import decode_object

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

    from kubestate.models import ResourceModel

__all__ = [
    "ALL_NAMESPACES",
    "DEFAULT_WATCH_TIMEOUT_SECONDS",
    "CustomObjectsClient",
    "ListOptions",
    "ListResult",
    "ListWatch",
    "ResourceDescriptor",
    "WatchEvent",
    "create_list_watch",
]

logger = get_logger(__name__)

ALL_NAMESPACES: Final[str] = ""
DEFAULT_WATCH_TIMEOUT_SECONDS: Final[int] = 300

_OPTION_KWARGS: Final[dict[str, str]] = {
    "label_selector": "label_selector",
    "field_selector": "field_selector",
    "resource_version": "resource_version",
    "limit": "limit",
    "continue_token": "_continue",
    "timeout_seconds": "timeout_seconds",
    "allow_watch_bookmarks": "allow_watch_bookmarks",
}


class CustomObjectsClient(Protocol):
    """Subset of ``kubernetes.client.CustomObjectsApi`` the factory calls."""

    def list_namespaced_custom_object(
        self, group: str, version: str, namespace: str, plural: str, **kwargs: object
    ) -> object: ...

    def list_cluster_custom_object(
        self, group: str, version: str, plural: str, **kwargs: object
    ) -> object: ...


@dataclass(frozen=True, slots=True)
class ResourceDescriptor:
    """API coordinates of a resource kind and the model its objects decode into."""

    group: str
    version: str
    plural: str
    kind: str
    model: type[ResourceModel]

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}"


@dataclass(frozen=True, slots=True)
class ListOptions:
    """Query parameters threaded into list and watch calls.

    Only options that are set are passed to the client.
    """

    label_selector: str | None = None
    field_selector: str | None = None
    resource_version: str | None = None
    limit: int | None = None
    continue_token: str | None = None
    timeout_seconds: int | None = None
    allow_watch_bookmarks: bool | None = None

    def to_kwargs(self) -> dict[str, object]:
        kwargs: dict[str, object] = {}
        for option in fields(self):
            value = getattr(self, option.name)
            if value is not None:
                kwargs[_OPTION_KWARGS[option.name]] = value
        return kwargs


class ListResult[M: ResourceModel](NamedTuple):
    items: tuple[M, ...]
    resource_version: str
    continue_token: str | None = None


class WatchEvent[M: ResourceModel](NamedTuple):
    type: str
    object: M
    resource_version: str


class ListWatch[M: ResourceModel](NamedTuple):
    """List and watch functions bound to one resource kind and namespace scope."""

    list_func: Callable[[ListOptions], ListResult[M]]
    watch_func: Callable[[ListOptions], Iterator[WatchEvent[M]]]

    def list(self, options: ListOptions | None = None) -> ListResult[M]:
        return self.list_func(options or ListOptions())

    def watch(self, options: ListOptions | None = None) -> Iterator[WatchEvent[M]]:
        return self.watch_func(options or ListOptions())


def _metadata(payload: Mapping[str, object]) -> Mapping[str, object]:
    metadata = payload.get("metadata")
    return metadata if isinstance(metadata, dict) else {}


def create_list_watch[M: ResourceModel](
    descriptor: ResourceDescriptor,
    namespace: str,
    client: CustomObjectsClient,
    *,
    request_timeout: float | None = None,
) -> ListWatch[M]:
    """Return the list/watch pair of ``descriptor`` in ``namespace``.

    Parameters
    ----------
    descriptor : ResourceDescriptor
        Group, version and plural to query, and the model to decode into.
    namespace : str
        Namespace to scope calls to; :data:`ALL_NAMESPACES` lists cluster-wide.
    client : CustomObjectsClient
        Usually a ``kubernetes.client.CustomObjectsApi``.
    request_timeout : float | None, optional
        Client-side timeout threaded into every call as ``_request_timeout``.

    Returns
    -------
    ListWatch[M]
        The bound pair.
    """
    model = descriptor.model
    log = logger.bind(resource=descriptor.plural, namespace=namespace)
    if namespace == ALL_NAMESPACES:
        method: Callable[..., object] = client.list_cluster_custom_object
        args: tuple[str, ...] = (descriptor.group, descriptor.version, descriptor.plural)
    else:
        method = client.list_namespaced_custom_object
        args = (descriptor.group, descriptor.version, namespace, descriptor.plural)

    def call_kwargs(options: ListOptions) -> dict[str, object]:
        kwargs = options.to_kwargs()
        if request_timeout is not None:
            kwargs["_request_timeout"] = request_timeout
        return kwargs

    def decode(payload: object, operation: str) -> M | None:
        try:
            return decode_object(model, payload)  # type: ignore[return-value]
        except MalformedObjectError as exc:
            name = _metadata(payload).get("name") if isinstance(payload, dict) else None
            log.warning(
                "Skipping %s object that failed to decode",
                descriptor.kind,
                extra={"operation": operation, "object": name, "error_code": exc.code.value},
            )
            return None

    def list_func(options: ListOptions) -> ListResult[M]:
        payload = method(*args, **call_kwargs(options))
        if not isinstance(payload, dict):
            message = f"unexpected list response of type {type(payload).__name__}"
            raise TypeError(message)
        decoded = (decode(item, "list") for item in payload.get("items") or ())
        items = tuple(item for item in decoded if item is not None)
        metadata = _metadata(payload)
        log.debug("Listed %d %s", len(items), descriptor.plural, extra={"operation": "list"})
        return ListResult(
            items=items,
            resource_version=str(metadata.get("resourceVersion") or ""),
            continue_token=metadata.get("continue") or None,  # type: ignore[arg-type]
        )

    def watch_func(options: ListOptions) -> Iterator[WatchEvent[M]]:
        # A server timeout also turns off the client's silent retry after 410.
        if options.timeout_seconds is None:
            options = replace(options, timeout_seconds=DEFAULT_WATCH_TIMEOUT_SECONDS)
        events = watch.Watch().stream(method, *args, **call_kwargs(options))
        try:
            for event in events:
                raw = event["raw_object"]
                obj = decode(raw, "watch")
                if obj is None:
                    continue
                yield WatchEvent(
                    type=event["type"],
                    object=obj,
                    resource_version=str(_metadata(raw).get("resourceVersion") or ""),
                )
        except ApiException as exc:
            if exc.status != HTTPStatus.GONE:
                raise
            log.info(
                "Watch cursor expired",
                extra={"operation": "watch", "status": "expired", "resource_version": options.resource_version},
            )
            raise ResourceVersionExpiredError(options.resource_version, cause=exc) from exc
        finally:
            events.close()

    return ListWatch(list_func=list_func, watch_func=watch_func)
