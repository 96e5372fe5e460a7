"""Shared pytest fixtures for kubestate tests.

This module provides reusable fixtures for:
- Isolated Prometheus registries
- Sample VerticalPodAutoscaler payloads and decoded objects
- Fake custom objects API clients and watch responses
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import pytest
from prometheus_client import CollectorRegistry

from kubestate.models import VerticalPodAutoscaler

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def prometheus_registry() -> CollectorRegistry:
    """Provide a Prometheus registry isolated from the global one.

    Returns
    -------
    CollectorRegistry
        Fresh registry per test.
    """
    return CollectorRegistry()


def _make_vpa_payload(
    name: str = "web",
    namespace: str = "default",
    *,
    spec: dict[str, Any] | None = None,
    status: dict[str, Any] | None = None,
    labels: dict[str, str] | None = None,
    annotations: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build a VerticalPodAutoscaler payload shaped like an API response."""
    metadata: dict[str, Any] = {"name": name, "namespace": namespace, "resourceVersion": "42"}
    if labels is not None:
        metadata["labels"] = labels
    if annotations is not None:
        metadata["annotations"] = annotations
    payload: dict[str, Any] = {
        "apiVersion": "autoscaling.k8s.io/v1beta2",
        "kind": "VerticalPodAutoscaler",
        "metadata": metadata,
        "spec": spec if spec is not None else {},
    }
    if status is not None:
        payload["status"] = status
    return payload


@pytest.fixture
def vpa_payload() -> dict[str, Any]:
    """Provide a fully populated VerticalPodAutoscaler payload."""
    return _make_vpa_payload(
        labels={"app": "web", "team": "platform"},
        annotations={"owner": "sre"},
        spec={
            "targetRef": {"apiVersion": "apps/v1", "kind": "Deployment", "name": "web"},
            "updatePolicy": {"updateMode": "Auto"},
            "resourcePolicy": {
                "containerPolicies": [
                    {
                        "containerName": "app",
                        "minAllowed": {"cpu": "100m", "memory": "64Mi"},
                        "maxAllowed": {"cpu": "2", "memory": "1Gi"},
                    }
                ]
            },
        },
        status={
            "recommendation": {
                "containerRecommendations": [
                    {
                        "containerName": "app",
                        "target": {"cpu": "500m", "memory": "128Mi"},
                        "lowerBound": {"cpu": "250m", "memory": "100Mi"},
                        "upperBound": {"cpu": "1", "memory": "256Mi"},
                        "uncappedTarget": {"cpu": "750m", "memory": "128Mi"},
                    }
                ]
            }
        },
    )


@pytest.fixture
def vpa(vpa_payload: dict[str, Any]) -> VerticalPodAutoscaler:
    """Provide the decoded fully populated VerticalPodAutoscaler."""
    return VerticalPodAutoscaler.model_validate(vpa_payload)


class FakeWatchResponse:
    """Streaming HTTP response double yielding newline-delimited JSON events.

    Shaped like the ``urllib3`` response that ``kubernetes.watch.Watch`` reads
    when called with ``_preload_content=False``.
    """

    def __init__(self, events: list[dict[str, Any]], *, chunk_size: int = 7) -> None:
        body = b"".join(json.dumps(event).encode() + b"\n" for event in events)
        self._chunks = [body[i : i + chunk_size] for i in range(0, len(body), chunk_size)]
        self.closed = False
        self.released = False

    def stream(self, amt: int | None = None, decode_content: bool = True) -> Iterator[bytes]:
        del amt, decode_content
        yield from self._chunks

    def close(self) -> None:
        self.closed = True

    def release_conn(self) -> None:
        self.released = True


@dataclass
class FakeCustomObjectsApi:
    """Records list calls and replays canned responses."""

    list_response: dict[str, Any] = field(default_factory=lambda: {"items": [], "metadata": {}})
    watch_response: object | None = None
    error: Exception | None = None
    calls: list[tuple[str, tuple[object, ...], dict[str, object]]] = field(default_factory=list)

    def _respond(self, method: str, args: tuple[object, ...], kwargs: dict[str, object]) -> object:
        self.calls.append((method, args, kwargs))
        if self.error is not None:
            raise self.error
        if kwargs.get("watch"):
            return self.watch_response
        return self.list_response

    def list_namespaced_custom_object(
        self, group: str, version: str, namespace: str, plural: str, **kwargs: object
    ) -> object:
        return self._respond("namespaced", (group, version, namespace, plural), kwargs)

    def list_cluster_custom_object(self, group: str, version: str, plural: str, **kwargs: object) -> object:
        return self._respond("cluster", (group, version, plural), kwargs)


@pytest.fixture
def fake_client() -> FakeCustomObjectsApi:
    """Provide a fake custom objects API client."""
    return FakeCustomObjectsApi()


@pytest.fixture
def make_vpa_payload() -> Callable[..., dict[str, Any]]:
    """Provide a factory for VerticalPodAutoscaler payloads.

    Returns
    -------
    Callable[..., dict[str, Any]]
        Factory accepting ``name``, ``namespace`` and the keyword-only
        ``spec``, ``status``, ``labels`` and ``annotations``.
    """
    return _make_vpa_payload


@pytest.fixture
def make_watch_response() -> Callable[..., FakeWatchResponse]:
    """Provide a factory for streaming watch responses."""
    return FakeWatchResponse
