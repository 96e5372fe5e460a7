"""Tests for the store catalogue and its wiring from settings."""

from __future__ import annotations

from typing import Any

import pytest

from kubestate.errors import UnknownResourceError
from kubestate.settings import KubeStateSettings
from kubestate.stores import STORES, build_list_watches, build_registry, get_store
from kubestate.stores.verticalpodautoscaler import DESCRIPTOR, RESOURCE


class TestCatalogue:
    """Verify store lookup."""

    def test_verticalpodautoscalers_registered(self) -> None:
        """The VerticalPodAutoscaler store is in the catalogue."""
        assert get_store(RESOURCE).descriptor is DESCRIPTOR
        assert DESCRIPTOR.api_version == "autoscaling.k8s.io/v1beta2"

    def test_read_only(self) -> None:
        """The catalogue cannot be modified."""
        with pytest.raises(TypeError):
            STORES["pods"] = STORES[RESOURCE]  # type: ignore[index]

    def test_unknown_resource(self) -> None:
        """Unknown kinds raise UnknownResourceError listing the known ones."""
        with pytest.raises(UnknownResourceError, match="'pods'") as excinfo:
            get_store("pods")

        assert excinfo.value.context["available"] == RESOURCE


class TestBuildRegistry:
    """Verify registries built from settings."""

    def test_defaults(self) -> None:
        """Every family is kept by default."""
        registry = build_registry(RESOURCE, KubeStateSettings())

        assert len(registry) == 9
        assert registry.resource == RESOURCE

    def test_denylist(self) -> None:
        """Denied families are dropped."""
        settings = KubeStateSettings(metric_denylist="kube_verticalpodautoscaler_(labels|annotations)")

        registry = build_registry(RESOURCE, settings)

        assert len(registry) == 7
        assert "kube_verticalpodautoscaler_labels" not in registry.names()

    def test_allowlists_reach_generators(self, vpa: Any) -> None:
        """Label allow-lists from settings shape the labels family."""
        settings = KubeStateSettings(metric_labels_allowlist="verticalpodautoscalers=[team]")

        families = {family.name: family for family in build_registry(RESOURCE, settings).invoke(vpa)}

        (metric,) = families["kube_verticalpodautoscaler_labels"].metrics
        assert metric.labels()["label_team"] == "platform"
        assert "label_app" not in metric.labels()

    def test_unknown_resource(self) -> None:
        """Unknown kinds cannot be built."""
        with pytest.raises(UnknownResourceError):
            build_registry("pods", KubeStateSettings())


class TestBuildListWatches:
    """Verify one list/watch pair per namespace."""

    def test_one_per_namespace(self, fake_client: Any) -> None:
        """Each distinct namespace gets its own pair, scoped accordingly."""
        settings = KubeStateSettings(namespaces="default,kube-system,default", request_timeout=3)

        list_watches = build_list_watches(RESOURCE, settings, fake_client)
        for list_watch in list_watches.values():
            list_watch.list()

        assert list(list_watches) == ["default", "kube-system"]
        assert [(method, args[2], kwargs) for method, args, kwargs in fake_client.calls] == [
            ("namespaced", "default", {"_request_timeout": 3.0}),
            ("namespaced", "kube-system", {"_request_timeout": 3.0}),
        ]

    def test_trailing_separator_stays_namespaced(self, fake_client: Any) -> None:
        """A trailing comma does not add a cluster-wide pair."""
        list_watches = build_list_watches(RESOURCE, KubeStateSettings(namespaces="default,"), fake_client)

        assert list(list_watches) == ["default"]

    def test_all_namespaces(self, fake_client: Any) -> None:
        """The default scope lists cluster-wide."""
        list_watches = build_list_watches(RESOURCE, KubeStateSettings(), fake_client)

        list_watches[""].list()

        assert fake_client.calls[0][0] == "cluster"
