"""Tests for the list/watch factory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pytest
from kubernetes.client.exceptions import ApiException

from kubestate.errors import ResourceVersionExpiredError
from kubestate.listwatch import (
    ALL_NAMESPACES,
    DEFAULT_WATCH_TIMEOUT_SECONDS,
    ListOptions,
    create_list_watch,
)
from kubestate.models import VerticalPodAutoscaler
from kubestate.stores.verticalpodautoscaler import DESCRIPTOR

if TYPE_CHECKING:
    from collections.abc import Callable


def _event(event_type: str, payload: dict[str, Any]) -> dict[str, Any]:
    return {"type": event_type, "object": payload}


class TestListOptions:
    """Verify option threading."""

    def test_only_set_options(self) -> None:
        """Unset options are not passed to the client."""
        assert ListOptions().to_kwargs() == {}

    def test_continue_renamed(self) -> None:
        """The continue token maps to the client's ``_continue`` keyword."""
        options = ListOptions(label_selector="app=web", limit=10, continue_token="abc")

        assert options.to_kwargs() == {"label_selector": "app=web", "limit": 10, "_continue": "abc"}


class TestList:
    """Verify list calls."""

    def test_namespaced(self, fake_client: Any, make_vpa_payload: Callable[..., dict[str, Any]]) -> None:
        """A namespace scopes the call and items are decoded."""
        fake_client.list_response = {
            "items": [make_vpa_payload("a"), make_vpa_payload("b")],
            "metadata": {"resourceVersion": "1001", "continue": "next"},
        }
        list_watch = create_list_watch(DESCRIPTOR, "default", fake_client)

        result = list_watch.list(ListOptions(label_selector="app=web"))

        assert [item.metadata.name for item in result.items] == ["a", "b"]
        assert all(isinstance(item, VerticalPodAutoscaler) for item in result.items)
        assert result.resource_version == "1001"
        assert result.continue_token == "next"
        assert fake_client.calls == [
            (
                "namespaced",
                ("autoscaling.k8s.io", "v1beta2", "default", "verticalpodautoscalers"),
                {"label_selector": "app=web"},
            )
        ]

    def test_all_namespaces(self, fake_client: Any) -> None:
        """The all-namespaces scope uses the cluster-wide call."""
        list_watch = create_list_watch(DESCRIPTOR, ALL_NAMESPACES, fake_client)

        result = list_watch.list()

        assert result.items == ()
        assert result.resource_version == ""
        assert result.continue_token is None
        assert fake_client.calls == [("cluster", ("autoscaling.k8s.io", "v1beta2", "verticalpodautoscalers"), {})]

    def test_request_timeout_threaded(self, fake_client: Any) -> None:
        """The client-side timeout reaches every call."""
        list_watch = create_list_watch(DESCRIPTOR, "default", fake_client, request_timeout=5.0)

        list_watch.list()

        assert fake_client.calls[0][2] == {"_request_timeout": 5.0}

    def test_api_errors_propagate(self, fake_client: Any) -> None:
        """List errors reach the caller unchanged."""
        fake_client.error = ApiException(status=403, reason="Forbidden")
        list_watch = create_list_watch(DESCRIPTOR, "default", fake_client)

        with pytest.raises(ApiException) as excinfo:
            list_watch.list()

        assert excinfo.value.status == 403

    def test_malformed_item_skipped(
        self,
        fake_client: Any,
        make_vpa_payload: Callable[..., dict[str, Any]],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """An item that does not decode is logged and dropped; the rest are kept."""
        broken = make_vpa_payload("broken", spec={"targetRef": "web"})
        fake_client.list_response = {
            "items": [make_vpa_payload("a"), broken, make_vpa_payload("b")],
            "metadata": {"resourceVersion": "9"},
        }
        list_watch = create_list_watch(DESCRIPTOR, "default", fake_client)

        with caplog.at_level(logging.WARNING, logger="kubestate.listwatch"):
            result = list_watch.list()

        assert [item.metadata.name for item in result.items] == ["a", "b"]
        assert result.resource_version == "9"
        (record,) = caplog.records
        assert record.levelno == logging.WARNING
        assert record.object == "broken"
        assert record.error_code == "malformed-object"


class TestWatch:
    """Verify watch streams."""

    def test_events_decoded(
        self,
        fake_client: Any,
        make_vpa_payload: Callable[..., dict[str, Any]],
        make_watch_response: Callable[..., Any],
    ) -> None:
        """Events stream in order with decoded objects and cursors."""
        added = make_vpa_payload("a")
        modified = make_vpa_payload("a")
        modified["metadata"]["resourceVersion"] = "43"
        response = make_watch_response([_event("ADDED", added), _event("MODIFIED", modified)])
        fake_client.watch_response = response
        list_watch = create_list_watch(DESCRIPTOR, "default", fake_client)

        events = list(list_watch.watch(ListOptions(resource_version="41")))

        assert [(event.type, event.object.metadata.name, event.resource_version) for event in events] == [
            ("ADDED", "a", "42"),
            ("MODIFIED", "a", "43"),
        ]
        assert response.closed
        assert response.released
        (_, _, kwargs) = fake_client.calls[0]
        assert kwargs == {
            "resource_version": "41",
            "timeout_seconds": DEFAULT_WATCH_TIMEOUT_SECONDS,
            "watch": True,
            "_preload_content": False,
        }

    def test_explicit_timeout_kept(self, fake_client: Any, make_watch_response: Callable[..., Any]) -> None:
        """A caller-provided server timeout is not overridden."""
        fake_client.watch_response = make_watch_response([])
        list_watch = create_list_watch(DESCRIPTOR, ALL_NAMESPACES, fake_client)

        assert list(list_watch.watch(ListOptions(timeout_seconds=30))) == []
        assert fake_client.calls[0][2]["timeout_seconds"] == 30

    def test_gone_event_expires_cursor(
        self,
        fake_client: Any,
        make_vpa_payload: Callable[..., dict[str, Any]],
        make_watch_response: Callable[..., Any],
    ) -> None:
        """A 410 ERROR event ends the stream with ResourceVersionExpiredError."""
        gone = {"kind": "Status", "code": 410, "reason": "Expired", "message": "too old resource version"}
        response = make_watch_response([_event("ADDED", make_vpa_payload("a")), _event("ERROR", gone)])
        fake_client.watch_response = response
        list_watch = create_list_watch(DESCRIPTOR, "default", fake_client)

        stream = list_watch.watch(ListOptions(resource_version="7"))
        first = next(stream)

        with pytest.raises(ResourceVersionExpiredError) as excinfo:
            next(stream)

        assert first.type == "ADDED"
        assert excinfo.value.resource_version == "7"
        assert isinstance(excinfo.value.__cause__, ApiException)
        assert excinfo.value.__cause__.status == 410
        assert response.closed
        # The expired cursor is reported, not silently re-requested.
        assert len(fake_client.calls) == 1

    def test_malformed_event_skipped(
        self,
        fake_client: Any,
        make_vpa_payload: Callable[..., dict[str, Any]],
        make_watch_response: Callable[..., Any],
    ) -> None:
        """An event whose object does not decode is dropped from the stream."""
        broken = make_vpa_payload("broken", spec={"targetRef": "web"})
        fake_client.watch_response = make_watch_response(
            [_event("ADDED", broken), _event("ADDED", make_vpa_payload("a"))]
        )
        list_watch = create_list_watch(DESCRIPTOR, "default", fake_client)

        events = list(list_watch.watch())

        assert [event.object.metadata.name for event in events] == ["a"]

    def test_request_timeout_threaded(self, fake_client: Any, make_watch_response: Callable[..., Any]) -> None:
        """The client-side timeout also reaches the watch request."""
        fake_client.watch_response = make_watch_response([])
        list_watch = create_list_watch(DESCRIPTOR, "default", fake_client, request_timeout=5.0)

        list(list_watch.watch())

        assert fake_client.calls[0][2]["_request_timeout"] == 5.0

    def test_gone_response_expires_cursor(self, fake_client: Any) -> None:
        """A 410 on the initial watch request raises ResourceVersionExpiredError."""
        fake_client.error = ApiException(status=410, reason="Gone")
        list_watch = create_list_watch(DESCRIPTOR, "default", fake_client)

        with pytest.raises(ResourceVersionExpiredError) as excinfo:
            next(list_watch.watch(ListOptions(resource_version="7")))

        assert isinstance(excinfo.value.__cause__, ApiException)

    def test_other_error_event(self, fake_client: Any, make_watch_response: Callable[..., Any]) -> None:
        """Other ERROR events surface as API errors."""
        status = {"kind": "Status", "code": 500, "reason": "InternalError", "message": "boom"}
        fake_client.watch_response = make_watch_response([_event("ERROR", status)])
        list_watch = create_list_watch(DESCRIPTOR, "default", fake_client)

        with pytest.raises(ApiException) as excinfo:
            list(list_watch.watch())

        assert excinfo.value.status == 500

    def test_consumer_close_releases_response(
        self,
        fake_client: Any,
        make_vpa_payload: Callable[..., dict[str, Any]],
        make_watch_response: Callable[..., Any],
    ) -> None:
        """Closing the iterator early closes the HTTP response."""
        response = make_watch_response([_event("ADDED", make_vpa_payload(name)) for name in ("a", "b")])
        fake_client.watch_response = response
        stream = create_list_watch(DESCRIPTOR, "default", fake_client).watch()

        next(stream)
        stream.close()

        assert response.closed
