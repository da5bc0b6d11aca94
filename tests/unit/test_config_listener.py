"""Unit tests for config change listening."""

import hashlib
import threading

import pytest

from nacos_openapi.config_client import ConfigClient
from nacos_openapi.config_listener import (
    ConfigListenerManager,
    build_listening_configs,
    content_md5,
    parse_changed_keys,
    _Watch,
)
from nacos_openapi.constants import ConfigChangeType
from nacos_openapi.utils.errors import ServerError
from fixtures import nacos_responses
from fixtures.conftest import last_request


def v2_content(content):
    return nacos_responses.body(nacos_responses.v2(content))


@pytest.fixture
def manager(make_client, monkeypatch):
    """Listener manager whose polling thread never starts."""
    monkeypatch.setattr(ConfigListenerManager, "start", lambda self: None)
    return ConfigListenerManager(make_client(ConfigClient))


def test_content_md5():
    """Test the digest compared by the server."""
    assert content_md5(None) == ""
    assert content_md5("a: 1") == hashlib.md5(b"a: 1").hexdigest()


def test_build_listening_configs():
    """Test that the public namespace omits the tenant word."""
    watches = {
        ("public", "DEFAULT_GROUP", "test.yaml"): _Watch(content="a", md5="md5a"),
        ("dev", "orders", "app.yaml"): _Watch(content=None, md5=""),
    }

    assert build_listening_configs(watches) == (
        "test.yaml\x02DEFAULT_GROUP\x02md5a\x01"
        "app.yaml\x02orders\x02\x02dev\x01"
    )


def test_parse_changed_keys():
    """Test decoding the URL-encoded changed keys."""
    body = "test.yaml%02DEFAULT_GROUP%01app.yaml%02orders%02dev%01"

    assert parse_changed_keys(body) == [
        ("public", "DEFAULT_GROUP", "test.yaml"),
        ("dev", "orders", "app.yaml"),
    ]
    assert parse_changed_keys("") == []
    assert parse_changed_keys(None) == []
    assert parse_changed_keys("garbage%01") == []


def test_poll_once_request(manager, mock_openapi_client):
    """Test the long polling request."""
    mock_openapi_client.request.side_effect = [v2_content("a: 1"), None]
    manager.add_listener("public", "DEFAULT_GROUP", "test.yaml", lambda event: None)

    assert manager.poll_once() == []

    method, endpoint, kwargs = last_request(mock_openapi_client)
    assert (method, endpoint) == ("POST", "/v1/cs/configs/listener")
    assert kwargs["data"] == {
        "Listening-Configs": f"test.yaml\x02DEFAULT_GROUP\x02{content_md5('a: 1')}\x01"
    }
    assert kwargs["headers"] == {"Long-Pulling-Timeout": "30000"}
    assert kwargs["timeout"] == 35.0


def test_poll_once_without_watches(manager, mock_openapi_client):
    """Test that nothing is sent while no config is watched."""
    assert manager.poll_once() == []
    mock_openapi_client.request.assert_not_called()


@pytest.mark.parametrize("before,after,change_type", [
    ("a: 1", "a: 2", ConfigChangeType.MODIFIED),
    (None, "a: 1", ConfigChangeType.CREATED),
    ("a: 1", None, ConfigChangeType.DELETED),
])
def test_change_dispatched(manager, mock_openapi_client, before, after, change_type):
    """Test the event delivered for each kind of change."""
    events = []
    mock_openapi_client.request.side_effect = [
        v2_content(before),
        "test.yaml%02DEFAULT_GROUP%01",
        v2_content(after),
    ]
    manager.add_listener("public", "DEFAULT_GROUP", "test.yaml", events.append)

    dispatched = manager.poll_once()

    assert dispatched == events
    assert len(events) == 1
    event = events[0]
    assert event.type == change_type
    assert event.content == after
    assert event.previous_content == before
    assert (event.namespace_id, event.group, event.data_id) == ("public", "DEFAULT_GROUP", "test.yaml")


def test_unchanged_content_not_dispatched(manager, mock_openapi_client):
    """Test that a key reported without an md5 change fires nothing."""
    events = []
    mock_openapi_client.request.side_effect = [
        v2_content("a: 1"),
        "test.yaml%02DEFAULT_GROUP%01",
        v2_content("a: 1"),
    ]
    manager.add_listener("public", "DEFAULT_GROUP", "test.yaml", events.append)

    assert manager.poll_once() == []
    assert events == []


def test_unwatched_key_ignored(manager, mock_openapi_client):
    """Test that changes of configs nobody listens to are skipped."""
    mock_openapi_client.request.side_effect = [
        v2_content("a: 1"),
        "other.yaml%02DEFAULT_GROUP%01",
    ]
    manager.add_listener("public", "DEFAULT_GROUP", "test.yaml", lambda event: None)

    assert manager.poll_once() == []
    assert mock_openapi_client.request.call_count == 2


def test_failing_listener_does_not_stop_dispatch(manager, mock_openapi_client):
    """Test that every listener gets the event even when one raises."""
    received = []

    def broken(event):
        raise RuntimeError("listener bug")

    mock_openapi_client.request.side_effect = [
        v2_content("a: 1"),
        "test.yaml%02DEFAULT_GROUP%01",
        v2_content("a: 2"),
    ]
    manager.add_listener("public", "DEFAULT_GROUP", "test.yaml", broken)
    manager.add_listener("public", "DEFAULT_GROUP", "test.yaml", received.append)

    manager.poll_once()

    assert len(received) == 1
    assert received[0].content == "a: 2"


def test_second_listener_reuses_watch(manager, mock_openapi_client):
    """Test that adding a listener to a watched config doesn't read it again."""
    mock_openapi_client.request.side_effect = [v2_content("a: 1")]

    manager.add_listener("public", "DEFAULT_GROUP", "test.yaml", lambda event: None)
    manager.add_listener("public", "DEFAULT_GROUP", "test.yaml", lambda event: None)

    assert mock_openapi_client.request.call_count == 1


def test_polling_thread_lifecycle(make_client, mock_openapi_client):
    """Test that the thread starts with the first listener and stops with the last."""
    polled = threading.Event()

    def request(method, endpoint, **kwargs):
        if endpoint == "/v1/cs/configs/listener":
            polled.set()
            threading.Event().wait(0.01)
            return None
        return v2_content("a: 1")

    mock_openapi_client.request.side_effect = request
    manager = ConfigListenerManager(make_client(ConfigClient))

    def listener(event):
        pass

    manager.add_listener("public", "DEFAULT_GROUP", "test.yaml", listener)
    assert manager.running is True
    assert polled.wait(2)

    thread = manager._thread
    manager.remove_listener("public", "DEFAULT_GROUP", "test.yaml", listener)
    thread.join(2)

    assert manager.running is False
    assert not thread.is_alive()


def test_polling_failures_are_retried(make_client, mock_openapi_client):
    """Test that a failed poll waits and tries again instead of ending the thread."""
    attempts = []

    def request(method, endpoint, **kwargs):
        if endpoint == "/v1/cs/configs/listener":
            attempts.append(endpoint)
            if len(attempts) == 1:
                raise ServerError("All Nacos servers unreachable: 127.0.0.1:8848")
            threading.Event().wait(0.01)
            return None
        return v2_content("a: 1")

    mock_openapi_client.request.side_effect = request
    manager = ConfigListenerManager(make_client(ConfigClient), retry_interval=0.01)
    manager.add_listener("public", "DEFAULT_GROUP", "test.yaml", lambda event: None)

    for _ in range(200):
        if len(attempts) >= 2:
            break
        threading.Event().wait(0.01)
    manager.stop(timeout=2)

    assert len(attempts) >= 2
    assert manager.running is False


def test_unexpected_polling_error_keeps_thread_alive(make_client, mock_openapi_client):
    """Test that an error outside the client error types doesn't end the thread."""
    attempts = []

    def request(method, endpoint, **kwargs):
        if endpoint == "/v1/cs/configs/listener":
            attempts.append(endpoint)
            if len(attempts) == 1:
                raise ValueError("unexpected payload")
            threading.Event().wait(0.01)
            return None
        return v2_content("a: 1")

    mock_openapi_client.request.side_effect = request
    manager = ConfigListenerManager(make_client(ConfigClient), retry_interval=0.01)
    manager.add_listener("public", "DEFAULT_GROUP", "test.yaml", lambda event: None)

    for _ in range(200):
        if len(attempts) >= 2:
            break
        threading.Event().wait(0.01)
    running = manager.running
    manager.stop(timeout=2)

    assert len(attempts) >= 2
    assert running is True


def test_listener_added_after_close_restarts_polling(make_client, mock_openapi_client):
    """Test that a listener added to a still watched config after close() restarts the thread."""
    def request(method, endpoint, **kwargs):
        if endpoint == "/v1/cs/configs/listener":
            threading.Event().wait(0.01)
            return None
        return v2_content("a: 1")

    mock_openapi_client.request.side_effect = request
    config_client = make_client(ConfigClient)
    config_client.add_event_listener("app.yaml", lambda event: None)
    manager = config_client.listener_manager
    assert manager.running is True

    config_client.close()
    assert manager.running is False
    assert manager.watched_keys() == [("public", "DEFAULT_GROUP", "app.yaml")]

    config_client.add_event_listener("app.yaml", lambda event: None)

    assert manager.running is True
    manager.stop(timeout=2)
