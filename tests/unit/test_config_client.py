"""Unit tests for the config client."""

import json

import pytest

from nacos_openapi.config_client import ConfigClient
from nacos_openapi.constants import OpenApiVersion, ConfigType, ConfigOperationType
from nacos_openapi.models import NewConfig
from nacos_openapi.utils.errors import NotFoundError, ValidationError
from fixtures import nacos_responses
from fixtures.conftest import last_request


# ============================================================================
# Reading configs
# ============================================================================

def test_get_config_content_v2(make_client, respond, mock_openapi_client):
    """Test reading content through GET /v2/cs/config."""
    respond(nacos_responses.v2(nacos_responses.CONFIG_CONTENT))
    client = make_client(ConfigClient)

    content = client.get_config_content("test.yaml", namespace_id="dev")

    assert content == nacos_responses.CONFIG_CONTENT
    method, endpoint, kwargs = last_request(mock_openapi_client)
    assert (method, endpoint) == ("GET", "/v2/cs/config")
    assert kwargs["params"] == {"dataId": "test.yaml", "group": "DEFAULT_GROUP", "namespaceId": "dev", "tag": None}


def test_get_config_content_v1(make_client, respond, mock_openapi_client):
    """Test reading raw content through GET /v1/cs/configs."""
    respond(nacos_responses.CONFIG_CONTENT)
    client = make_client(ConfigClient, OpenApiVersion.V1)

    content = client.get_config_content("test.yaml", group="orders")

    assert content == nacos_responses.CONFIG_CONTENT
    method, endpoint, kwargs = last_request(mock_openapi_client)
    assert (method, endpoint) == ("GET", "/v1/cs/configs")
    assert kwargs["params"]["tenant"] == ""
    assert kwargs["params"]["group"] == "orders"


@pytest.mark.parametrize("version", [OpenApiVersion.V1, OpenApiVersion.V2])
def test_get_config_content_not_found(make_client, mock_openapi_client, version):
    """Test that a missing config yields None."""
    mock_openapi_client.request.side_effect = NotFoundError("HTTP 404: config data not exist")
    client = make_client(ConfigClient, version)

    assert client.get_config_content("missing.yaml") is None


def test_get_config(make_client, respond, mock_openapi_client):
    """Test reading the config detail with show=all."""
    respond(nacos_responses.CONFIG_DETAIL)
    client = make_client(ConfigClient)

    config = client.get_config("test.yaml")

    assert config.data_id == "test.yaml"
    assert config.namespace_id == "public"
    assert config.type == ConfigType.YAML
    assert config.md5 == "4d2ea01ed3c7b6a1e32b8dcd7e2d8c86"
    method, endpoint, kwargs = last_request(mock_openapi_client)
    assert (method, endpoint) == ("GET", "/v1/cs/configs")
    assert kwargs["params"]["show"] == "all"


def test_get_config_empty_body(make_client, respond):
    """Test that an empty detail body means the config doesn't exist."""
    respond(None)

    assert make_client(ConfigClient).get_config("missing.yaml") is None


# ============================================================================
# Publishing and deleting
# ============================================================================

def test_publish_config_v2(make_client, respond, mock_openapi_client):
    """Test publishing through POST /v2/cs/config."""
    respond(nacos_responses.v2(True))
    client = make_client(ConfigClient)

    result = client.publish_config(NewConfig(namespace_id="dev", data_id="app.yaml", content="a: 1", type="yaml"))

    assert result is True
    method, endpoint, kwargs = last_request(mock_openapi_client)
    assert (method, endpoint) == ("POST", "/v2/cs/config")
    assert kwargs["data"]["namespaceId"] == "dev"
    assert kwargs["data"]["content"] == "a: 1"
    assert kwargs["data"]["type"] == ConfigType.YAML


def test_publish_config_v1(make_client, respond, mock_openapi_client):
    """Test publishing through POST /v1/cs/configs."""
    respond("true")
    client = make_client(ConfigClient, OpenApiVersion.V1)

    assert client.publish_config(NewConfig(data_id="app.yaml", content="a: 1")) is True
    method, endpoint, kwargs = last_request(mock_openapi_client)
    assert (method, endpoint) == ("POST", "/v1/cs/configs")
    assert kwargs["data"]["tenant"] == ""


def test_publish_config_content_keeps_existing_metadata(make_client, mock_openapi_client):
    """Test that publishing new content keeps type, app and description."""
    mock_openapi_client.request.side_effect = [
        nacos_responses.body(nacos_responses.CONFIG_DETAIL),
        nacos_responses.body(nacos_responses.v2(True)),
    ]
    client = make_client(ConfigClient)

    assert client.publish_config_content("test.yaml", "server:\n  port: 9090\n") is True

    method, endpoint, kwargs = last_request(mock_openapi_client)
    assert (method, endpoint) == ("POST", "/v2/cs/config")
    data = kwargs["data"]
    assert data["content"] == "server:\n  port: 9090\n"
    assert data["type"] == ConfigType.YAML
    assert data["appName"] == "orders"
    assert data["desc"] == "Orders service settings"
    assert data["namespaceId"] == "public"


def test_publish_config_content_new_config(make_client, mock_openapi_client):
    """Test publishing content of a config that doesn't exist yet."""
    mock_openapi_client.request.side_effect = [
        None,
        nacos_responses.body(nacos_responses.v2(True)),
    ]
    client = make_client(ConfigClient)

    assert client.publish_config_content("new.json", '{"a": 1}', group="orders", config_type="JSON") is True

    data = last_request(mock_openapi_client)[2]["data"]
    assert data["dataId"] == "new.json"
    assert data["group"] == "orders"
    assert data["type"] == ConfigType.JSON


def test_publish_config_rejected(make_client, mock_openapi_client):
    """Test that a rejected publish raises."""
    mock_openapi_client.request.side_effect = ValidationError("Code 20002: parameter missing")

    with pytest.raises(ValidationError):
        make_client(ConfigClient).publish_config(NewConfig(data_id="app.yaml"))


@pytest.mark.parametrize("version,endpoint,body", [
    (OpenApiVersion.V1, "/v1/cs/configs", "true"),
    (OpenApiVersion.V2, "/v2/cs/config", json.dumps(nacos_responses.v2(True))),
])
def test_delete_config(make_client, mock_openapi_client, version, endpoint, body):
    """Test deleting a config for each version."""
    mock_openapi_client.request.return_value = body
    client = make_client(ConfigClient, version)

    assert client.delete_config("app.yaml", namespace_id="dev") is True

    method, called_endpoint, kwargs = last_request(mock_openapi_client)
    assert (method, called_endpoint) == ("DELETE", endpoint)
    assert kwargs["params"]["dataId"] == "app.yaml"


# ============================================================================
# History
# ============================================================================

def test_get_history_configs_v2(make_client, respond, mock_openapi_client):
    """Test listing the history through /v2/cs/history/list."""
    respond(nacos_responses.v2(nacos_responses.HISTORY_PAGE))
    client = make_client(ConfigClient)

    page = client.get_history_configs("test.yaml", page_size=10)

    assert page.total_elements == 2
    assert page.total_pages == 1
    assert [history.revision for history in page] == [203, 202]
    assert page.elements[1].operation_type == ConfigOperationType.CREATE
    method, endpoint, kwargs = last_request(mock_openapi_client)
    assert endpoint == "/v2/cs/history/list"
    assert kwargs["params"]["pageNo"] == 1
    assert kwargs["params"]["pageSize"] == 10
    assert "search" not in kwargs["params"]


def test_get_history_configs_v1(make_client, respond, mock_openapi_client):
    """Test listing the history through /v1/cs/history?search=accurate."""
    respond(nacos_responses.HISTORY_PAGE)
    client = make_client(ConfigClient, OpenApiVersion.V1)

    page = client.get_history_configs("test.yaml", namespace_id="dev")

    assert len(page) == 2
    method, endpoint, kwargs = last_request(mock_openapi_client)
    assert endpoint == "/v1/cs/history"
    assert kwargs["params"]["search"] == "accurate"
    assert kwargs["params"]["tenant"] == "dev"


def test_get_history_configs_validates_paging(make_client, mock_openapi_client):
    """Test that bad paging is refused before any request."""
    with pytest.raises(ValueError):
        make_client(ConfigClient).get_history_configs("test.yaml", page_size=1000)
    mock_openapi_client.request.assert_not_called()


def test_get_history_config(make_client, respond, mock_openapi_client):
    """Test reading one revision by nid."""
    respond(nacos_responses.v2(nacos_responses.HISTORY_DETAIL))
    client = make_client(ConfigClient)

    history = client.get_history_config("test.yaml", 203, namespace_id="dev")

    assert history.revision == 203
    assert history.namespace_id == "dev"
    assert history.content == nacos_responses.CONFIG_CONTENT
    method, endpoint, kwargs = last_request(mock_openapi_client)
    assert endpoint == "/v2/cs/history"
    assert kwargs["params"]["nid"] == 203


def test_get_history_config_not_found(make_client, respond):
    """Test that a missing revision yields None."""
    respond(nacos_responses.v2(None, code=20004, message="resource not found"))

    assert make_client(ConfigClient).get_history_config("test.yaml", 1) is None


def test_get_previous_history_config_v1(make_client, respond, mock_openapi_client):
    """Test reading the previous revision through /v1/cs/history/previous."""
    respond(nacos_responses.HISTORY_DETAIL)
    client = make_client(ConfigClient, OpenApiVersion.V1)

    history = client.get_previous_history_config("test.yaml", 1736418011823108096)

    assert history.revision == 203
    method, endpoint, kwargs = last_request(mock_openapi_client)
    assert endpoint == "/v1/cs/history/previous"
    assert kwargs["params"]["id"] == 1736418011823108096


# ============================================================================
# Listeners
# ============================================================================

def test_add_and_remove_event_listener(make_client, mock_openapi_client):
    """Test that listeners are registered with defaulted namespace and group."""
    client = make_client(ConfigClient)
    manager = client.listener_manager
    manager.start = lambda: None
    mock_openapi_client.request.return_value = None

    def listener(event):
        pass

    client.add_event_listener("test.yaml", listener)
    assert manager.watched_keys() == [("public", "DEFAULT_GROUP", "test.yaml")]

    client.remove_event_listener("test.yaml", listener)
    assert manager.watched_keys() == []


def test_remove_listener_without_manager(make_client):
    """Test that removing before adding anything is a no-op."""
    client = make_client(ConfigClient)

    client.remove_event_listener("test.yaml", lambda event: None)
    client.close()

    assert client._listener_manager is None
