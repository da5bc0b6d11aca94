"""Pytest fixtures for the Nacos OpenAPI client tests.

Common fixtures for mocking the transport, the HTTP session and Nacos responses.
"""

import os
import json
from typing import Any, Optional
from unittest.mock import Mock, MagicMock

import pytest
import requests

from nacos_openapi.base import OpenApiTemplateClient
from nacos_openapi.config import NacosClientConfig
from nacos_openapi.constants import OpenApiVersion
from nacos_openapi.transport import OpenApiHttpClient
from nacos_openapi.utils.rate_limit import RateLimiter
from . import nacos_responses


def make_response(status_code: int = 200, payload: Any = None, text: Optional[str] = None) -> requests.Response:
    """Build a real requests.Response carrying a JSON payload or raw text."""
    response = requests.Response()
    response.status_code = status_code
    if text is None:
        text = json.dumps(payload) if payload is not None else ""
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    return response


def last_request(mock_openapi_client: MagicMock):
    """Method, endpoint and keyword arguments of the last transport request."""
    call = mock_openapi_client.request.call_args
    return call.args[0], call.args[1], call.kwargs


@pytest.fixture
def mock_rate_limiter():
    """Mock rate limiter that doesn't actually limit."""
    limiter = Mock(spec=RateLimiter)
    limiter.acquire = Mock(return_value=None)
    limiter.try_acquire = Mock(return_value=True)
    return limiter


@pytest.fixture
def nacos_config():
    """v2 client configuration without credentials."""
    return NacosClientConfig(server_address="127.0.0.1:8848")


@pytest.fixture
def nacos_config_v1():
    """v1 client configuration without credentials."""
    return NacosClientConfig(server_address="127.0.0.1:8848", api_version=OpenApiVersion.V1)


@pytest.fixture
def nacos_config_with_credentials():
    """v2 client configuration against two servers, with credentials."""
    return NacosClientConfig(
        server_address="10.0.0.1:8848,10.0.0.2:8848",
        username="nacos",
        password="nacos",
    )


@pytest.fixture
def mock_openapi_client():
    """Mock transport returning an empty body unless configured otherwise."""
    client = MagicMock(spec=OpenApiHttpClient)
    client.request.return_value = None
    return client


@pytest.fixture
def mock_session():
    """Mock requests session answering 200 with an empty body."""
    session = MagicMock(spec=requests.Session)
    session.request.return_value = make_response(200, text="")
    return session


@pytest.fixture
def make_client(mock_openapi_client, nacos_config, nacos_config_v1):
    """Factory building a sub-client on the mock transport.

    Example:
        config_client = make_client(ConfigClient, OpenApiVersion.V1)
    """
    def factory(client_class, version: OpenApiVersion = OpenApiVersion.V2):
        config = nacos_config if version == OpenApiVersion.V2 else nacos_config_v1
        return client_class(mock_openapi_client, config)

    return factory


@pytest.fixture
def respond(mock_openapi_client):
    """Set the body the mock transport answers with (dicts/lists are JSON encoded)."""
    def setter(payload: Any):
        if payload is None or isinstance(payload, str):
            mock_openapi_client.request.return_value = payload
        else:
            mock_openapi_client.request.return_value = nacos_responses.body(payload)
        return mock_openapi_client

    return setter


@pytest.fixture
def config_detail():
    """Config detail as returned by show=all."""
    return dict(nacos_responses.CONFIG_DETAIL)


@pytest.fixture
def instance_host():
    """One host of an instance list."""
    return dict(nacos_responses.INSTANCE_HOST)


@pytest.fixture(autouse=True)
def reset_environment_for_tests(monkeypatch):
    """Reset environment variables for each test.

    Drops every NACOS_* variable, points NACOS_SERVER_ADDRESS at a test
    server and removes the wait between write retries.
    """
    for name in list(os.environ):
        if name.startswith("NACOS_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NACOS_SERVER_ADDRESS", "nacos.test.example.com:8848")
    monkeypatch.setattr(OpenApiTemplateClient, "WRITE_RETRY_WAIT", 0)
