"""Integration test fixtures - talk to the Nacos server named by NACOS_SERVER_ADDRESS."""
import os

import pytest

from nacos_openapi import NacosClientConfig, OpenApiNacosClient, OpenApiVersion


@pytest.fixture(autouse=True)
def reset_environment_for_tests():
    """Override the autouse fixture from root conftest to do nothing.

    Integration tests need the real NACOS_* variables, not the
    test values set by the root conftest fixture.
    """
    pass


@pytest.fixture(params=[OpenApiVersion.V1, OpenApiVersion.V2], ids=["v1", "v2"])
def live_client(request):
    """Client for each OpenAPI version against the live server."""
    if not os.getenv("NACOS_SERVER_ADDRESS"):
        pytest.skip("NACOS_SERVER_ADDRESS is not set")
    config = NacosClientConfig.from_env().model_copy(update={"api_version": request.param})
    client = OpenApiNacosClient(config)
    yield client
    client.close()
