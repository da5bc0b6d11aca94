"""Nacos OpenAPI Client

One object giving access to every Nacos OpenAPI operation of the configured
version. Operations live on the sub-clients (``config``, ``service``,
``instance``, ``namespace``, ``server``, ``client_connection``, ``auth``);
they can also be called directly on the facade:

    with create_client() as nacos:
        nacos.publish_config_content("app.yaml", "debug: true")
        nacos.instance.register(NewInstance(service_name="orders", ip="10.0.0.7", port=8080))
"""

import logging
from typing import Optional, Any

from .auth import AuthenticationClient
from .clients import ClientConnectionClient
from .config import NacosClientConfig
from .config_client import ConfigClient
from .constants import OpenApiVersion
from .discovery import ServiceClient, InstanceClient
from .namespace import NamespaceClient
from .server import ServerClient
from .transport import OpenApiHttpClient

logger = logging.getLogger(__name__)


class OpenApiNacosClient:
    """Facade over the Nacos OpenAPI sub-clients."""

    def __init__(self, config: NacosClientConfig, openapi_client: Optional[OpenApiHttpClient] = None):
        """Initialize every sub-client on one shared transport.

        Args:
            config: Client configuration
            openapi_client: Optional pre-built transport (mainly for tests)
        """
        self.config = config
        self.openapi_client = openapi_client or OpenApiHttpClient(config)

        self.auth = AuthenticationClient(self.openapi_client, config)
        self.config_client = ConfigClient(self.openapi_client, config)
        self.service = ServiceClient(self.openapi_client, config)
        self.instance = InstanceClient(self.openapi_client, config)
        self.namespace = NamespaceClient(self.openapi_client, config)
        self.server = ServerClient(self.openapi_client, config)
        self.client_connection = ClientConnectionClient(self.openapi_client, config)

        # lookup order for operations called on the facade itself
        self._clients = (
            self.config_client,
            self.service,
            self.instance,
            self.namespace,
            self.server,
            self.client_connection,
            self.auth,
        )
        logger.info(f"Initialized Nacos OpenAPI {config.api_version.value} client")

    @property
    def open_api_version(self) -> OpenApiVersion:
        return self.config.api_version

    def __getattr__(self, name: str) -> Any:
        """Delegate unknown public attributes to the first sub-client that has them.

        Args:
            name: Attribute name

        Returns:
            The sub-client attribute (usually a bound operation)
        """
        if name.startswith('_'):
            # Don't delegate private attributes
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

        for client in self.__dict__.get("_clients", ()):
            if hasattr(type(client), name):
                return getattr(client, name)
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    def close(self) -> None:
        """Stop config listening and close the transport."""
        self.config_client.close()
        self.openapi_client.close()

    def __enter__(self) -> "OpenApiNacosClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


def create_client(config: Optional[NacosClientConfig] = None) -> OpenApiNacosClient:
    """Create a client, reading ``NACOS_*`` environment variables when no config is given.

    Raises:
        ConfigurationError: If no config is given and NACOS_SERVER_ADDRESS is not set
    """
    if config is None:
        config = NacosClientConfig.from_env()
    return OpenApiNacosClient(config)
