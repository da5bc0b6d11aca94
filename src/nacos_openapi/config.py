"""Nacos Client Configuration

Pydantic model for the client settings, loadable from environment variables
or from a flat property mapping holding several named clients
(``nacos.clients.<name>.<property>``).
"""

import os
import re
import logging
from typing import Optional, List, Dict, Any, Mapping

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .constants import OpenApiVersion
from .utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

NACOS_CLIENTS_PROPERTY_NAME_PREFIX = "nacos.clients."


class NacosClientConfig(BaseModel):
    """Connection and behaviour settings for a Nacos OpenAPI client."""

    server_address: str = Field(
        description="host:port of the Nacos server, or a comma separated list of them"
    )
    context_path: str = Field(default="nacos", description="HTTP context path of the server")
    scheme: str = Field(default="http", description="http or https")

    username: Optional[str] = Field(default=None, description="Auth plugin user name")
    password: Optional[str] = Field(default=None, description="Auth plugin password")

    api_version: OpenApiVersion = Field(
        default=OpenApiVersion.V2,
        description="OpenAPI generation used for config/naming/namespace calls"
    )

    connect_timeout: float = Field(default=3.0, gt=0, description="Connect timeout (seconds)")
    read_timeout: float = Field(default=5.0, gt=0, description="Read timeout (seconds)")
    long_polling_timeout: float = Field(
        default=30.0,
        gt=0,
        description="How long the server holds a config listening request (seconds)"
    )

    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    requests_per_second: Optional[float] = Field(
        default=None,
        gt=0,
        description="Client side throttle, disabled when unset"
    )
    max_retries: int = Field(default=0, ge=0, description="Connection retries per address")

    @field_validator("server_address")
    @classmethod
    def validate_server_address(cls, v: str) -> str:
        """Require at least one non-blank address."""
        if not [address for address in v.split(",") if address.strip()]:
            raise ValueError("server_address must contain at least one host:port")
        return v

    @field_validator("scheme")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        scheme = v.strip().lower()
        if scheme not in ("http", "https"):
            raise ValueError(f"Unsupported scheme '{v}', must be http or https")
        return scheme

    @field_validator("context_path")
    @classmethod
    def normalize_context_path(cls, v: str) -> str:
        return v.strip().strip("/")

    @property
    def server_addresses(self) -> List[str]:
        """Parsed list of ``host:port`` entries, scheme prefixes removed."""
        addresses = []
        for address in self.server_address.split(","):
            address = address.strip()
            if not address:
                continue
            address = re.sub(r"^https?://", "", address).rstrip("/")
            addresses.append(address)
        return addresses

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and self.password is not None

    @classmethod
    def from_env(cls, prefix: str = "NACOS_") -> "NacosClientConfig":
        """Build a config from environment variables.

        Reads ``{prefix}SERVER_ADDRESS`` (required) and the optional
        ``CONTEXT_PATH``, ``SCHEME``, ``USERNAME``, ``PASSWORD``,
        ``API_VERSION``, ``CONNECT_TIMEOUT``, ``READ_TIMEOUT``,
        ``LONG_POLLING_TIMEOUT``, ``VERIFY_SSL``, ``REQUESTS_PER_SECOND`` and
        ``MAX_RETRIES``.

        Raises:
            ConfigurationError: If the server address is missing or a value is invalid
        """
        server_address = os.environ.get(f"{prefix}SERVER_ADDRESS")
        if not server_address:
            logger.error(f"{prefix}SERVER_ADDRESS environment variable not set")
            raise ConfigurationError(f"{prefix}SERVER_ADDRESS environment variable is required.")

        values: Dict[str, Any] = {"server_address": server_address}
        for field_name in cls.model_fields:
            if field_name == "server_address":
                continue
            raw = os.environ.get(f"{prefix}{field_name.upper()}")
            if raw is not None and raw != "":
                values[field_name] = raw

        if "verify_ssl" in values:
            values["verify_ssl"] = values["verify_ssl"].lower() in ("true", "1", "yes")
        if "api_version" in values:
            values["api_version"] = values["api_version"].lower()

        return cls._build(values)

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any], client_name: str) -> "NacosClientConfig":
        """Build the config of a named client from flat properties.

        Example:
            {"nacos.clients.main.server-address": "127.0.0.1:8848",
             "nacos.clients.main.api-version": "v1"}

        Raises:
            ConfigurationError: If the client has no properties or they are invalid
        """
        client_properties = get_client_properties(properties, client_name)
        if not client_properties:
            raise ConfigurationError(
                f"No properties found for Nacos client '{client_name}'",
                details={"prefix": build_client_property_name_prefix(client_name)}
            )
        values = {_to_field_name(name): value for name, value in client_properties.items()}
        if isinstance(values.get("verify_ssl"), str):
            values["verify_ssl"] = values["verify_ssl"].lower() in ("true", "1", "yes")
        if isinstance(values.get("api_version"), str):
            values["api_version"] = values["api_version"].lower()
        return cls._build(values)

    @classmethod
    def _build(cls, values: Dict[str, Any]) -> "NacosClientConfig":
        try:
            return cls(**values)
        except PydanticValidationError as e:
            raise ConfigurationError(
                f"Invalid Nacos client configuration: {e}",
                details={"errors": e.errors(include_url=False)}
            ) from e


def build_client_property_name_prefix(client_name: str) -> str:
    """Prefix of the properties of the named client (``nacos.clients.<name>.``)."""
    return f"{NACOS_CLIENTS_PROPERTY_NAME_PREFIX}{client_name}."


def get_client_properties(properties: Mapping[str, Any], client_name: str) -> Dict[str, Any]:
    """Select the properties of one named client, with the prefix stripped."""
    prefix = build_client_property_name_prefix(client_name)
    return {
        name[len(prefix):]: value
        for name, value in properties.items()
        if name.startswith(prefix) and len(name) > len(prefix)
    }


def _to_field_name(property_name: str) -> str:
    # server-address / serverAddress / server_address -> server_address
    name = property_name.replace("-", "_").replace(".", "_")
    name = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name)
    return name.lower()
