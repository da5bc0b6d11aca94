"""Nacos OpenAPI client

Python client for the Nacos HTTP OpenAPI (v1 and v2): configs and their
history, config change listening, services, instances, namespaces, server
operations and client connections.
"""

from .client import OpenApiNacosClient, create_client
from .config import NacosClientConfig
from .constants import OpenApiVersion, ConsistencyType, ConfigType, ConfigChangeType
from .models import *  # noqa: F401,F403
from .models import __all__ as _models_all
from .utils.errors import (
    NacosError,
    ValidationError,
    PermissionError,
    AuthenticationError,
    NotFoundError,
    ConflictError,
    RateLimitError,
    ServerError,
    ConfigurationError,
    UnsupportedOperationError,
)

__version__ = "0.1.0"

__all__ = [
    "OpenApiNacosClient",
    "create_client",
    "NacosClientConfig",
    "OpenApiVersion",
    "ConsistencyType",
    "ConfigType",
    "ConfigChangeType",
    "NacosError",
    "ValidationError",
    "PermissionError",
    "AuthenticationError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "ServerError",
    "ConfigurationError",
    "UnsupportedOperationError",
] + list(_models_all)
