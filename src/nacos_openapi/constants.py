"""Nacos OpenAPI constants and enumerations."""

from enum import Enum
from typing import Optional

DEFAULT_NAMESPACE_ID = "public"

DEFAULT_GROUP_NAME = "DEFAULT_GROUP"

DEFAULT_CLUSTER_NAME = "DEFAULT"

GROUP_SERVICE_NAME_SEPARATOR = "@@"

DEFAULT_APPLICATION_NAME = "nacos-openapi-client"

DEFAULT_HEALTHY_ONLY = False

# Paging starts at 1
PAGE_NUMBER = 1

DEFAULT_PAGE_SIZE = 100

MAX_PAGE_SIZE = 500


class OpenApiVersion(str, Enum):
    """Nacos OpenAPI generation the client talks to."""

    V1 = "v1"
    V2 = "v2"


class ConsistencyType(str, Enum):
    """Instance consistency model: ephemeral (AP, heartbeat) or persistent (CP)."""

    EPHEMERAL = "ephemeral"
    PERSISTENT = "persist"

    @property
    def ephemeral(self) -> bool:
        return self is ConsistencyType.EPHEMERAL


class ConfigType(str, Enum):
    """Content type of a config."""

    TEXT = "text"
    JSON = "json"
    XML = "xml"
    YAML = "yaml"
    HTML = "html"
    PROPERTIES = "properties"

    @classmethod
    def _missing_(cls, value: object) -> Optional["ConfigType"]:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class ConfigOperationType(str, Enum):
    """Operation recorded in a config history entry."""

    CREATE = "I"
    UPDATE = "U"
    DELETE = "D"

    @classmethod
    def _missing_(cls, value: object) -> Optional["ConfigOperationType"]:
        # the server pads opType with spaces ("I         ")
        if isinstance(value, str):
            stripped = value.strip().upper()
            for member in cls:
                if member.value == stripped:
                    return member
        return None


class ConfigChangeType(str, Enum):
    """Kind of change delivered to config listeners."""

    CREATED = "CREATED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
