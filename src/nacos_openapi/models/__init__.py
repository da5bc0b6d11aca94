"""Nacos OpenAPI Data Models

This package contains Pydantic models for Nacos entities.
"""

from .base import NacosModel, Page, validate_page_request
from .auth import Authentication
from .config import NewConfig, Config, HistoryConfig, ConfigChangedEvent
from .discovery import (
    BaseInstance,
    GenericInstance,
    NewInstance,
    UpdateInstance,
    DeleteInstance,
    QueryInstance,
    UpdateHealthInstance,
    Instance,
    InstancesList,
    Heartbeat,
    BatchMetadataResult,
    Cluster,
    Service,
)
from .namespace import Namespace
from .server import ServerMetrics, ServerMember, ServerSwitches, RaftPeer
from .client import ClientDetail, ClientInstance, ClientSubscriber, ClientInfo

__all__ = [
    "NacosModel",
    "Page",
    "validate_page_request",
    "Authentication",
    "NewConfig",
    "Config",
    "HistoryConfig",
    "ConfigChangedEvent",
    "BaseInstance",
    "GenericInstance",
    "NewInstance",
    "UpdateInstance",
    "DeleteInstance",
    "QueryInstance",
    "UpdateHealthInstance",
    "Instance",
    "InstancesList",
    "Heartbeat",
    "BatchMetadataResult",
    "Cluster",
    "Service",
    "Namespace",
    "ServerMetrics",
    "ServerMember",
    "ServerSwitches",
    "RaftPeer",
    "ClientDetail",
    "ClientInstance",
    "ClientSubscriber",
    "ClientInfo",
]
