"""Nacos Client Connection Data Models

Pydantic models for the v2 ``/ns/client`` operations, which report the
SDK connections (clients) known to the server.
"""

from typing import Optional, Any

from pydantic import AliasChoices, Field, model_validator

from .base import NacosModel


class ClientDetail(NacosModel):
    """Details of one client connection."""

    client_id: str = Field(description="Connection id")
    ephemeral: Optional[bool] = Field(default=None)
    last_updated_time: Optional[int] = Field(default=None)
    client_type: Optional[str] = Field(default=None, description="connection / ipport")
    connect_type: Optional[str] = Field(default=None, description="GRPC / HTTP")
    app_name: Optional[str] = Field(default=None)
    version: Optional[str] = Field(default=None, description="SDK version")
    client_ip: Optional[str] = Field(default=None)
    client_port: Optional[int] = Field(default=None)


class ClientInstance(NacosModel):
    """An instance registered through a client connection."""

    namespace_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("namespace", "namespaceId", "namespace_id"),
    )
    group_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("group", "groupName", "group_name"),
    )
    service_name: str = Field(description="Service name")
    ip: Optional[str] = Field(default=None)
    port: Optional[int] = Field(default=None)
    cluster_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("cluster", "clusterName", "cluster_name"),
    )

    @model_validator(mode="before")
    @classmethod
    def flatten_registered_instance(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("registeredInstance"), dict):
            data = dict(data)
            data.update(data.pop("registeredInstance"))
        return data


class ClientSubscriber(NacosModel):
    """A subscription held by a client connection."""

    namespace_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("namespace", "namespaceId", "namespace_id"),
    )
    group_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("group", "groupName", "group_name"),
    )
    service_name: str = Field(description="Service name")
    app_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("app", "appName", "app_name"),
    )
    agent: Optional[str] = Field(default=None)
    address: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("addr", "address"),
    )

    @model_validator(mode="before")
    @classmethod
    def flatten_subscriber_info(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("subscriberInfo"), dict):
            data = dict(data)
            data.update(data.pop("subscriberInfo"))
        return data


class ClientInfo(NacosModel):
    """A client registered to, or subscribed to, a service."""

    client_id: str = Field(description="Connection id")
    ip: Optional[str] = Field(default=None)
    port: Optional[int] = Field(default=None)
    address: Optional[str] = Field(default=None)
    agent: Optional[str] = Field(default=None)
    app_name: Optional[str] = Field(default=None)
