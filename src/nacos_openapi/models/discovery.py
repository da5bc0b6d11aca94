"""Nacos Service Discovery Data Models

Pydantic models for services, instances and the results of naming calls.
"""

from typing import Optional, Dict, Any, List

from pydantic import AliasChoices, Field, field_validator, model_validator

from .base import NacosModel
from ..constants import DEFAULT_NAMESPACE_ID, DEFAULT_GROUP_NAME, DEFAULT_CLUSTER_NAME
from ..utils.params import split_group_service


class BaseInstance(NacosModel):
    """Identity of a service instance."""

    namespace_id: Optional[str] = Field(default=None, description="Namespace id, public when empty")
    group_name: Optional[str] = Field(default=None, description="Group, DEFAULT_GROUP when empty")
    service_name: str = Field(description="Service name without the group prefix")
    cluster_name: Optional[str] = Field(default=None, description="Cluster, DEFAULT when empty")
    ip: str = Field(description="IP of the instance")
    port: int = Field(ge=0, le=65535, description="Port of the instance")
    ephemeral: Optional[bool] = Field(default=None, description="Ephemeral (heartbeat) or persistent")

    @model_validator(mode="before")
    @classmethod
    def split_grouped_service_name(cls, data: Any) -> Any:
        """Accept ``group@@service`` (and the ``service`` member of v1 detail)."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "serviceName" not in data and "service_name" not in data and "service" in data:
            data["serviceName"] = data.pop("service")
        for key in ("serviceName", "service_name"):
            name = data.get(key)
            if isinstance(name, str):
                group_name, service_name = split_group_service(name)
                data[key] = service_name
                if group_name and not (data.get("groupName") or data.get("group_name")):
                    data["groupName"] = group_name
        return data

    def identity_params(self) -> Dict[str, Any]:
        """Parameters identifying the instance on the wire."""
        return {
            "namespaceId": self.namespace_id or DEFAULT_NAMESPACE_ID,
            "groupName": self.group_name or DEFAULT_GROUP_NAME,
            "serviceName": self.service_name,
            "clusterName": self.cluster_name or DEFAULT_CLUSTER_NAME,
            "ip": self.ip,
            "port": self.port,
            "ephemeral": self.ephemeral,
        }

    def to_params(self) -> Dict[str, Any]:
        return self.identity_params()


class GenericInstance(BaseInstance):
    """Instance with its mutable attributes."""

    weight: Optional[float] = Field(default=None, ge=0, le=10000, description="Load balancing weight")
    enabled: Optional[bool] = Field(default=None, description="Whether traffic may be routed to it")
    metadata: Dict[str, str] = Field(default_factory=dict, description="Extended information")

    @field_validator("metadata", mode="before")
    @classmethod
    def stringify_metadata(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, dict):
            return {str(key): str(value) for key, value in v.items()}
        return v

    def to_params(self) -> Dict[str, Any]:
        params = self.identity_params()
        params.update({
            "weight": self.weight,
            "enabled": self.enabled,
            "metadata": self.metadata or None,
        })
        return params


class NewInstance(GenericInstance):
    """Instance to be registered."""

    healthy: Optional[bool] = Field(default=None, description="Initial health")

    def to_params(self) -> Dict[str, Any]:
        params = super().to_params()
        params["healthy"] = self.healthy
        return params


class UpdateInstance(GenericInstance):
    """Registered instance whose attributes are refreshed."""

    pass


class DeleteInstance(BaseInstance):
    """Instance to be deregistered."""

    pass


class QueryInstance(BaseInstance):
    """Lookup of a single instance."""

    healthy_only: Optional[bool] = Field(default=None, description="Only match a healthy instance")


class UpdateHealthInstance(BaseInstance):
    """Health flag to set on a persistent instance."""

    healthy: bool = Field(description="New health status")

    def to_params(self) -> Dict[str, Any]:
        params = self.identity_params()
        params["healthy"] = self.healthy
        return params


class Instance(NewInstance):
    """A registered service instance as reported by the server."""

    instance_id: Optional[str] = Field(default=None)
    heartbeat_interval: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("instanceHeartBeatInterval", "heartbeatInterval", "heartbeat_interval"),
        description="Client heartbeat interval (ms)"
    )
    heartbeat_timeout: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("instanceHeartBeatTimeOut", "heartbeatTimeout", "heartbeat_timeout"),
        description="Unhealthy after this long without heartbeat (ms)"
    )
    ip_delete_timeout: Optional[int] = Field(default=None, description="Removed after this long (ms)")
    instance_id_generator: Optional[str] = Field(default=None)

    @property
    def address(self) -> str:
        return f"{self.ip}:{self.port}"


class InstancesList(NacosModel):
    """Instances of a service from ``/ns/instance/list``."""

    name: str = Field(description="Grouped service name (group@@service)")
    group_name: Optional[str] = Field(default=None)
    clusters: Optional[str] = Field(default=None, description="Comma separated cluster names")
    cache_millis: Optional[int] = Field(default=None)
    hosts: List[Instance] = Field(default_factory=list)
    last_ref_time: Optional[int] = Field(default=None)
    checksum: Optional[str] = Field(default=None)
    all_ips: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("allIPs", "allIps", "all_ips"),
    )
    reach_protection_threshold: Optional[bool] = Field(default=None)
    valid: Optional[bool] = Field(default=None)
    namespace_id: Optional[str] = Field(default=None, description="Filled from the request")
    service_name: Optional[str] = Field(default=None, description="Filled from the request")

    @model_validator(mode="after")
    def derive_names(self) -> "InstancesList":
        group_name, service_name = split_group_service(self.name)
        if self.service_name is None:
            self.service_name = service_name
        if self.group_name is None and group_name:
            self.group_name = group_name
        return self


class Heartbeat(NacosModel):
    """Result of ``PUT /v1/ns/instance/beat``."""

    client_beat_interval: Optional[int] = Field(default=None, description="Next beat in (ms)")
    code: Optional[int] = Field(default=None, description="10200 ok, 20404 instance not found")
    light_beat_enabled: Optional[bool] = Field(default=None)


class BatchMetadataResult(NacosModel):
    """Result of a batch metadata update or delete."""

    updated: List[str] = Field(
        default_factory=list,
        description="Affected instances as ip:port:ephemeral:cluster"
    )


class Cluster(NacosModel):
    """Cluster of a service."""

    name: str = Field(validation_alias=AliasChoices("name", "clusterName"))
    health_checker: Optional[Dict[str, Any]] = Field(default=None)
    metadata: Dict[str, str] = Field(default_factory=dict)


class Service(NacosModel):
    """A Nacos service."""

    namespace_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("namespaceId", "namespace_id", "namespace"),
    )
    group_name: Optional[str] = Field(default=None)
    name: str = Field(
        validation_alias=AliasChoices("name", "serviceName", "service_name"),
        description="Service name without the group prefix"
    )
    protect_threshold: Optional[float] = Field(default=None, ge=0, le=1)
    metadata: Dict[str, str] = Field(default_factory=dict)
    selector: Optional[Dict[str, Any]] = Field(default=None)
    clusters: List[Cluster] = Field(default_factory=list)
    ephemeral: Optional[bool] = Field(default=None)

    @model_validator(mode="before")
    @classmethod
    def flatten_cluster_map(cls, data: Any) -> Any:
        # v2 reports clusters as {"clusterMap": {"name": {...}}}
        if isinstance(data, dict) and isinstance(data.get("clusterMap"), dict):
            data = dict(data)
            data["clusters"] = [
                {"name": name, **(cluster or {})}
                for name, cluster in data.pop("clusterMap").items()
            ]
        return data

    def to_params(self, include_ephemeral: bool = False) -> Dict[str, Any]:
        params = {
            "namespaceId": self.namespace_id or DEFAULT_NAMESPACE_ID,
            "groupName": self.group_name or DEFAULT_GROUP_NAME,
            "serviceName": self.name,
            "protectThreshold": self.protect_threshold,
            "metadata": self.metadata or None,
            "selector": self.selector,
        }
        if include_ephemeral:
            params["ephemeral"] = self.ephemeral
        return params
