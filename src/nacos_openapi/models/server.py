"""Nacos Server Data Models

Pydantic models for cluster members, naming metrics, switches and the
Raft leader. Servers add members between releases, so these models keep
unknown members as extra attributes.
"""

from typing import Optional, Dict, Any

from pydantic import ConfigDict, Field, model_validator

from .base import NacosModel


class _OpenModel(NacosModel):
    model_config = ConfigDict(extra="allow")


class ServerMetrics(_OpenModel):
    """Naming module metrics from ``/ns/operator/metrics``."""

    status: Optional[str] = Field(default=None, description="UP / DOWN / STARTING")
    service_count: Optional[int] = Field(default=None)
    instance_count: Optional[int] = Field(default=None)
    subscribe_count: Optional[int] = Field(default=None)
    responsible_service_count: Optional[int] = Field(default=None)
    responsible_instance_count: Optional[int] = Field(default=None)
    client_count: Optional[int] = Field(default=None)
    connection_based_client_count: Optional[int] = Field(default=None)
    ephemeral_ip_port_client_count: Optional[int] = Field(default=None)
    persistent_ip_port_client_count: Optional[int] = Field(default=None)
    cpu: Optional[float] = Field(default=None)
    load: Optional[float] = Field(default=None)
    mem: Optional[float] = Field(default=None)


class ServerMember(_OpenModel):
    """A member of the Nacos cluster."""

    ip: str = Field(description="Member IP")
    port: int = Field(description="Member HTTP port")
    state: Optional[str] = Field(default=None, description="UP / DOWN / SUSPICIOUS")
    address: Optional[str] = Field(default=None)
    extend_info: Dict[str, Any] = Field(default_factory=dict)
    abilities: Optional[Dict[str, Any]] = Field(default=None)
    fail_access_cnt: Optional[int] = Field(default=None)

    @model_validator(mode="after")
    def default_address(self) -> "ServerMember":
        if not self.address:
            self.address = f"{self.ip}:{self.port}"
        return self


class ServerSwitches(_OpenModel):
    """Naming switches from ``/ns/operator/switches``."""

    name: Optional[str] = Field(default=None)
    master: Optional[str] = Field(default=None)
    default_push_cache_millis: Optional[int] = Field(default=None)
    client_beat_interval: Optional[int] = Field(default=None)
    default_cache_millis: Optional[int] = Field(default=None)
    distro_threshold: Optional[float] = Field(default=None)
    health_check_enabled: Optional[bool] = Field(default=None)
    auto_change_health_check_enabled: Optional[bool] = Field(default=None)
    distro_enabled: Optional[bool] = Field(default=None)
    enable_standalone: Optional[bool] = Field(default=None)
    push_enabled: Optional[bool] = Field(default=None)
    check_times: Optional[int] = Field(default=None)
    default_instance_ephemeral: Optional[bool] = Field(default=None)
    light_beat_enabled: Optional[bool] = Field(default=None)


class RaftPeer(_OpenModel):
    """Raft peer state, as reported for the naming Raft leader (Nacos 1.x)."""

    ip: str = Field(description="host:port of the peer")
    vote_for: Optional[str] = Field(default=None)
    term: Optional[int] = Field(default=None)
    leader_due_ms: Optional[int] = Field(default=None)
    heartbeat_due_ms: Optional[int] = Field(default=None)
    state: Optional[str] = Field(default=None, description="LEADER / FOLLOWER / CANDIDATE")
