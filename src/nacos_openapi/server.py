"""Nacos Server Client

Operator and cluster operations of the Nacos OpenAPI:
- Naming metrics and switches
- Cluster members and the member being called
- Naming Raft leader (Nacos 1.x clusters)
"""

import json
import logging
from typing import Optional, Any, List

from .base import OpenApiTemplateClient
from .models.server import ServerMetrics, ServerMember, ServerSwitches, RaftPeer
from .utils.errors import NacosError

logger = logging.getLogger(__name__)

V1_METRICS_ENDPOINT = "/v1/ns/operator/metrics"
V1_SWITCHES_ENDPOINT = "/v1/ns/operator/switches"
V1_SERVERS_ENDPOINT = "/v1/ns/operator/servers"
V1_RAFT_LEADER_ENDPOINT = "/v1/ns/raft/leader"

V2_METRICS_ENDPOINT = "/v2/ns/operator/metrics"
V2_SWITCHES_ENDPOINT = "/v2/ns/operator/switches"
V2_NODE_LIST_ENDPOINT = "/v2/core/cluster/node/list"
V2_NODE_SELF_ENDPOINT = "/v2/core/cluster/node/self"
V2_NODE_SELF_HEALTH_ENDPOINT = "/v2/core/cluster/node/self/health"

MEMBER_STATE_UP = "UP"


class ServerClient(OpenApiTemplateClient):
    """Server operations for the configured OpenAPI version."""

    def get_server_metrics(self) -> ServerMetrics:
        endpoint = V2_METRICS_ENDPOINT if self.is_v2 else V1_METRICS_ENDPOINT
        return ServerMetrics.model_validate(self._response("GET", endpoint) or {})

    def get_switches(self) -> ServerSwitches:
        endpoint = V2_SWITCHES_ENDPOINT if self.is_v2 else V1_SWITCHES_ENDPOINT
        return ServerSwitches.model_validate(self._response("GET", endpoint) or {})

    def update_switch(self, entry: str, value: Any, debug: bool = False) -> bool:
        """Change one naming switch.

        Args:
            entry: Switch name, e.g. ``healthCheckEnabled``
            value: New value
            debug: Only apply to the called server instead of the cluster

        Returns:
            True if the server reported success
        """
        endpoint = V2_SWITCHES_ENDPOINT if self.is_v2 else V1_SWITCHES_ENDPOINT
        logger.info(f"Updating switch {entry}={value} (debug: {debug})")
        result = self._write("PUT", endpoint, data={"entry": entry, "value": value, "debug": debug})
        return self._is_ok(result)

    def get_members(self, healthy: Optional[bool] = None) -> List[ServerMember]:
        """List the cluster members.

        Args:
            healthy: Only members that are up when True; v1 servers filter
                themselves, v2 members are filtered on their state
        """
        if self.is_v2:
            payload = self._response("GET", V2_NODE_LIST_ENDPOINT) or []
            members = [ServerMember.model_validate(item) for item in payload]
            if healthy:
                members = [member for member in members if member.state == MEMBER_STATE_UP]
            return members

        payload = self._response("GET", V1_SERVERS_ENDPOINT, params={"healthy": healthy}) or {}
        return [ServerMember.model_validate(item) for item in payload.get("servers") or []]

    def get_self(self) -> ServerMember:
        """The member answering the call (v2 only).

        Raises:
            UnsupportedOperationError: On a v1 client
        """
        self._require_v2("get_self")
        return ServerMember.model_validate(self._response("GET", V2_NODE_SELF_ENDPOINT))

    def get_self_health(self) -> str:
        """Health state of the member answering the call, e.g. ``UP`` (v2 only).

        Raises:
            UnsupportedOperationError: On a v1 client
        """
        self._require_v2("get_self_health")
        return self._response("GET", V2_NODE_SELF_HEALTH_ENDPOINT)

    def get_leader(self) -> Optional[RaftPeer]:
        """The naming Raft leader, None when the cluster has none.

        Uses ``/v1/ns/raft/leader``, which only Nacos 1.x clusters serve.
        """
        payload = self._response("GET", V1_RAFT_LEADER_ENDPOINT)
        if not isinstance(payload, dict) or not payload.get("leader"):
            return None
        leader = payload["leader"]
        # the leader is a JSON document serialized into a string member
        if isinstance(leader, str):
            try:
                leader = json.loads(leader)
            except json.JSONDecodeError as e:
                raise NacosError(
                    f"Invalid Raft leader from {V1_RAFT_LEADER_ENDPOINT}: {e}",
                    details={"leader": leader[:200]}
                ) from e
        return RaftPeer.model_validate(leader)
