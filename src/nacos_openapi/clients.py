"""Nacos client-connection operations (OpenAPI v2 only)."""

import logging
from typing import Optional, List

from .base import OpenApiTemplateClient
from .models.client import ClientDetail, ClientInstance, ClientSubscriber, ClientInfo
from .utils.errors import NotFoundError

logger = logging.getLogger(__name__)

CLIENT_LIST_ENDPOINT = "/v2/ns/client/list"
CLIENT_ENDPOINT = "/v2/ns/client"
CLIENT_PUBLISH_LIST_ENDPOINT = "/v2/ns/client/publish/list"
CLIENT_SUBSCRIBE_LIST_ENDPOINT = "/v2/ns/client/subscribe/list"
SERVICE_PUBLISHER_LIST_ENDPOINT = "/v2/ns/client/service/publisher/list"
SERVICE_SUBSCRIBER_LIST_ENDPOINT = "/v2/ns/client/service/subscriber/list"


class ClientConnectionClient(OpenApiTemplateClient):
    """Inspect the SDK connections known to the server.

    Every operation raises UnsupportedOperationError on a v1 client.
    """

    def get_all_client_ids(self) -> List[str]:
        self._require_v2("get_all_client_ids")
        return list(self._response("GET", CLIENT_LIST_ENDPOINT) or [])

    def get_client_detail(self, client_id: str) -> Optional[ClientDetail]:
        """Get one client connection.

        Returns:
            ClientDetail, or None if the client isn't connected
        """
        self._require_v2("get_client_detail")
        try:
            payload = self._response("GET", CLIENT_ENDPOINT, params={"clientId": client_id})
        except NotFoundError:
            return None
        if not payload:
            return None
        return ClientDetail.model_validate(payload)

    def get_registered_instances(self, client_id: str) -> List[ClientInstance]:
        """Instances registered through a client connection."""
        self._require_v2("get_registered_instances")
        payload = self._response("GET", CLIENT_PUBLISH_LIST_ENDPOINT, params={"clientId": client_id})
        return [ClientInstance.model_validate(item) for item in payload or []]

    def get_subscribers(self, client_id: str) -> List[ClientSubscriber]:
        """Services a client connection subscribes to."""
        self._require_v2("get_subscribers")
        payload = self._response("GET", CLIENT_SUBSCRIBE_LIST_ENDPOINT, params={"clientId": client_id})
        return [ClientSubscriber.model_validate(item) for item in payload or []]

    def get_registered_clients(
        self,
        service_name: str,
        namespace_id: Optional[str] = None,
        group_name: Optional[str] = None,
        ephemeral: Optional[bool] = None,
        ip: Optional[str] = None,
        port: Optional[int] = None,
    ) -> List[ClientInfo]:
        """Clients that registered instances of a service."""
        self._require_v2("get_registered_clients")
        return self._service_clients(
            SERVICE_PUBLISHER_LIST_ENDPOINT, service_name, namespace_id, group_name, ephemeral, ip, port
        )

    def get_subscribed_clients(
        self,
        service_name: str,
        namespace_id: Optional[str] = None,
        group_name: Optional[str] = None,
        ephemeral: Optional[bool] = None,
        ip: Optional[str] = None,
        port: Optional[int] = None,
    ) -> List[ClientInfo]:
        """Clients that subscribe to a service."""
        self._require_v2("get_subscribed_clients")
        return self._service_clients(
            SERVICE_SUBSCRIBER_LIST_ENDPOINT, service_name, namespace_id, group_name, ephemeral, ip, port
        )

    def _service_clients(
        self,
        endpoint: str,
        service_name: str,
        namespace_id: Optional[str],
        group_name: Optional[str],
        ephemeral: Optional[bool],
        ip: Optional[str],
        port: Optional[int],
    ) -> List[ClientInfo]:
        params = {
            "namespaceId": self._namespace(namespace_id),
            "groupName": self._group(group_name),
            "serviceName": service_name,
            "ephemeral": ephemeral,
            "ip": ip,
            "port": port,
        }
        logger.debug(f"Listing clients of service {service_name}: {params}")
        payload = self._response("GET", endpoint, params=params)
        return [ClientInfo.model_validate(item) for item in payload or []]
