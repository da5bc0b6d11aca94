"""Nacos namespace client."""

import logging
from typing import Optional, List

from .base import OpenApiTemplateClient
from .models.namespace import Namespace
from .utils.errors import NotFoundError

logger = logging.getLogger(__name__)

V1_NAMESPACES_ENDPOINT = "/v1/console/namespaces"
V2_NAMESPACE_ENDPOINT = "/v2/console/namespace"
V2_NAMESPACE_LIST_ENDPOINT = "/v2/console/namespace/list"


class NamespaceClient(OpenApiTemplateClient):
    """Namespace operations for the configured OpenAPI version."""

    def get_all_namespaces(self) -> List[Namespace]:
        """List every namespace, public included."""
        if self.is_v2:
            payload = self._response("GET", V2_NAMESPACE_LIST_ENDPOINT)
        else:
            # v1 answers {"code": 200, "data": [...]}
            payload = self._response("GET", V1_NAMESPACES_ENDPOINT)
            payload = payload.get("data") if isinstance(payload, dict) else payload
        return [Namespace.model_validate(item) for item in payload or []]

    def get_namespace(self, namespace_id: str) -> Optional[Namespace]:
        """Get a namespace with its quota and config count.

        Returns:
            Namespace, or None if it doesn't exist
        """
        try:
            if self.is_v2:
                payload = self._response("GET", V2_NAMESPACE_ENDPOINT, params={"namespaceId": namespace_id})
            else:
                payload = self._response(
                    "GET",
                    V1_NAMESPACES_ENDPOINT,
                    params={"show": "all", "namespaceId": namespace_id},
                )
        except NotFoundError:
            return None
        if not payload or not isinstance(payload, dict):
            return None
        return Namespace.model_validate(payload)

    def create_namespace(self, namespace_id: str, namespace_name: str, namespace_desc: Optional[str] = None) -> bool:
        """Create a namespace.

        Args:
            namespace_id: Custom namespace id
            namespace_name: Display name
            namespace_desc: Description

        Returns:
            True if the server reported success
        """
        if self.is_v2:
            endpoint = V2_NAMESPACE_ENDPOINT
            data = {"namespaceId": namespace_id, "namespaceName": namespace_name, "namespaceDesc": namespace_desc}
        else:
            endpoint = V1_NAMESPACES_ENDPOINT
            data = {"customNamespaceId": namespace_id, "namespaceName": namespace_name, "namespaceDesc": namespace_desc}
        logger.info(f"Creating namespace {namespace_id} ('{namespace_name}')")
        return self._is_ok(self._write("POST", endpoint, data=data))

    def update_namespace(self, namespace_id: str, namespace_name: str, namespace_desc: Optional[str] = None) -> bool:
        """Rename a namespace or change its description."""
        if self.is_v2:
            endpoint = V2_NAMESPACE_ENDPOINT
            data = {"namespaceId": namespace_id, "namespaceName": namespace_name, "namespaceDesc": namespace_desc}
        else:
            endpoint = V1_NAMESPACES_ENDPOINT
            data = {"namespace": namespace_id, "namespaceShowName": namespace_name, "namespaceDesc": namespace_desc}
        logger.info(f"Updating namespace {namespace_id} ('{namespace_name}')")
        return self._is_ok(self._write("PUT", endpoint, data=data))

    def delete_namespace(self, namespace_id: str) -> bool:
        endpoint = V2_NAMESPACE_ENDPOINT if self.is_v2 else V1_NAMESPACES_ENDPOINT
        logger.info(f"Deleting namespace {namespace_id}")
        return self._is_ok(self._write("DELETE", endpoint, params={"namespaceId": namespace_id}))
