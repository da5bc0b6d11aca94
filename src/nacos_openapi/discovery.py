"""Nacos Service Discovery Clients

Naming operations of the Nacos OpenAPI:
- ServiceClient: create, update, delete, get and list services
- InstanceClient: register, deregister, refresh, query instances,
  heartbeats, health and batch metadata
"""

import json
import logging
from typing import Optional, Any, Dict, List, Iterable

from .base import OpenApiTemplateClient
from .constants import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_HEALTHY_ONLY,
    DEFAULT_CLUSTER_NAME,
    DEFAULT_APPLICATION_NAME,
    PAGE_NUMBER,
    ConsistencyType,
)
from .models.base import Page, validate_page_request
from .models.discovery import (
    BaseInstance,
    NewInstance,
    UpdateInstance,
    DeleteInstance,
    QueryInstance,
    UpdateHealthInstance,
    Instance,
    InstancesList,
    Heartbeat,
    BatchMetadataResult,
    Service,
)
from .utils.errors import NotFoundError
from .utils.params import join_group_service

logger = logging.getLogger(__name__)

HEARTBEAT_ENDPOINT = "/v1/ns/instance/beat"


def _naming_endpoint(version_prefix: str, path: str) -> str:
    return f"/{version_prefix}/ns/{path}"


class ServiceClient(OpenApiTemplateClient):
    """Service operations for the configured OpenAPI version."""

    def _endpoint(self, path: str) -> str:
        return _naming_endpoint(self.open_api_version.value, path)

    def create_service(self, service: Service) -> bool:
        """Create a service.

        Returns:
            True if the server reported success
        """
        logger.info(f"Creating service {service.name} (group: {self._group(service.group_name)})")
        result = self._write("POST", self._endpoint("service"), data=service.to_params(include_ephemeral=self.is_v2))
        return self._is_ok(result)

    def update_service(self, service: Service) -> bool:
        """Update protect threshold, metadata and selector of a service."""
        logger.info(f"Updating service {service.name} (group: {self._group(service.group_name)})")
        result = self._write("PUT", self._endpoint("service"), data=service.to_params())
        return self._is_ok(result)

    def delete_service(
        self,
        service_name: str,
        group_name: Optional[str] = None,
        namespace_id: Optional[str] = None,
    ) -> bool:
        """Delete a service. The server refuses while instances are registered."""
        params = {
            "namespaceId": self._namespace(namespace_id),
            "groupName": self._group(group_name),
            "serviceName": service_name,
        }
        logger.info(f"Deleting service {service_name}: {params}")
        result = self._write("DELETE", self._endpoint("service"), params=params)
        return self._is_ok(result)

    def get_service(
        self,
        service_name: str,
        group_name: Optional[str] = None,
        namespace_id: Optional[str] = None,
    ) -> Optional[Service]:
        """Get a service with its clusters.

        Returns:
            Service, or None if it doesn't exist
        """
        params = {
            "namespaceId": self._namespace(namespace_id),
            "groupName": self._group(group_name),
            "serviceName": service_name,
        }
        try:
            payload = self._response("GET", self._endpoint("service"), params=params)
        except NotFoundError:
            return None
        if not payload or not isinstance(payload, dict):
            return None

        service = Service.model_validate(payload)
        if not service.namespace_id:
            service.namespace_id = params["namespaceId"]
        if not service.group_name:
            service.group_name = params["groupName"]
        return service

    def get_service_names(
        self,
        namespace_id: Optional[str] = None,
        group_name: Optional[str] = None,
        page_number: int = PAGE_NUMBER,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[str]:
        """List service names of a namespace and group.

        Raises:
            ValueError: If the page request is out of range
        """
        validate_page_request(page_number, page_size)
        params = {
            "namespaceId": self._namespace(namespace_id),
            "groupName": self._group(group_name),
            "pageNo": page_number,
            "pageSize": page_size,
        }
        payload = self._response("GET", self._endpoint("service/list"), params=params) or {}
        # v1 lists names under "doms", v2 under "services"
        names = payload.get("services") if self.is_v2 else payload.get("doms")
        return Page[str](
            total_elements=payload.get("count", 0),
            elements=names or [],
            page_number=page_number,
            page_size=page_size,
        )


class InstanceClient(OpenApiTemplateClient):
    """Instance operations for the configured OpenAPI version."""

    def _endpoint(self, path: str) -> str:
        return _naming_endpoint(self.open_api_version.value, path)

    def register(self, new_instance: NewInstance) -> bool:
        """Register an instance.

        Returns:
            True if the server reported success
        """
        logger.info(f"Registering instance {new_instance.ip}:{new_instance.port} of {new_instance.service_name}")
        result = self._write("POST", self._endpoint("instance"), data=new_instance.to_params())
        return self._is_ok(result)

    def deregister(self, delete_instance: DeleteInstance) -> bool:
        logger.info(f"Deregistering instance {delete_instance.ip}:{delete_instance.port} of {delete_instance.service_name}")
        result = self._write("DELETE", self._endpoint("instance"), params=delete_instance.to_params())
        return self._is_ok(result)

    def refresh(self, update_instance: UpdateInstance) -> bool:
        """Update weight, enabled flag and metadata of a registered instance."""
        logger.info(f"Refreshing instance {update_instance.ip}:{update_instance.port} of {update_instance.service_name}")
        result = self._write("PUT", self._endpoint("instance"), data=update_instance.to_params())
        return self._is_ok(result)

    def get_instance(
        self,
        service_name: str,
        ip: str,
        port: int,
        cluster_name: Optional[str] = None,
        group_name: Optional[str] = None,
        namespace_id: Optional[str] = None,
    ) -> Optional[Instance]:
        """Get one instance of a service.

        Returns:
            Instance, or None if it isn't registered
        """
        query = QueryInstance(
            namespace_id=namespace_id,
            group_name=group_name,
            service_name=service_name,
            cluster_name=cluster_name,
            ip=ip,
            port=port,
        )
        return self.get_instance_by_query(query)

    def get_instance_by_query(self, query_instance: QueryInstance) -> Optional[Instance]:
        params = query_instance.identity_params()
        params["healthyOnly"] = query_instance.healthy_only
        if not self.is_v2:
            # v1 names the cluster parameter "cluster"
            params["cluster"] = params.pop("clusterName")
        try:
            payload = self._response("GET", self._endpoint("instance"), params=params)
        except NotFoundError:
            return None
        if not payload or not isinstance(payload, dict):
            return None

        instance = Instance.model_validate(payload)
        updates = {}
        if not instance.namespace_id:
            updates["namespace_id"] = query_instance.namespace_id or params["namespaceId"]
        if not instance.group_name:
            updates["group_name"] = params["groupName"]
        if not instance.cluster_name:
            updates["cluster_name"] = query_instance.cluster_name or params.get("clusterName") or params.get("cluster")
        return instance.model_copy(update=updates) if updates else instance

    def get_instances_list(
        self,
        service_name: str,
        namespace_id: Optional[str] = None,
        group_name: Optional[str] = None,
        cluster_name: Optional[str] = DEFAULT_CLUSTER_NAME,
        ip: Optional[str] = None,
        port: Optional[int] = None,
        healthy_only: bool = DEFAULT_HEALTHY_ONLY,
        app: Optional[str] = DEFAULT_APPLICATION_NAME,
    ) -> InstancesList:
        """List the instances of a service.

        Args:
            service_name: Service name
            namespace_id: Namespace, defaults to public
            group_name: Group, defaults to DEFAULT_GROUP
            cluster_name: Comma separated clusters to restrict to, defaults
                to DEFAULT; None lists every cluster
            ip: Only instances with this IP (v2)
            port: Only instances with this port (v2)
            healthy_only: Only healthy instances
            app: Application name of the caller

        Returns:
            InstancesList with namespace and service name filled from the request
        """
        namespace_id = self._namespace(namespace_id)
        params = {
            "namespaceId": namespace_id,
            "groupName": self._group(group_name),
            "serviceName": service_name,
            "healthyOnly": healthy_only,
            "app": app,
        }
        if self.is_v2:
            params.update({"clusterName": cluster_name, "ip": ip, "port": port})
        else:
            params["clusters"] = cluster_name
        payload = self._response("GET", self._endpoint("instance/list"), params=params)

        if isinstance(payload, dict) and payload:
            instances_list = InstancesList.model_validate(payload)
        else:
            logger.warning(f"Empty instance list body for service {service_name}")
            instances_list = InstancesList(name=join_group_service(params["groupName"], service_name))
        instances_list.namespace_id = namespace_id
        instances_list.service_name = service_name
        if not instances_list.group_name:
            instances_list.group_name = params["groupName"]
        return instances_list

    def send_heartbeat(self, instance: Instance) -> Heartbeat:
        """Send a heartbeat for an ephemeral instance.

        Both versions use ``PUT /v1/ns/instance/beat``.
        """
        group_name = self._group(instance.group_name)
        beat = {
            "serviceName": join_group_service(group_name, instance.service_name),
            "ip": instance.ip,
            "port": instance.port,
            "cluster": instance.identity_params()["clusterName"],
            "weight": instance.weight,
            "metadata": instance.metadata,
            "scheduled": False,
        }
        params = {
            "namespaceId": self._namespace(instance.namespace_id),
            "serviceName": join_group_service(group_name, instance.service_name),
            "groupName": group_name,
            "ephemeral": instance.ephemeral,
            "beat": json.dumps(beat, separators=(",", ":")),
        }
        logger.debug(f"Sending heartbeat for {instance.address} of {instance.service_name}")
        payload = self._response("PUT", HEARTBEAT_ENDPOINT, params=params)
        return Heartbeat.model_validate(payload or {})

    def update_health(self, update_health_instance: UpdateHealthInstance) -> bool:
        """Set the health of a persistent instance (health checks must be off)."""
        logger.info(
            f"Setting health of {update_health_instance.ip}:{update_health_instance.port} "
            f"to {update_health_instance.healthy}"
        )
        result = self._write("PUT", self._endpoint("health/instance"), data=update_health_instance.to_params())
        return self._is_ok(result)

    def batch_update_metadata(
        self,
        instances: Iterable[BaseInstance],
        metadata: Dict[str, str],
        consistency_type: ConsistencyType = ConsistencyType.EPHEMERAL,
    ) -> BatchMetadataResult:
        """Add or overwrite metadata on several instances of one service.

        Raises:
            ValueError: If no instances are given or they span several
                namespaces or services
        """
        return self._batch_metadata("PUT", instances, metadata, consistency_type)

    def batch_delete_metadata(
        self,
        instances: Iterable[BaseInstance],
        metadata: Dict[str, str],
        consistency_type: ConsistencyType = ConsistencyType.EPHEMERAL,
    ) -> BatchMetadataResult:
        """Remove metadata keys from several instances of one service.

        Raises:
            ValueError: If no instances are given or they span several
                namespaces or services
        """
        return self._batch_metadata("DELETE", instances, metadata, consistency_type)

    def _batch_metadata(
        self,
        method: str,
        instances: Iterable[BaseInstance],
        metadata: Dict[str, str],
        consistency_type: ConsistencyType,
    ) -> BatchMetadataResult:
        instances = list(instances)
        if not instances:
            raise ValueError("At least one instance is required")

        first = instances[0]
        namespace_id = self._namespace(first.namespace_id)
        group_name = self._group(first.group_name)
        for instance in instances[1:]:
            if self._namespace(instance.namespace_id) != namespace_id:
                raise ValueError(
                    f"Instances span namespaces '{namespace_id}' and '{self._namespace(instance.namespace_id)}'"
                )
            if (self._group(instance.group_name), instance.service_name) != (group_name, first.service_name):
                raise ValueError(
                    f"Instances span services '{join_group_service(group_name, first.service_name)}' and "
                    f"'{join_group_service(self._group(instance.group_name), instance.service_name)}'"
                )

        params = {
            "namespaceId": namespace_id,
            "serviceName": join_group_service(group_name, first.service_name),
            "consistencyType": ConsistencyType(consistency_type),
            "instances": self._instances_param(instances),
            "metadata": {str(key): str(value) for key, value in metadata.items()},
        }
        logger.info(f"Batch {method} metadata {sorted(params['metadata'])} on {len(instances)} instances")
        if method == "PUT":
            payload = self._write(method, self._endpoint("instance/metadata/batch"), data=params)
        else:
            payload = self._write(method, self._endpoint("instance/metadata/batch"), params=params)
        return BatchMetadataResult.model_validate(payload or {})

    @staticmethod
    def _instances_param(instances: List[BaseInstance]) -> List[Dict[str, Any]]:
        return [
            {
                "ip": instance.ip,
                "port": instance.port,
                "clusterName": instance.identity_params()["clusterName"],
            }
            for instance in instances
        ]
