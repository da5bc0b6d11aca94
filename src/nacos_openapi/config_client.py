"""Nacos Config Client

Config operations of the Nacos OpenAPI:
- Read, publish and delete configs
- Browse the config history
- Listen to config changes (long polling)
"""

import logging
from typing import Optional, Any, Dict

from .base import OpenApiTemplateClient
from .config_listener import ConfigListenerManager, ConfigChangedListener
from .constants import DEFAULT_PAGE_SIZE, PAGE_NUMBER, ConfigType
from .models.base import Page, validate_page_request
from .models.config import NewConfig, Config, HistoryConfig
from .utils.errors import NotFoundError

logger = logging.getLogger(__name__)

V1_CONFIG_ENDPOINT = "/v1/cs/configs"
V2_CONFIG_ENDPOINT = "/v2/cs/config"

V1_HISTORY_ENDPOINT = "/v1/cs/history"
V1_PREVIOUS_HISTORY_ENDPOINT = "/v1/cs/history/previous"
V2_HISTORY_LIST_ENDPOINT = "/v2/cs/history/list"
V2_HISTORY_ENDPOINT = "/v2/cs/history"
V2_PREVIOUS_HISTORY_ENDPOINT = "/v2/cs/history/previous"


class ConfigClient(OpenApiTemplateClient):
    """Config operations for the configured OpenAPI version."""

    def __init__(self, openapi_client, config):
        super().__init__(openapi_client, config)
        self._listener_manager: Optional[ConfigListenerManager] = None

    def _config_params(self, data_id: str, group: Optional[str], namespace_id: Optional[str]) -> Dict[str, Any]:
        params = {"dataId": data_id, "group": self._group(group)}
        if self.is_v2:
            params["namespaceId"] = self._namespace(namespace_id)
        else:
            params["tenant"] = self._tenant(namespace_id)
        return params

    # ========================================================================
    # Configs
    # ========================================================================

    def get_config_content(
        self,
        data_id: str,
        group: Optional[str] = None,
        namespace_id: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> Optional[str]:
        """Get the raw content of a config.

        Args:
            data_id: Data id
            group: Group, defaults to DEFAULT_GROUP
            namespace_id: Namespace, defaults to public
            tag: Beta/gray tag

        Returns:
            Config content, or None if the config doesn't exist
        """
        params = self._config_params(data_id, group, namespace_id)
        params["tag"] = tag
        logger.debug(f"Getting config content: {params}")
        try:
            if self.is_v2:
                return self._response("GET", V2_CONFIG_ENDPOINT, params=params)
            return self._execute("GET", V1_CONFIG_ENDPOINT, params=params)
        except NotFoundError:
            logger.debug(f"Config {data_id} not found")
            return None

    def get_config(
        self,
        data_id: str,
        group: Optional[str] = None,
        namespace_id: Optional[str] = None,
    ) -> Optional[Config]:
        """Get a config with its metadata.

        Both versions use ``GET /v1/cs/configs?show=all``; v2 has no
        equivalent endpoint.

        Returns:
            Config, or None if the config doesn't exist
        """
        params = {
            "show": "all",
            "dataId": data_id,
            "group": self._group(group),
            "tenant": self._tenant(namespace_id),
        }
        try:
            payload = self._response("GET", V1_CONFIG_ENDPOINT, params=params)
        except NotFoundError:
            return None
        if not payload or not isinstance(payload, dict):
            return None

        config = Config.model_validate(payload)
        if not config.namespace_id:
            config.namespace_id = self._namespace(namespace_id)
        return config

    def publish_config_content(
        self,
        data_id: str,
        content: str,
        group: Optional[str] = None,
        namespace_id: Optional[str] = None,
        tag: Optional[str] = None,
        config_type: Optional[ConfigType] = None,
    ) -> bool:
        """Publish new content for a config, keeping its existing metadata.

        Args:
            data_id: Data id
            content: New content
            group: Group, defaults to DEFAULT_GROUP
            namespace_id: Namespace, defaults to public
            tag: Beta/gray tag
            config_type: Content type, the existing one is kept when omitted

        Returns:
            True if the server accepted the config
        """
        existing = self.get_config(data_id, group=group, namespace_id=namespace_id)
        if existing is None:
            new_config = NewConfig(
                namespace_id=self._namespace(namespace_id),
                group=self._group(group),
                data_id=data_id,
            )
        else:
            logger.debug(f"Updating existing config {data_id} (md5: {existing.md5})")
            new_config = NewConfig.model_validate(
                existing.model_dump(include=set(NewConfig.model_fields))
            )

        updates: Dict[str, Any] = {"content": content}
        if tag is not None:
            updates["tag"] = tag
        if config_type is not None:
            updates["type"] = ConfigType(config_type)
        return self.publish_config(new_config.model_copy(update=updates))

    def publish_config(self, new_config: NewConfig) -> bool:
        """Create or overwrite a config.

        Returns:
            True if the server accepted the config

        Raises:
            ValidationError: If the server rejects the parameters
        """
        endpoint = V2_CONFIG_ENDPOINT if self.is_v2 else V1_CONFIG_ENDPOINT
        logger.info(
            f"Publishing config {new_config.data_id} "
            f"(group: {self._group(new_config.group)}, namespace: {self._namespace(new_config.namespace_id)})"
        )
        result = self._write("POST", endpoint, data=new_config.to_params(self.open_api_version))
        return self._is_ok(result)

    def delete_config(
        self,
        data_id: str,
        group: Optional[str] = None,
        namespace_id: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> bool:
        """Delete a config (or only its tagged variant when ``tag`` is given).

        Returns:
            True if the server reported success
        """
        params = self._config_params(data_id, group, namespace_id)
        params["tag"] = tag
        endpoint = V2_CONFIG_ENDPOINT if self.is_v2 else V1_CONFIG_ENDPOINT
        logger.info(f"Deleting config {data_id}: {params}")
        result = self._write("DELETE", endpoint, params=params)
        return self._is_ok(result)

    # ========================================================================
    # History
    # ========================================================================

    def get_history_configs(
        self,
        data_id: str,
        group: Optional[str] = None,
        namespace_id: Optional[str] = None,
        page_number: int = PAGE_NUMBER,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[HistoryConfig]:
        """List the history of a config, most recent first.

        Raises:
            ValueError: If the page request is out of range
        """
        validate_page_request(page_number, page_size)
        params = self._config_params(data_id, group, namespace_id)
        params.update({"pageNo": page_number, "pageSize": page_size})
        if self.is_v2:
            payload = self._response("GET", V2_HISTORY_LIST_ENDPOINT, params=params)
        else:
            params["search"] = "accurate"
            payload = self._response("GET", V1_HISTORY_ENDPOINT, params=params)

        payload = payload or {}
        return Page[HistoryConfig](
            total_elements=payload.get("totalCount", 0),
            elements=[HistoryConfig.model_validate(item) for item in payload.get("pageItems") or []],
            page_number=payload.get("pageNumber") or page_number,
            page_size=page_size,
            total_pages=payload.get("pagesAvailable"),
        )

    def get_history_config(
        self,
        data_id: str,
        revision: int,
        group: Optional[str] = None,
        namespace_id: Optional[str] = None,
    ) -> Optional[HistoryConfig]:
        """Get one revision from the history of a config.

        Returns:
            HistoryConfig, or None if the revision doesn't exist
        """
        params = self._config_params(data_id, group, namespace_id)
        params["nid"] = revision
        endpoint = V2_HISTORY_ENDPOINT if self.is_v2 else V1_HISTORY_ENDPOINT
        return self._history(endpoint, params)

    def get_previous_history_config(
        self,
        data_id: str,
        id: int,
        group: Optional[str] = None,
        namespace_id: Optional[str] = None,
    ) -> Optional[HistoryConfig]:
        """Get the revision preceding the config with the given row id.

        Args:
            data_id: Data id
            id: Row id of the current config (``Config.id``)
            group: Group, defaults to DEFAULT_GROUP
            namespace_id: Namespace, defaults to public
        """
        params = self._config_params(data_id, group, namespace_id)
        params["id"] = id
        endpoint = V2_PREVIOUS_HISTORY_ENDPOINT if self.is_v2 else V1_PREVIOUS_HISTORY_ENDPOINT
        return self._history(endpoint, params)

    def _history(self, endpoint: str, params: Dict[str, Any]) -> Optional[HistoryConfig]:
        try:
            payload = self._response("GET", endpoint, params=params)
        except NotFoundError:
            return None
        if not payload or not isinstance(payload, dict):
            return None
        return HistoryConfig.model_validate(payload)

    # ========================================================================
    # Listeners
    # ========================================================================

    @property
    def listener_manager(self) -> ConfigListenerManager:
        if self._listener_manager is None:
            self._listener_manager = ConfigListenerManager(self)
        return self._listener_manager

    def add_event_listener(
        self,
        data_id: str,
        listener: ConfigChangedListener,
        group: Optional[str] = None,
        namespace_id: Optional[str] = None,
    ) -> None:
        """Call ``listener`` with a ConfigChangedEvent whenever the config changes.

        The current content is read first, so no event fires for it.
        """
        self.listener_manager.add_listener(self._namespace(namespace_id), self._group(group), data_id, listener)

    def remove_event_listener(
        self,
        data_id: str,
        listener: ConfigChangedListener,
        group: Optional[str] = None,
        namespace_id: Optional[str] = None,
    ) -> None:
        if self._listener_manager is None:
            return
        self._listener_manager.remove_listener(self._namespace(namespace_id), self._group(group), data_id, listener)

    def close(self) -> None:
        """Stop the listener thread, if any."""
        if self._listener_manager is not None:
            self._listener_manager.stop(timeout=0)
