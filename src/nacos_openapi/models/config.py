"""Nacos Config Data Models

Pydantic models for configs, their history and change events.
"""

import re
from typing import Optional, Dict, Any
from datetime import datetime

from pydantic import AliasChoices, Field, field_validator

from .base import NacosModel
from ..constants import (
    DEFAULT_NAMESPACE_ID,
    DEFAULT_GROUP_NAME,
    ConfigType,
    ConfigOperationType,
    ConfigChangeType,
    OpenApiVersion,
)

_NUMERIC_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


def _normalize_timestamp(v: Any) -> Any:
    # "2010-05-04T16:00:00.000+0000" -> "2010-05-04T16:00:00.000+00:00"
    if isinstance(v, str):
        v = v.strip()
        if not v:
            return None
        return _NUMERIC_OFFSET.sub(r"\1:\2", v)
    return v


class NewConfig(NacosModel):
    """A config to be published."""

    namespace_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("namespaceId", "namespace_id", "tenant"),
        description="Namespace id (a.k.a. tenant), public when empty"
    )
    group: Optional[str] = Field(default=None, description="Group, DEFAULT_GROUP when empty")
    data_id: str = Field(description="Data id")
    content: Optional[str] = Field(default=None, description="Config content")
    tag: Optional[str] = Field(default=None, description="Beta/gray tag")
    app_name: Optional[str] = Field(default=None, description="Owning application")
    operator: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("operator", "createUser", "srcUser"),
        description="User recorded as the source of the change"
    )
    tags: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("tags", "configTags", "config_tags"),
        description="Comma separated config tags"
    )
    description: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("description", "desc"),
        description="Free text description"
    )
    use: Optional[str] = Field(default=None)
    effect: Optional[str] = Field(default=None)
    type: Optional[ConfigType] = Field(default=None, description="Content type")
    config_schema: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("configSchema", "config_schema", "schema"),
    )

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower() or None
        return v

    def to_params(self, version: OpenApiVersion) -> Dict[str, Any]:
        """Form parameters of the publish call for the given OpenAPI version."""
        params = {
            "dataId": self.data_id,
            "group": self.group or DEFAULT_GROUP_NAME,
            "content": self.content,
            "tag": self.tag,
            "appName": self.app_name,
            "desc": self.description,
            "use": self.use,
            "effect": self.effect,
            "type": self.type,
            "schema": self.config_schema,
        }
        namespace_id = self.namespace_id or DEFAULT_NAMESPACE_ID
        if version == OpenApiVersion.V2:
            params["namespaceId"] = namespace_id
            params["srcUser"] = self.operator
            params["configTags"] = self.tags
        else:
            # v1 addresses the public namespace with an empty tenant
            params["tenant"] = "" if namespace_id == DEFAULT_NAMESPACE_ID else namespace_id
            params["src_user"] = self.operator
            params["config_tags"] = self.tags
        return params


class Config(NewConfig):
    """A published config as returned by ``GET /v1/cs/configs?show=all``."""

    id: Optional[str] = Field(default=None, description="Row id")
    md5: Optional[str] = Field(default=None, description="MD5 of the content")
    encrypted_data_key: Optional[str] = Field(default=None)
    created_time: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("createdTime", "created_time", "createTime"),
    )
    modified_time: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("modifiedTime", "modified_time", "modifyTime"),
    )
    operator_ip: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("operatorIp", "operator_ip", "createIp"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    @field_validator("created_time", "modified_time", mode="before")
    @classmethod
    def normalize_times(cls, v: Any) -> Any:
        return _normalize_timestamp(v)


class HistoryConfig(NacosModel):
    """One revision from the config history."""

    revision: int = Field(
        validation_alias=AliasChoices("revision", "id", "nid"),
        description="History row id, used as nid"
    )
    last_revision: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("lastRevision", "last_revision", "lastId"),
    )
    namespace_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("namespaceId", "namespace_id", "tenant"),
    )
    group: Optional[str] = Field(default=None)
    data_id: str = Field(validation_alias=AliasChoices("dataId", "data_id"))
    app_name: Optional[str] = Field(default=None)
    md5: Optional[str] = Field(default=None)
    content: Optional[str] = Field(default=None)
    operator: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("operator", "srcUser"),
    )
    operator_ip: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("operatorIp", "operator_ip", "srcIp"),
    )
    operation_type: Optional[ConfigOperationType] = Field(
        default=None,
        validation_alias=AliasChoices("operationType", "operation_type", "opType"),
    )
    created_time: Optional[datetime] = Field(default=None)
    last_modified_time: Optional[datetime] = Field(default=None)

    @field_validator("namespace_id", mode="before")
    @classmethod
    def empty_tenant_is_public(cls, v: Any) -> Any:
        if v == "":
            return DEFAULT_NAMESPACE_ID
        return v

    @field_validator("operation_type", mode="before")
    @classmethod
    def strip_operation_type(cls, v: Any) -> Any:
        # opType is space padded: "I         "
        if isinstance(v, str):
            return v.strip().upper() or None
        return v

    @field_validator("created_time", "last_modified_time", mode="before")
    @classmethod
    def normalize_times(cls, v: Any) -> Any:
        return _normalize_timestamp(v)


class ConfigChangedEvent(NacosModel):
    """Delivered to config listeners when a watched config changes."""

    namespace_id: str = Field(description="Namespace of the changed config")
    group: str = Field(description="Group of the changed config")
    data_id: str = Field(description="Data id of the changed config")
    content: Optional[str] = Field(default=None, description="New content, None when deleted")
    previous_content: Optional[str] = Field(default=None, description="Content before the change")
    type: ConfigChangeType = Field(description="Kind of change")
