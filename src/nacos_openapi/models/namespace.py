"""Nacos Namespace Data Model"""

from typing import Optional, Any

from pydantic import AliasChoices, Field, field_validator

from .base import NacosModel
from ..constants import DEFAULT_NAMESPACE_ID


class Namespace(NacosModel):
    """A Nacos namespace (a.k.a. tenant)."""

    namespace_id: str = Field(
        validation_alias=AliasChoices("namespace", "namespaceId", "namespace_id"),
        description="Namespace id"
    )
    namespace_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("namespaceShowName", "namespaceName", "namespace_name"),
    )
    namespace_desc: Optional[str] = Field(default=None)
    quota: Optional[int] = Field(default=None, description="Max configs allowed")
    config_count: Optional[int] = Field(default=None)
    type: Optional[int] = Field(default=None, description="0 global, 1 default private, 2 custom")

    @field_validator("namespace_id", mode="before")
    @classmethod
    def empty_id_is_public(cls, v: Any) -> Any:
        # v1 servers report the public namespace with an empty id
        if v == "" or v is None:
            return DEFAULT_NAMESPACE_ID
        return v
