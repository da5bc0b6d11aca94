"""Nacos Authentication Data Model"""

from typing import Optional

from pydantic import Field

from .base import NacosModel


class Authentication(NacosModel):
    """Result of ``POST /v1/auth/login``."""

    access_token: str = Field(description="Token sent as the accessToken query parameter")
    token_ttl: int = Field(default=18000, description="Token time to live in seconds")
    global_admin: bool = Field(default=False, description="Whether the user is the global admin")
    username: Optional[str] = Field(default=None, description="Authenticated user name")
