"""Nacos authentication client."""

import logging
from typing import Optional

from .base import OpenApiTemplateClient
from .models.auth import Authentication

logger = logging.getLogger(__name__)


class AuthenticationClient(OpenApiTemplateClient):
    """Logs in against the Nacos auth plugin."""

    def authenticate(self, username: Optional[str] = None, password: Optional[str] = None) -> Authentication:
        """Log in with the given (or configured) credentials.

        The token is kept by the transport and attached to later requests.

        Raises:
            ConfigurationError: If no credentials are given or configured
            AuthenticationError: If the server rejects the credentials
        """
        logger.info(f"Authenticating against Nacos as '{username or self.config.username}'")
        return self.openapi_client.authenticate(username, password)
