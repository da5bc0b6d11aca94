"""Nacos OpenAPI HTTP Transport

requests based transport for the Nacos OpenAPI with added features:
- Optional token bucket rate limiting
- Login and proactive access token refresh
- Failover across the configured server addresses
- Standardized error handling
"""

import threading
import logging
from typing import Optional, Any, Dict
from datetime import datetime, timedelta

import requests
from requests.adapters import HTTPAdapter

from .config import NacosClientConfig
from .models.auth import Authentication
from .utils.rate_limit import RateLimiter
from .utils.errors import (
    handle_http_error,
    AuthenticationError,
    ConfigurationError,
    PermissionError,
    ServerError,
)
from .utils.params import render_params

logger = logging.getLogger(__name__)

LOGIN_ENDPOINT = "/v1/auth/login"

ACCESS_TOKEN_PARAMETER = "accessToken"


class OpenApiHttpClient:
    """HTTP client for one Nacos cluster.

    Every request goes through ``request()``, which:
    - waits on the rate limiter (when configured)
    - logs in / refreshes the access token before it expires
    - tries each server address in turn on connection failures
    - converts non-2xx responses into NacosError subclasses
    """

    # Refresh when less than 5 minutes remain (or 10% of a shorter ttl)
    TOKEN_REFRESH_THRESHOLD = timedelta(minutes=5)

    def __init__(self, config: NacosClientConfig, session: Optional[requests.Session] = None):
        """Initialize the transport.

        Args:
            config: Client configuration
            session: Optional pre-built session (mainly for tests)
        """
        self.config = config
        self._addresses = config.server_addresses
        self._address_index = 0

        self.session = session or self._create_session(config)

        self.rate_limiter: Optional[RateLimiter] = None
        if config.requests_per_second:
            self.rate_limiter = RateLimiter(requests_per_second=config.requests_per_second)
            logger.info(f"Initialized rate limiter at {config.requests_per_second} req/sec")

        self._token_lock = threading.Lock()
        self._authentication: Optional[Authentication] = None
        self._token_expiry: Optional[datetime] = None

        logger.info(
            f"Initialized Nacos OpenAPI client for {', '.join(self._addresses)} "
            f"(context path: /{config.context_path}, SSL verify: {config.verify_ssl})"
        )

    @staticmethod
    def _create_session(config: NacosClientConfig) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(max_retries=config.max_retries)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update({
            "Accept": "application/json, text/plain, */*",
            "User-Agent": "nacos-openapi-python",
        })
        return session

    def base_url(self, address: str) -> str:
        context_path = f"/{self.config.context_path}" if self.config.context_path else ""
        return f"{self.config.scheme}://{address}{context_path}"

    # --- Authentication ---

    @property
    def authentication(self) -> Optional[Authentication]:
        return self._authentication

    @property
    def access_token(self) -> Optional[str]:
        return self._authentication.access_token if self._authentication else None

    def authenticate(self, username: Optional[str] = None, password: Optional[str] = None) -> Authentication:
        """Log in and keep the returned access token for later requests.

        Args:
            username: User name, defaults to the configured one
            password: Password, defaults to the configured one

        Returns:
            The Authentication returned by the server

        Raises:
            ConfigurationError: If no credentials are given or configured
            AuthenticationError: If the server rejects the credentials
        """
        username = username or self.config.username
        password = password if password is not None else self.config.password
        if not username or password is None:
            raise ConfigurationError("Username and password are required to authenticate")

        with self._token_lock:
            return self._login(username, password)

    def _login(self, username: str, password: str) -> Authentication:
        try:
            body = self._send(
                "POST",
                LOGIN_ENDPOINT,
                data={"username": username, "password": password},
                authenticate=False,
            )
        except AuthenticationError:
            logger.error(f"Nacos login failed for user '{username}'")
            raise

        if not body:
            raise AuthenticationError(
                f"Empty login response for user '{username}'",
                details={"username": username}
            )
        authentication = Authentication.model_validate_json(body)
        self._authentication = authentication
        self._token_expiry = datetime.now() + timedelta(seconds=authentication.token_ttl)
        logger.info(f"Obtained Nacos access token for '{username}', expires at {self._token_expiry}")
        return authentication

    def _refresh_threshold(self) -> timedelta:
        if self._authentication is None:
            return self.TOKEN_REFRESH_THRESHOLD
        ttl = timedelta(seconds=self._authentication.token_ttl)
        return min(self.TOKEN_REFRESH_THRESHOLD, ttl / 10)

    def _ensure_valid_token(self) -> None:
        """Log in when credentials are configured and the token is missing or expiring."""
        if not self.config.has_credentials:
            return

        with self._token_lock:
            if self._token_expiry is not None:
                time_remaining = self._token_expiry - datetime.now()
                if time_remaining >= self._refresh_threshold():
                    return
                logger.info(
                    f"Access token expires in {time_remaining.total_seconds():.0f}s, "
                    f"refreshing proactively..."
                )
            self._login(self.config.username, self.config.password)

    def invalidate_token(self) -> None:
        """Forget the current token so the next request logs in again."""
        with self._token_lock:
            self._authentication = None
            self._token_expiry = None

    # --- Requests ---

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        authenticate: bool = True,
    ) -> Optional[str]:
        """Make a request against the Nacos OpenAPI.

        Args:
            method: HTTP method
            endpoint: Path below the context path, e.g. ``/v2/cs/config``
            params: Query parameters (``None`` values are dropped)
            data: Form parameters (``None`` values are dropped)
            headers: Extra headers
            timeout: Read timeout override in seconds
            authenticate: Whether to attach the access token

        Returns:
            Response body text, or None for an empty body

        Raises:
            NacosError: On API errors (with appropriate subclass)
        """
        if self.rate_limiter is not None:
            self.rate_limiter.acquire()

        if authenticate:
            self._ensure_valid_token()

        try:
            return self._send(method, endpoint, params, data, headers, timeout, authenticate)
        except (AuthenticationError, PermissionError) as e:
            # token revoked or expired server side: log in once more and retry.
            # Nacos answers 403 "token expired!" / "token invalid!" for those.
            if not (authenticate and self.config.has_credentials and self._authentication):
                raise
            if isinstance(e, PermissionError) and "token" not in e.message.lower():
                raise
            logger.warning("Access token rejected, logging in again")
            self.invalidate_token()
            self._ensure_valid_token()
            return self._send(method, endpoint, params, data, headers, timeout, authenticate)

    def _send(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        authenticate: bool = True,
    ) -> Optional[str]:
        query = render_params(params)
        if authenticate and self.access_token:
            query[ACCESS_TOKEN_PARAMETER] = self.access_token
        form = render_params(data) if data is not None else None
        request_timeout = (self.config.connect_timeout, timeout or self.config.read_timeout)

        last_error: Optional[requests.ConnectionError] = None
        for attempt in range(len(self._addresses)):
            index = (self._address_index + attempt) % len(self._addresses)
            address = self._addresses[index]
            url = f"{self.base_url(address)}{endpoint}"
            logger.debug(f"{method} {url}")
            try:
                response = self.session.request(
                    method,
                    url,
                    params=query,
                    data=form,
                    headers=headers,
                    timeout=request_timeout,
                    verify=self.config.verify_ssl,
                )
            except requests.ConnectionError as e:
                logger.warning(f"Nacos server {address} unreachable: {e}")
                last_error = e
                continue

            self._address_index = index
            if not 200 <= response.status_code < 300:
                raise handle_http_error(response.status_code, response.text)
            return response.text or None

        raise ServerError(
            f"All Nacos servers unreachable: {', '.join(self._addresses)}",
            details={"error": str(last_error)}
        ) from last_error

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()
        logger.info("Nacos OpenAPI client closed")

    def __enter__(self) -> "OpenApiHttpClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
