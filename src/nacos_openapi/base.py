"""Shared plumbing of the Nacos OpenAPI sub-clients."""

import json
import logging
from typing import Optional, Any, Dict

import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_fixed

from .config import NacosClientConfig
from .constants import DEFAULT_NAMESPACE_ID, DEFAULT_GROUP_NAME, OpenApiVersion
from .transport import OpenApiHttpClient
from .utils.errors import NacosError, ServerError, UnsupportedOperationError, handle_result_code

logger = logging.getLogger(__name__)

V2_ENDPOINT_PREFIX = "/v2/"

WRITE_ATTEMPTS = 2


def _is_network_failure(error: BaseException) -> bool:
    if isinstance(error, requests.exceptions.Timeout):
        return True
    # transport wraps "every address unreachable" in ServerError
    return isinstance(error, ServerError) and isinstance(error.__cause__, requests.exceptions.ConnectionError)


class OpenApiTemplateClient:
    """Base class of every sub-client.

    Sub-clients describe a call (method, endpoint, parameters) and use
    ``_execute`` for text bodies or ``_response`` for JSON bodies. v2
    endpoints wrap their payload in ``{"code": 0, "message": ..., "data": ...}``;
    ``_response`` unwraps it and raises on non-zero codes.
    """

    # seconds between the two attempts of a write call
    WRITE_RETRY_WAIT = 2

    def __init__(self, openapi_client: OpenApiHttpClient, config: NacosClientConfig):
        self.openapi_client = openapi_client
        self.config = config

    @property
    def open_api_version(self) -> OpenApiVersion:
        return self.config.api_version

    @property
    def is_v2(self) -> bool:
        return self.open_api_version == OpenApiVersion.V2

    def _execute(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Optional[str]:
        return self.openapi_client.request(
            method,
            endpoint,
            params=params,
            data=data,
            headers=headers,
            timeout=timeout,
        )

    def _response(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Execute and decode the JSON body (unwrapping v2 envelopes).

        Returns:
            Decoded payload, or None for an empty body

        Raises:
            NacosError: On API errors or a body that isn't JSON
        """
        body = self._execute(method, endpoint, params, data, headers, timeout)
        if body is None:
            return None
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            # v1 write endpoints answer plain "ok" / "true"
            if not endpoint.startswith(V2_ENDPOINT_PREFIX):
                return body
            raise NacosError(
                f"Invalid JSON from {endpoint}: {e}",
                details={"endpoint": endpoint, "response": body[:200]}
            ) from e

        if endpoint.startswith(V2_ENDPOINT_PREFIX):
            return self._unwrap(payload)
        return payload

    def _write(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """``_response`` for mutating calls, retried once on network failures.

        API errors are never retried. After the last attempt the original
        exception is re-raised.
        """
        @retry(
            stop=stop_after_attempt(WRITE_ATTEMPTS),
            wait=wait_fixed(self.WRITE_RETRY_WAIT),
            retry=retry_if_exception(_is_network_failure),
            reraise=True,
        )
        def write_with_retry():
            return self._response(method, endpoint, params=params, data=data)

        try:
            return write_with_retry()
        except (requests.exceptions.Timeout, ServerError) as e:
            if _is_network_failure(e):
                logger.error(f"Network error on {method} {endpoint} after retry: {e}")
            raise

    @staticmethod
    def _unwrap(payload: Any) -> Any:
        if not isinstance(payload, dict) or "code" not in payload:
            return payload
        code = payload.get("code")
        if code != 0:
            raise handle_result_code(code, payload.get("message"), payload.get("data"))
        return payload.get("data")

    @staticmethod
    def _is_ok(result: Any) -> bool:
        """Whether a write call reported success (``true``, ``"true"`` or ``"ok"``)."""
        if isinstance(result, bool):
            return result
        if isinstance(result, str):
            return result.strip().lower() in ("true", "ok")
        return False

    @staticmethod
    def _namespace(namespace_id: Optional[str]) -> str:
        return namespace_id or DEFAULT_NAMESPACE_ID

    @staticmethod
    def _group(group: Optional[str]) -> str:
        return group or DEFAULT_GROUP_NAME

    @staticmethod
    def _tenant(namespace_id: Optional[str]) -> str:
        """v1 config endpoints address the public namespace as the empty tenant."""
        if not namespace_id or namespace_id == DEFAULT_NAMESPACE_ID:
            return ""
        return namespace_id

    def _require_v2(self, operation: str) -> None:
        if not self.is_v2:
            raise UnsupportedOperationError(
                f"{operation} requires OpenAPI v2",
                details={"api_version": self.open_api_version.value}
            )
