"""Nacos OpenAPI Error Handling Utilities

Exception classes for Nacos OpenAPI operations, plus the helpers that turn
HTTP statuses and v2 result codes into them.
"""

from typing import Optional, Dict, Any


class NacosError(Exception):
    """Base exception for all Nacos client errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize Nacos error.

        Args:
            message: Human-readable error message
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def status_code(self) -> Optional[int]:
        return self.details.get("status_code")

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(NacosError):
    """Raised when the server rejects request parameters.

    Corresponds to HTTP 400 responses and v2 parameter error codes.
    """

    pass


class PermissionError(NacosError):
    """Raised when the user lacks permission for an operation.

    Corresponds to HTTP 403 Forbidden responses.
    """

    pass


class AuthenticationError(NacosError):
    """Raised when login fails or the access token is rejected.

    Corresponds to HTTP 401 Unauthorized responses.
    """

    pass


class NotFoundError(NacosError):
    """Raised when the requested config, service or instance doesn't exist.

    Corresponds to HTTP 404 responses and v2 code 20004.
    """

    pass


class ConflictError(NacosError):
    """Raised when the operation conflicts with current server state.

    Examples:
    - Creating a service or namespace that already exists
    - Deleting a service that still has instances

    Corresponds to HTTP 409 Conflict responses.
    """

    pass


class RateLimitError(NacosError):
    """Raised when the server throttles the client.

    Corresponds to HTTP 429 Too Many Requests responses.
    """

    pass


class ServerError(NacosError):
    """Raised when the Nacos server fails or can't be reached.

    Corresponds to HTTP 5xx responses and v2 codes >= 30000.
    """

    pass


class ConfigurationError(NacosError):
    """Raised when the client configuration is incomplete or invalid."""

    pass


class UnsupportedOperationError(NacosError):
    """Raised when an operation isn't available for the configured OpenAPI version."""

    pass


RESOURCE_NOT_FOUND_CODE = 20004


def handle_http_error(status_code: int, response_text: str) -> NacosError:
    """Convert HTTP error response to appropriate exception.

    Args:
        status_code: HTTP status code
        response_text: Response body text

    Returns:
        Appropriate NacosError subclass instance
    """
    error_map = {
        400: ValidationError,
        401: AuthenticationError,
        403: PermissionError,
        404: NotFoundError,
        409: ConflictError,
        429: RateLimitError,
    }

    if status_code in error_map:
        error_class = error_map[status_code]
        return error_class(
            f"HTTP {status_code}: {response_text}",
            details={"status_code": status_code, "response": response_text}
        )

    if 500 <= status_code < 600:
        return ServerError(
            f"HTTP {status_code}: Server error - {response_text}",
            details={"status_code": status_code, "response": response_text}
        )

    return NacosError(
        f"HTTP {status_code}: Unexpected error - {response_text}",
        details={"status_code": status_code, "response": response_text}
    )


def handle_result_code(code: int, message: Optional[str], data: Any = None) -> NacosError:
    """Convert a v2 result envelope with a non-zero code to an exception.

    Args:
        code: The ``code`` member of the envelope
        message: The ``message`` member of the envelope
        data: The ``data`` member, usually a detail string

    Returns:
        Appropriate NacosError subclass instance
    """
    details = {"code": code, "message": message}
    if data is not None:
        details["data"] = data

    if code == RESOURCE_NOT_FOUND_CODE:
        return NotFoundError(f"Code {code}: {message}", details=details)
    if 10000 <= code < 30000:
        return ValidationError(f"Code {code}: {message}", details=details)
    if code >= 30000:
        return ServerError(f"Code {code}: Server error - {message}", details=details)
    return NacosError(f"Code {code}: Unexpected result - {message}", details=details)
