"""Nacos OpenAPI Utilities

This package contains shared helpers for the Nacos OpenAPI client.
"""

__all__ = [
    "errors",
    "params",
    "rate_limit",
]
