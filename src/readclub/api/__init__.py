"""API module for the readclub backend.

Provides the authenticated HTTP client and its error types.
"""

from .client import (
    ApiClient,
    ApiError,
    AuthenticationError,
    CancelToken,
    NetworkError,
    RequestCancelled,
    RequestTimeout,
)

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthenticationError",
    "CancelToken",
    "NetworkError",
    "RequestCancelled",
    "RequestTimeout",
]
