"""HTTP client for the readclub backend.

Every request:
- carries the bearer token supplied by the token provider (read fresh per call)
- sends and receives JSON
- has a timeout, either the client default or a per-call override
- can be abandoned through a CancelToken

Non-2xx responses are turned into ApiError carrying the server's message.
"""

import logging
import threading
from typing import Any, Callable, Optional

import requests

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."


class ApiError(Exception):
    """Raised when the backend rejects a request."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class AuthenticationError(ApiError):
    """Raised on 401 responses."""

    pass


class NetworkError(ApiError):
    """Raised when the backend could not be reached."""

    pass


class RequestTimeout(NetworkError):
    """Raised when a request exceeds its timeout."""

    pass


class RequestCancelled(ApiError):
    """Raised when a request was cancelled by its caller."""

    pass


class CancelToken:
    """Cooperative cancellation flag shared between a caller and its requests."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelled("Request was cancelled")


class ApiClient:
    """Authenticated JSON client for the REST backend."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 15,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ):
        """Initialize client.

        Args:
            base_url: Backend root, e.g. https://api.example.com
            timeout: Default request timeout in seconds
            token_provider: Returns the current bearer token, or None
            on_unauthorized: Called whenever the backend answers 401
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token_provider = token_provider
        self.on_unauthorized = on_unauthorized
        self._session = requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "User-Agent": "readclub/0.1.0",
        })

    def _headers(self) -> dict:
        headers = {}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
        timeout: Optional[float] = None,
        cancel: Optional[CancelToken] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            RequestCancelled: If cancel was triggered before or during the call
            RequestTimeout: If the request exceeded its timeout
            NetworkError: On connection failures
            AuthenticationError: On 401
            ApiError: On any other non-2xx response
        """
        if cancel:
            cancel.raise_if_cancelled()

        url = f"{self.base_url}{path}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        logger.debug("%s %s params=%s", method, path, params)
        try:
            response = self._session.request(
                method,
                url,
                params=params or None,
                json=json,
                headers=self._headers(),
                timeout=timeout if timeout is not None else self.timeout,
            )
        except requests.exceptions.Timeout:
            raise RequestTimeout("Request timed out")
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Network request failed: {e}")

        # A late response must never reach the caller once it gave up
        if cancel:
            cancel.raise_if_cancelled()

        if not response.ok:
            error = self._error_from_response(response)
            if isinstance(error, AuthenticationError) and self.on_unauthorized:
                self.on_unauthorized()
            raise error

        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            raise ApiError("Invalid JSON in response", status_code=response.status_code)

    def _error_from_response(self, response: requests.Response) -> ApiError:
        """Normalize a non-2xx response into an ApiError."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        code = body.get("error") if isinstance(body.get("error"), str) else None
        message = body.get("message") or code or GENERIC_ERROR_MESSAGE

        logger.debug("HTTP %s: %s", response.status_code, message)
        if response.status_code == 401:
            return AuthenticationError(message, status_code=401, code=code)
        return ApiError(message, status_code=response.status_code, code=code)

    # ========================================================================
    # Verbs
    # ========================================================================

    def get(self, path: str, params: Optional[dict] = None, **kwargs) -> Any:
        return self.request("GET", path, params=params, **kwargs)

    def post(self, path: str, json: Optional[dict] = None, **kwargs) -> Any:
        return self.request("POST", path, json=json or {}, **kwargs)

    def put(self, path: str, json: Optional[dict] = None, **kwargs) -> Any:
        return self.request("PUT", path, json=json or {}, **kwargs)

    def patch(self, path: str, json: Optional[dict] = None, **kwargs) -> Any:
        return self.request("PATCH", path, json=json or {}, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request("DELETE", path, **kwargs)
