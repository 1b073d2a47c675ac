"""HTTP client for the test tracking server."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from . import __version__
from .config import validate_api_key
from .errors import TransportError

logger = logging.getLogger(__name__)

TEST_DATA_PATH = "/api/test_data"
LOAD_PATH = "/api/load"
GET_TIMEOUT = 30.0
POST_TIMEOUT = 60.0
USER_AGENT = f"checktests/{__version__}"

STATUS_MESSAGES = {
    401: "Invalid API key. Please check your API key.",
    403: "Access denied. Please check your API key permissions.",
    404: "API endpoint not found. Please check the server URL.",
    422: "Invalid data format.",
    429: "Rate limit exceeded. Please try again later.",
    500: "Server error. Please try again later.",
    502: "Service temporarily unavailable. Please try again later.",
    503: "Service unavailable. Please try again later.",
    504: "Service temporarily unavailable. Please try again later.",
}


class ServerError(TransportError):
    """A 5xx response; retried."""


def describe_status(response: httpx.Response) -> str:
    status = response.status_code
    body = response.text
    message = STATUS_MESSAGES.get(status)
    if message is None:
        return f"HTTP {status}: {body or 'Unknown error'}"
    if status == 422 and body:
        return f"HTTP {status}: {message} Server response: {body}"
    return f"HTTP {status}: {message}"


class TestomatClient:
    """Synchronous client for the tracking server's test endpoints.

    Network errors and 5xx responses are retried with exponential backoff;
    any 4xx response fails immediately.
    """

    __test__ = False

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        http: httpx.Client | None = None,
        max_attempts: int = 3,
        backoff: float = 1.0,
    ):
        """
        Args:
            base_url: Server root, e.g. ``https://app.testomat.io``.
            api_key: Project API key (``tstmt_...``).
            http: Client to send requests with; one is created if omitted.
            max_attempts: Attempts per request, including the first.
            backoff: Multiplier for the exponential wait between attempts.
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.http = http if http is not None else httpx.Client(follow_redirects=True)
        self.max_attempts = max_attempts
        self.backoff = backoff

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> TestomatClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def fetch_test_data(self) -> str:
        """
        Fetch the key -> marker listing for the project.

        Raises:
            ConfigurationError: If the API key is invalid.
            TransportError: If the request fails.
        """
        api_key = validate_api_key(self.api_key)
        response = self._send(
            "GET",
            TEST_DATA_PATH,
            params={"api_key": api_key},
            headers={"Accept": "application/json"},
            timeout=GET_TIMEOUT,
        )
        return response.text

    def load_tests(self, payload: dict[str, Any]) -> None:
        """
        Upload exported tests.

        Raises:
            TransportError: If the request fails.
        """
        self._send(
            "POST",
            LOAD_PATH,
            params={"api_key": self.api_key or ""},
            json=payload,
            headers={"User-Agent": USER_AGENT},
            timeout=POST_TIMEOUT,
        )

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        retrying = Retrying(
            retry=retry_if_exception_type((ServerError, httpx.TransportError)),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff, max=10),
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            return retrying(self._request, method, self.base_url + path, **kwargs)
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timed out after {self.max_attempts} attempts. "
                "The server might be busy."
            ) from e
        except httpx.ConnectError as e:
            raise TransportError(
                "Cannot connect to the server. Please check your internet connection."
            ) from e
        except httpx.TransportError as e:
            raise TransportError(f"Network error occurred: {e}") from e

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        response = self.http.request(method, url, **kwargs)
        if response.is_success:
            return response
        message = describe_status(response)
        if response.status_code >= 500:
            raise ServerError(message, response.status_code)
        raise TransportError(message, response.status_code)


def _log_retry(state: RetryCallState) -> None:
    wait = state.next_action.sleep if state.next_action else 0
    logger.warning(
        "Attempt %d failed, retrying in %.1fs...", state.attempt_number, wait
    )
