# ABOUTME: Read-only JSON client for bibliographic source APIs.
# ABOUTME: Retries 429 and 5xx, honouring Retry-After; every failure is a SourceFetchError.

import logging
import time
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

import httpx

from bookbridge.errors import SourceFetchError
from bookbridge.throttle import ThrottledClient, retry_after_seconds

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP GET operations against source APIs."""

    def get(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]: ...


def _failure(message: str, url: str, status: int | None) -> SourceFetchError:
    return SourceFetchError(message, {"status": status, "url": url})


class SourceHttpClient(ThrottledClient):
    """GET-only client for public book APIs.

    Sources are read-only, so a throttled (429) or failing (5xx) request is
    tried again: after the server's Retry-After when it sends one, else with
    exponential backoff from retry_delay. Waits are capped at max_retry_wait.
    """

    def __init__(
        self,
        *,
        min_request_interval: float = 0.1,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        max_retry_wait: float = 60.0,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(
            min_request_interval=min_request_interval,
            follow_redirects=True,
            transport=transport,
            sleep=sleep,
        )
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.max_retry_wait = max_retry_wait

    def get(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """GET a JSON document.

        Raises:
            SourceFetchError: details carry the url and the last status, which
                is None when no response arrived.
        """
        attempts = 1 + self.max_retries
        for attempt in range(attempts):
            try:
                response = self._send("GET", url, params=params)
            except httpx.HTTPError as exc:
                raise _failure(f"Request failed: {url}: {exc}", url, None) from exc

            if response.is_success:
                try:
                    return response.json()
                except ValueError as exc:
                    raise _failure(
                        f"Invalid JSON from {url}", url, response.status_code
                    ) from exc

            status = response.status_code
            if status not in _RETRYABLE_STATUS_CODES:
                raise _failure(f"HTTP {status} from {url}", url, status)
            if attempt == attempts - 1:
                break

            wait = self._retry_wait(response, attempt)
            logger.warning(
                "HTTP %d from %s, retrying in %.1fs (%d of %d)",
                status,
                url,
                wait,
                attempt + 1,
                self.max_retries,
            )
            self._sleep(wait)

        raise _failure(
            f"HTTP {response.status_code} from {url} after {attempts} attempts",
            url,
            response.status_code,
        )

    def _retry_wait(self, response: httpx.Response, attempt: int) -> float:
        requested = retry_after_seconds(response) if response.status_code == 429 else None
        wait = requested if requested is not None else self.retry_delay * (2**attempt)
        return min(wait, self.max_retry_wait)
