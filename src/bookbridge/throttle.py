# ABOUTME: Shared base for bookbridge's outbound HTTP clients.
# ABOUTME: Owns the httpx.Client, the spacing between requests, and Retry-After parsing.

import time
from collections.abc import Callable
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

USER_AGENT = "bookbridge/0.1.0"


def retry_after_seconds(response: httpx.Response) -> float | None:
    """Seconds a server asked the client to wait before trying again.

    Reads the Retry-After header in either of its forms, delta-seconds or an
    HTTP date. Returns None when the header is missing or unreadable.
    """
    value = response.headers.get("retry-after", "").strip()
    if not value:
        return None
    if value.isdigit():
        return float(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


class ThrottledClient:
    """httpx.Client wrapper that spaces requests at least min_request_interval apart.

    Subclasses decide what a response means: which statuses are errors,
    whether to retry, and which exception to raise.
    """

    def __init__(
        self,
        *,
        min_request_interval: float,
        headers: dict[str, str] | None = None,
        base_url: str = "",
        timeout: float = 30.0,
        follow_redirects: bool = False,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        client_kwargs: dict[str, Any] = {
            "headers": {"User-Agent": USER_AGENT, **(headers or {})},
            "timeout": timeout,
            "follow_redirects": follow_redirects,
        }
        if base_url:
            client_kwargs["base_url"] = base_url
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.Client(**client_kwargs)
        self._min_interval = min_request_interval
        self._sleep = sleep
        self._next_slot: float = 0.0

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Wait for the next free slot, then send. httpx errors propagate."""
        if self._min_interval > 0:
            wait = self._next_slot - time.monotonic()
            if wait > 0:
                self._sleep(wait)
            self._next_slot = time.monotonic() + self._min_interval
        return self._client.request(method, url, **kwargs)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ThrottledClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
