# ABOUTME: HTTP client for the Notion API: auth headers, pinned version, typed errors.
# ABOUTME: Never retries; every failure surfaces as a DestinationError subclass.

import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from bookbridge.errors import (
    DestinationAuthError,
    DestinationError,
    DestinationNotFound,
    DestinationValidationError,
)
from bookbridge.throttle import ThrottledClient

logger = logging.getLogger(__name__)

NOTION_API_BASE = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

_AUTH_STATUS_CODES = {401, 403}
_VALIDATION_STATUS_CODES = {400, 409, 422}


@runtime_checkable
class NotionTransport(Protocol):
    """Protocol for JSON requests against the Notion API."""

    def request(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> dict[str, Any]: ...


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {"message": response.text}
    return body if isinstance(body, dict) else {"message": str(body)}


def raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Translate an error response into the matching DestinationError subclass."""
    if response.is_success:
        return

    body = _error_body(response)
    message = body.get("message") or f"HTTP {response.status_code}"
    details = {"code": body.get("code"), "method": method, "path": path}
    status = response.status_code

    if status in _AUTH_STATUS_CODES:
        raise DestinationAuthError(
            f"Notion rejected the credential: {message}", status, details
        )
    if status == 404:
        raise DestinationNotFound(f"Not found in Notion: {message}", status, details)
    if status in _VALIDATION_STATUS_CODES:
        raise DestinationValidationError(
            f"Notion rejected the request: {message}", status, details, diagnostic=message
        )
    raise DestinationError(f"Notion returned HTTP {status}: {message}", status, details)


class NotionHttpClient(ThrottledClient):
    """JSON client for the Notion REST API.

    Sends the bearer token and the pinned Notion-Version header, and keeps
    requests min_request_interval apart to stay under the API's average rate
    limit. Failed requests are not retried.
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = NOTION_API_BASE,
        notion_version: str = NOTION_VERSION,
        min_request_interval: float = 0.35,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(
            min_request_interval=min_request_interval,
            headers={
                "Authorization": f"Bearer {token}",
                "Notion-Version": notion_version,
                "Content-Type": "application/json",
            },
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    def request(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Send one request and return the parsed JSON body.

        Raises:
            DestinationAuthError: On 401/403.
            DestinationNotFound: On 404.
            DestinationValidationError: On 400/409/422, carrying Notion's message.
            DestinationError: On any other failure, including transport errors
                and success responses whose body is not a JSON object.
        """
        logger.debug("%s %s", method, path)
        try:
            response = self._send(method, path, json=payload)
        except httpx.HTTPError as exc:
            raise DestinationError(
                f"Request to Notion failed: {method} {path}: {exc}",
                details={"method": method, "path": path},
            ) from exc

        raise_for_status(response, method, path)
        try:
            body = response.json()
        except ValueError as exc:
            raise DestinationError(
                f"Notion sent a body that is not JSON for {method} {path}",
                response.status_code,
                {"method": method, "path": path},
            ) from exc
        if not isinstance(body, dict):
            raise DestinationError(
                f"Notion sent an unexpected {type(body).__name__} for {method} {path}",
                response.status_code,
                {"method": method, "path": path},
            )
        return body
