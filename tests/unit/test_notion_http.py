# ABOUTME: Unit tests for the Notion HTTP client.
# ABOUTME: Covers headers, JSON bodies, status-to-error mapping, and the no-retry rule.

import json

import httpx
import pytest

from bookbridge.errors import (
    DestinationAuthError,
    DestinationError,
    DestinationNotFound,
    DestinationValidationError,
)
from bookbridge.notion.http import NOTION_VERSION, NotionHttpClient, NotionTransport
from tests.fixtures.notion_responses import (
    NOT_FOUND_ERROR,
    UNAUTHORIZED_ERROR,
    USER_RESPONSE,
    VALIDATION_ERROR,
)


class FakeTransport(httpx.BaseTransport):
    """Returns canned responses in order and keeps every request."""

    def __init__(self, responses: list[httpx.Response] | None = None) -> None:
        self._responses = list(responses or [])
        self.requests: list[httpx.Request] = []

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._responses:
            return self._responses.pop(0)
        return httpx.Response(200, json={"object": "list", "results": []})


class RaisingTransport(httpx.BaseTransport):
    def handle_request(self, request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)


def _client(transport: httpx.BaseTransport) -> NotionHttpClient:
    return NotionHttpClient("secret-token", min_request_interval=0.0, transport=transport)


class TestNotionHttpClient:
    """Tests for NotionHttpClient requests."""

    def test_satisfies_transport_protocol(self) -> None:
        assert isinstance(_client(FakeTransport()), NotionTransport)

    def test_sends_auth_and_version_headers(self) -> None:
        transport = FakeTransport([httpx.Response(200, json=USER_RESPONSE)])

        result = _client(transport).request("GET", "/users/me")

        assert result == USER_RESPONSE
        request = transport.requests[0]
        assert request.headers["authorization"] == "Bearer secret-token"
        assert request.headers["notion-version"] == NOTION_VERSION
        assert str(request.url) == "https://api.notion.com/v1/users/me"

    def test_sends_json_body(self) -> None:
        transport = FakeTransport()

        _client(transport).request("POST", "/search", {"query": "books"})

        request = transport.requests[0]
        assert request.method == "POST"
        assert json.loads(request.content) == {"query": "books"}


class TestErrorMapping:
    """Each failing status maps onto one DestinationError subclass."""

    @pytest.mark.parametrize(
        ("status", "body", "error_type"),
        [
            (401, UNAUTHORIZED_ERROR, DestinationAuthError),
            (403, {"message": "Forbidden"}, DestinationAuthError),
            (404, NOT_FOUND_ERROR, DestinationNotFound),
            (400, VALIDATION_ERROR, DestinationValidationError),
            (409, {"message": "Conflict"}, DestinationValidationError),
            (422, {"message": "Unprocessable"}, DestinationValidationError),
            (500, {"message": "Internal"}, DestinationError),
        ],
    )
    def test_status_maps_to_error(
        self, status: int, body: dict, error_type: type[DestinationError]
    ) -> None:
        transport = FakeTransport([httpx.Response(status, json=body)])

        with pytest.raises(error_type) as exc_info:
            _client(transport).request("GET", "/databases/x")
        assert exc_info.value.status_code == status

    def test_validation_error_carries_service_message(self) -> None:
        transport = FakeTransport([httpx.Response(400, json=VALIDATION_ERROR)])

        with pytest.raises(DestinationValidationError) as exc_info:
            _client(transport).request("POST", "/pages", {"properties": {}})

        assert exc_info.value.diagnostic == "Title is expected to be title."
        assert exc_info.value.details["code"] == "validation_error"

    def test_non_json_error_body(self) -> None:
        transport = FakeTransport([httpx.Response(502, text="Bad Gateway")])

        with pytest.raises(DestinationError, match="Bad Gateway"):
            _client(transport).request("GET", "/users/me")

    def test_server_errors_are_not_retried(self) -> None:
        transport = FakeTransport([httpx.Response(503, json={"message": "Unavailable"})])

        with pytest.raises(DestinationError):
            _client(transport).request("GET", "/users/me")
        assert len(transport.requests) == 1

    def test_transport_failure_has_no_status(self) -> None:
        with pytest.raises(DestinationError) as exc_info:
            _client(RaisingTransport()).request("GET", "/users/me")

        assert exc_info.value.status_code is None
        assert not isinstance(exc_info.value, DestinationNotFound)

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>upstream proxy</html>"),
            httpx.Response(200, json=["not", "an", "object"]),
        ],
    )
    def test_unusable_success_body_is_destination_error(self, response: httpx.Response) -> None:
        """A 2xx that is not a JSON object still surfaces as a DestinationError."""
        with pytest.raises(DestinationError) as exc_info:
            _client(FakeTransport([response])).request("GET", "/users/me")

        assert exc_info.value.status_code == 200
        assert exc_info.value.details["path"] == "/users/me"
