# ABOUTME: Error taxonomy for the reconciliation engine and its collaborators.
# ABOUTME: Field-level errors are recovered locally; destination errors reach the caller.

from typing import Any


class BookBridgeError(Exception):
    """Base exception for bookbridge errors.

    Carries an optional details dict so callers can render context
    (field names, HTTP status, service diagnostics) without parsing messages.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class MappingUnavailable(BookBridgeError):
    """No target property is mapped for a semantic field."""

    def __init__(self, field: str) -> None:
        super().__init__(f"No property mapped for field {field!r}", {"field": field})
        self.field = field


class CoercionRejected(BookBridgeError):
    """A value cannot be shaped into the payload a property kind requires."""

    def __init__(self, kind: str, value: Any, reason: str) -> None:
        super().__init__(f"Cannot coerce value to {kind}: {reason}", {"kind": kind})
        self.kind = kind
        self.value = value
        self.reason = reason


class DateUnresolvable(CoercionRejected):
    """No calendar date or year could be recovered from the input."""

    def __init__(self, raw: Any) -> None:
        super().__init__("date", raw, f"no date or year in {raw!r}")
        self.raw = raw


class SourceFetchError(BookBridgeError):
    """Raised when a request to a bibliographic source fails."""


class DestinationError(BookBridgeError):
    """A call to the destination database service failed.

    status_code is None when the request never produced a response.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = dict(details or {})
        if status_code is not None:
            merged.setdefault("status", status_code)
        super().__init__(message, merged)
        self.status_code = status_code


class DestinationAuthError(DestinationError):
    """The destination rejected the credential (expired, revoked or missing)."""


class DestinationNotFound(DestinationError):
    """The record or collection does not exist or is not shared with the integration."""


class DestinationValidationError(DestinationError):
    """The destination rejected the payload.

    diagnostic holds the service's own message so it can be shown verbatim.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
        diagnostic: str | None = None,
    ) -> None:
        super().__init__(message, status_code, details)
        self.diagnostic = diagnostic or message


class SessionStateError(BookBridgeError):
    """A reconciliation session was asked for a transition its state forbids."""
