"""
Exception Classes - Strongly typed exception hierarchy.

Two separate families:
- TokenExchangeError: runtime outcomes of an exchange. Delivered inside an
  ExchangeOutcome, never raised by the exchange itself.
- PreconditionFailure: integration defects (unconfigured credentials, a body
  that cannot be serialized). Raised immediately at the call site.
"""

from enum import Enum


class ExchangeErrorKind(str, Enum):
    """Stable identifiers for exchange failure kinds."""

    TRANSPORT_FAILURE = "transport_failure"
    INVALID_RESPONSE = "invalid_response"
    UNEXPECTED_STATUS = "unexpected_status"
    MISSING_BODY = "missing_body"
    MALFORMED_BODY = "malformed_body"


class TokenExchangeError(Exception):
    """Base exception for all token exchange outcomes."""

    kind: ExchangeErrorKind


class TransportFailureError(TokenExchangeError):
    """Raised when the transport could not complete the request."""

    kind = ExchangeErrorKind.TRANSPORT_FAILURE

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Transport failure: {cause!r}")


class InvalidResponseError(TokenExchangeError):
    """Raised when the response carries no HTTP status code."""

    kind = ExchangeErrorKind.INVALID_RESPONSE

    def __init__(self) -> None:
        super().__init__("Invalid response: no HTTP status code")


class UnexpectedStatusError(TokenExchangeError):
    """Raised when the HTTP status is outside the 2xx range."""

    kind = ExchangeErrorKind.UNEXPECTED_STATUS

    def __init__(self, status_code: int, body: str | None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Unexpected status {status_code}: {body}")


class MissingBodyError(TokenExchangeError):
    """Raised when a successful response has no body."""

    kind = ExchangeErrorKind.MISSING_BODY

    def __init__(self) -> None:
        super().__init__("Missing response body")


class MalformedBodyError(TokenExchangeError):
    """Raised when the body is not JSON or lacks results[0].registration_token."""

    kind = ExchangeErrorKind.MALFORMED_BODY

    def __init__(self, body: str | None) -> None:
        self.body = body
        super().__init__(f"Malformed response body: {body}")


class PreconditionFailure(Exception):
    """Base exception for integration defects that must fail loudly."""

    pass


class ConfigurationError(PreconditionFailure):
    """Raised when critical configuration is missing or invalid."""

    pass


class RequestSerializationError(PreconditionFailure):
    """Raised when the request body cannot be serialized."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Request serialization failed: {message}")
