"""
Domain Models - Immutable dataclasses for the token exchange.

NO DICTIONARIES - All data structures are strongly typed immutable dataclasses.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, cast

from fcm_bridge.exceptions import TokenExchangeError

NOT_SET = "(not set)"


class APNSEnvironment(str, Enum):
    """APNS environment the device token was issued for."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


@dataclass(frozen=True)
class ExchangeConfig:
    """Credentials needed to call the batchImport endpoint."""

    api_key: str
    environment: APNSEnvironment

    @property
    def sandbox(self) -> bool:
        """True iff tokens come from the APNS development environment."""
        return self.environment == APNSEnvironment.DEVELOPMENT


@dataclass(frozen=True)
class AppMetadata:
    """Host application metadata snapshot."""

    bundle_identifier: str = NOT_SET
    name: str = NOT_SET
    version: str = NOT_SET
    build: str = NOT_SET


@dataclass(frozen=True)
class ExchangeRequest:
    """One outbound batchImport request, immutable once built."""

    method: str
    url: str
    headers: Mapping[str, str] = field(hash=False)
    body: bytes

    def __post_init__(self) -> None:
        """Freeze headers against later mutation of the caller's dict."""
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def payload(self) -> dict[str, Any]:
        """Decoded JSON body."""
        result: dict[str, Any] = json.loads(self.body)
        return result


@dataclass(frozen=True)
class TransportReply:
    """What the transport hands back on completion: (body, status, error)."""

    body: bytes | None = None
    status_code: int | None = None
    error: BaseException | None = None


@dataclass(frozen=True)
class ExchangeOutcome:
    """Result of one exchange: exactly one of token or error is set."""

    token: str | None = None
    error: TokenExchangeError | None = None

    def __post_init__(self) -> None:
        """Validate that exactly one side is populated."""
        if (self.token is None) == (self.error is None):
            raise ValueError("ExchangeOutcome requires exactly one of token or error")

    @classmethod
    def success(cls, token: str) -> "ExchangeOutcome":
        return cls(token=token)

    @classmethod
    def failure(cls, error: TokenExchangeError) -> "ExchangeOutcome":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def label(self) -> str:
        """Short outcome label for logs and metrics."""
        if self.error is None:
            return "success"
        return self.error.kind.value

    def unwrap(self) -> str:
        """Return the token or raise the carried error."""
        if self.error is not None:
            raise self.error
        return cast(str, self.token)
