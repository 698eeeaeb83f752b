"""
Pytest Configuration and Centralized Fixtures.

Provides reusable doubles for the token exchange:
- Exchange credentials and configuration holders
- A scripted transport that records every request it performs
- An execution context that records submissions
- Canned batchImport responses
"""

import json
from collections.abc import Callable
from typing import Any

import pytest

from fcm_bridge.config import ConfigurationHolder, get_holder
from fcm_bridge.models.domain import (
    APNSEnvironment,
    AppMetadata,
    ExchangeConfig,
    ExchangeRequest,
    TransportReply,
)
from fcm_bridge.services.app_metadata import StaticAppMetadataProvider
from fcm_bridge.services.token_exchange import TokenExchangeService

APNS_TOKEN = "7f3c9a0b5d2e41f68c0a9b7e3d1f5a2c4e6b8d0f1a3c5e7b9d2f4a6c8e0b1d3f"
FCM_TOKEN = "fGx1-example:APA91bH_registration_token"


# ============================================================================
# Test Doubles
# ============================================================================


class ScriptedTransport:
    """Transport double returning a fixed reply and recording requests."""

    def __init__(self, reply: TransportReply | None = None, raises: Exception | None = None):
        self.reply = reply or TransportReply()
        self.raises = raises
        self.requests: list[ExchangeRequest] = []
        self.closed = False

    async def perform(self, request: ExchangeRequest) -> TransportReply:
        self.requests.append(request)
        if self.raises is not None:
            raise self.raises
        return self.reply

    async def close(self) -> None:
        self.closed = True


class RecordingExecutor:
    """Execution context double that records submissions and runs them on demand."""

    def __init__(self, run_immediately: bool = False) -> None:
        self.run_immediately = run_immediately
        self.submissions: list[tuple[Callable[..., Any], tuple[Any, ...]]] = []

    def submit(self, fn: Callable[..., Any], /, *args: Any) -> None:
        self.submissions.append((fn, args))
        if self.run_immediately:
            fn(*args)

    def run_all(self) -> None:
        for fn, args in self.submissions:
            fn(*args)


def _json_reply(document: Any, status_code: int = 200) -> TransportReply:
    return TransportReply(body=json.dumps(document).encode(), status_code=status_code)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def exchange_config() -> ExchangeConfig:
    """Production credentials."""
    return ExchangeConfig(api_key="AAAA-test-server-key", environment=APNSEnvironment.PRODUCTION)


@pytest.fixture
def sandbox_config() -> ExchangeConfig:
    """Development (sandbox) credentials."""
    return ExchangeConfig(api_key="AAAA-test-server-key", environment=APNSEnvironment.DEVELOPMENT)


@pytest.fixture
def holder() -> ConfigurationHolder:
    """An unconfigured holder."""
    return ConfigurationHolder()


@pytest.fixture(autouse=True)
def reset_default_holder():
    """Keep the process-wide holder clean between tests."""
    get_holder().reset()
    yield
    get_holder().reset()


@pytest.fixture
def app_metadata() -> AppMetadata:
    """Host metadata for a sample app."""
    return AppMetadata(
        bundle_identifier="com.example.reporter",
        name="Reporter",
        version="2.1",
        build="45",
    )


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def success_reply() -> TransportReply:
    """batchImport reply carrying one registration token."""
    return _json_reply(
        {"results": [{"apns_token": APNS_TOKEN, "status": "OK", "registration_token": FCM_TOKEN}]}
    )


@pytest.fixture
def transport_factory():
    """Factory for scripted transports."""

    def _create(reply: TransportReply | None = None, raises: Exception | None = None):
        return ScriptedTransport(reply=reply, raises=raises)

    return _create


@pytest.fixture
def service_factory(exchange_config: ExchangeConfig, app_metadata: AppMetadata):
    """Factory for a service wired to a scripted transport."""

    def _create(
        transport: ScriptedTransport,
        config: ExchangeConfig | ConfigurationHolder | None = exchange_config,
        send_user_agent: bool = False,
    ) -> TokenExchangeService:
        return TokenExchangeService(
            config=config,
            transport=transport,
            metadata_provider=StaticAppMetadataProvider(app_metadata),
            send_user_agent=send_user_agent,
        )

    return _create


# ============================================================================
# Shared Test Data
# ============================================================================


@pytest.fixture
def fcm_token() -> str:
    """Registration token returned by success_reply."""
    return FCM_TOKEN


@pytest.fixture
def json_reply():
    """Factory for replies whose body is the JSON encoding of a document."""
    return _json_reply


@pytest.fixture
def recording_executor() -> RecordingExecutor:
    """Execution context that records submissions without running them."""
    return RecordingExecutor()
