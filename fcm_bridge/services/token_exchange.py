"""
APNS to FCM Token Exchange.

Converts an APNS device token into an FCM registration token through the
Instance ID batchImport API:
https://developers.google.com/instance-id/reference/server#create_registration_tokens_for_apns_tokens

Request building and response classification are pure functions; the
service glues them to a transport and delivers exactly one ExchangeOutcome
per call, either as the awaited result of exchange() or through the
callback given to register().
"""

import asyncio
import json
from typing import Any, Callable

from structlog import get_logger

from fcm_bridge.config import ConfigurationHolder, get_holder, settings
from fcm_bridge.exceptions import (
    InvalidResponseError,
    MalformedBodyError,
    MissingBodyError,
    RequestSerializationError,
    TransportFailureError,
    UnexpectedStatusError,
)
from fcm_bridge.models.domain import (
    AppMetadata,
    ExchangeConfig,
    ExchangeOutcome,
    ExchangeRequest,
    TransportReply,
)
from fcm_bridge.observability.logging import log_context, redact_token
from fcm_bridge.observability.metrics import track_exchange
from fcm_bridge.observability.tracing import trace_operation
from fcm_bridge.services.app_metadata import (
    AppMetadataProvider,
    SettingsAppMetadataProvider,
    build_user_agent,
)
from fcm_bridge.services.executors import ExecutionContext
from fcm_bridge.services.transport import HttpxTransport, Transport

logger = get_logger(__name__)

BATCH_IMPORT_URL = "https://iid.googleapis.com/iid/v1:batchImport"

ExchangeCallback = Callable[[ExchangeOutcome], Any]


def build_request(
    config: ExchangeConfig,
    device_token: str,
    metadata: AppMetadata,
    user_agent: str | None = None,
) -> ExchangeRequest:
    """
    Build the batchImport request for a single APNS token.

    The device token is passed through verbatim.

    Raises:
        RequestSerializationError: If the body cannot be encoded as JSON
    """
    headers = {
        "Authorization": f"key={config.api_key}",
        "Content-Type": "application/json",
    }
    if user_agent:
        headers["User-Agent"] = user_agent

    payload = {
        "application": metadata.bundle_identifier,
        "sandbox": config.sandbox,
        "apns_tokens": [device_token],
    }

    try:
        body = json.dumps(payload, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise RequestSerializationError(str(exc)) from exc

    return ExchangeRequest(method="POST", url=BATCH_IMPORT_URL, headers=headers, body=body)


def _decode_text(body: bytes | None) -> str | None:
    if body is None:
        return None
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        return None


def classify_reply(reply: TransportReply) -> ExchangeOutcome:
    """
    Turn a transport reply into an outcome. Checks run in order, first match wins:

    1. transport error          -> TransportFailureError
    2. no status code           -> InvalidResponseError
    3. status outside [200,300) -> UnexpectedStatusError
    4. no body                  -> MissingBodyError
    5. body not a JSON object   -> MalformedBodyError
    6. no results[0] token      -> MalformedBodyError
    """
    if reply.error is not None:
        return ExchangeOutcome.failure(TransportFailureError(reply.error))

    if reply.status_code is None:
        return ExchangeOutcome.failure(InvalidResponseError())

    if not 200 <= reply.status_code < 300:
        return ExchangeOutcome.failure(
            UnexpectedStatusError(reply.status_code, _decode_text(reply.body))
        )

    if not reply.body:
        return ExchangeOutcome.failure(MissingBodyError())

    text = _decode_text(reply.body)
    try:
        document = json.loads(reply.body)
    except (ValueError, RecursionError):
        return ExchangeOutcome.failure(MalformedBodyError(text))
    if not isinstance(document, dict):
        return ExchangeOutcome.failure(MalformedBodyError(text))

    results = document.get("results")
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        return ExchangeOutcome.failure(MalformedBodyError(text))

    token = results[0].get("registration_token")
    if not isinstance(token, str):
        return ExchangeOutcome.failure(MalformedBodyError(text))

    return ExchangeOutcome.success(token)


class TokenExchangeService:
    """
    Exchanges APNS device tokens for FCM registration tokens.

    Usage:
        configure("AAAA...server-key", APNSEnvironment.PRODUCTION)
        service = TokenExchangeService()

        # Await the outcome
        outcome = await service.exchange(apns_token)

        # Or deliver it through a callback, optionally on an executor
        service.register(apns_token, on_token, executor=thread_pool)
    """

    def __init__(
        self,
        config: ExchangeConfig | ConfigurationHolder | None = None,
        transport: Transport | None = None,
        metadata_provider: AppMetadataProvider | None = None,
        send_user_agent: bool | None = None,
    ) -> None:
        if config is None:
            self.holder = get_holder()
        elif isinstance(config, ExchangeConfig):
            self.holder = ConfigurationHolder(config)
        else:
            self.holder = config
        self.transport: Transport = transport or HttpxTransport(timeout=settings.request_timeout)
        self.metadata_provider: AppMetadataProvider = (
            metadata_provider or SettingsAppMetadataProvider(settings)
        )
        self.send_user_agent = (
            settings.send_user_agent if send_user_agent is None else send_user_agent
        )
        self._pending: set[asyncio.Task[ExchangeOutcome]] = set()

    def prepare(self, device_token: str) -> tuple[ExchangeConfig, ExchangeRequest]:
        """
        Build the request for a token against the current configuration.

        Raises:
            ConfigurationError: If the holder has not been configured
            RequestSerializationError: If the body cannot be encoded
        """
        config = self.holder.require()
        metadata = self.metadata_provider.get_metadata()
        user_agent = build_user_agent(metadata) if self.send_user_agent else None
        return config, build_request(config, device_token, metadata, user_agent)

    async def exchange(self, device_token: str) -> ExchangeOutcome:
        """
        Exchange an APNS token and return the outcome.

        Runtime failures are returned inside the outcome, never raised.
        """
        config, request = self.prepare(device_token)
        return await self._perform(config, request, device_token)

    def register(
        self,
        device_token: str,
        callback: ExchangeCallback,
        executor: ExecutionContext | None = None,
    ) -> asyncio.Task[ExchangeOutcome]:
        """
        Start an exchange and deliver its outcome to callback exactly once.

        Must be called with a running event loop. Returns immediately; the
        request is built before returning, so configuration errors raise here
        and nothing is sent.

        Args:
            device_token: APNS token string as received by the app
            callback: Receives the ExchangeOutcome
            executor: Where to run callback; defaults to the completing task
        """
        config, request = self.prepare(device_token)
        task = asyncio.get_running_loop().create_task(
            self._deliver(config, request, device_token, callback, executor)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _perform(
        self, config: ExchangeConfig, request: ExchangeRequest, device_token: str
    ) -> ExchangeOutcome:
        environment = config.environment.value
        with log_context(environment=environment, token_suffix=redact_token(device_token)):
            logger.info("fcm_token_exchange_started")

            with (
                track_exchange(environment) as tracker,
                trace_operation("fcm_token_exchange", sandbox=config.sandbox) as span,
            ):
                try:
                    reply = await self.transport.perform(request)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.exception("fcm_transport_raised")
                    reply = TransportReply(error=exc)

                outcome = classify_reply(reply)
                tracker.set_outcome(outcome.label)
                span.set_attribute("outcome", outcome.label)

            if outcome.ok:
                logger.info(
                    "fcm_token_exchange_completed",
                    fcm_token_suffix=redact_token(outcome.token or ""),
                )
            else:
                logger.warning(
                    "fcm_token_exchange_failed",
                    outcome=outcome.label,
                    error=str(outcome.error),
                )
        return outcome

    async def _deliver(
        self,
        config: ExchangeConfig,
        request: ExchangeRequest,
        device_token: str,
        callback: ExchangeCallback,
        executor: ExecutionContext | None,
    ) -> ExchangeOutcome:
        outcome = await self._perform(config, request, device_token)
        if executor is not None:
            try:
                executor.submit(_invoke_callback, callback, outcome)
            except Exception:
                logger.exception("fcm_exchange_callback_submit_failed", outcome=outcome.label)
        else:
            _invoke_callback(callback, outcome)
        return outcome

    async def close(self) -> None:
        """Close the transport."""
        await self.transport.close()

    async def __aenter__(self) -> "TokenExchangeService":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


def _invoke_callback(callback: ExchangeCallback, outcome: ExchangeOutcome) -> None:
    try:
        callback(outcome)
    except Exception:
        logger.exception("fcm_exchange_callback_failed", outcome=outcome.label)
