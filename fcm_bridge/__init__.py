"""
fcm-bridge - exchange APNS device tokens for FCM registration tokens.
"""

from fcm_bridge.config import ConfigurationHolder, configure, get_holder
from fcm_bridge.exceptions import (
    ConfigurationError,
    ExchangeErrorKind,
    InvalidResponseError,
    MalformedBodyError,
    MissingBodyError,
    PreconditionFailure,
    RequestSerializationError,
    TokenExchangeError,
    TransportFailureError,
    UnexpectedStatusError,
)
from fcm_bridge.models.domain import APNSEnvironment, AppMetadata, ExchangeConfig, ExchangeOutcome
from fcm_bridge.services.token_exchange import TokenExchangeService

__all__ = [
    "APNSEnvironment",
    "AppMetadata",
    "ConfigurationError",
    "ConfigurationHolder",
    "ExchangeConfig",
    "ExchangeErrorKind",
    "ExchangeOutcome",
    "InvalidResponseError",
    "MalformedBodyError",
    "MissingBodyError",
    "PreconditionFailure",
    "RequestSerializationError",
    "TokenExchangeError",
    "TokenExchangeService",
    "TransportFailureError",
    "UnexpectedStatusError",
    "configure",
    "get_holder",
]
