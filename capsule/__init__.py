"""Client for the Capsule CRM HTTP API."""

from capsule.adapters.api_errors import (
    ApiClientError,
    ApiDecodeError,
    ApiError,
    ApiServerError,
    ApiTimeoutError,
    ApiTransportError,
    raise_for_failure,
)
from capsule.app.client import CapsuleClient
from capsule.domain import (
    ClientConfig,
    Command,
    DefinitionsRepresentation,
    Failure,
    JsonPayload,
    Success,
    Verb,
    XmlPayload,
)
from capsule.utils.logging import configure_logging

__all__ = [
    "ApiClientError",
    "ApiDecodeError",
    "ApiError",
    "ApiServerError",
    "ApiTimeoutError",
    "ApiTransportError",
    "CapsuleClient",
    "ClientConfig",
    "Command",
    "DefinitionsRepresentation",
    "Failure",
    "JsonPayload",
    "Success",
    "Verb",
    "XmlPayload",
    "configure_logging",
    "raise_for_failure",
]
