"""Domain package exports for commands, outcomes and client settings."""

from .commands import (
    Command,
    Failure,
    JsonPayload,
    Outcome,
    Payload,
    Success,
    Verb,
    XmlPayload,
)
from .settings import ClientConfig, DefinitionsRepresentation

__all__ = [
    "ClientConfig",
    "Command",
    "DefinitionsRepresentation",
    "Failure",
    "JsonPayload",
    "Outcome",
    "Payload",
    "Success",
    "Verb",
    "XmlPayload",
]
