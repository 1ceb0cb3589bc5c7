"""Typed client configuration and its environment loader."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Union

DEFAULT_HOST = "api2.capsulecrm.com"
DEFAULT_USER_AGENT = "python-capsule"

_TRUTHY = {"1", "true", "yes", "on"}


class DefinitionsRepresentation(str, Enum):
    """Shape returned for custom field definitions."""

    HASH = "hash"
    LIST = "list"

    @classmethod
    def coerce(cls, value: Union["DefinitionsRepresentation", str]) -> "DefinitionsRepresentation":
        if isinstance(value, DefinitionsRepresentation):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(
                f"Unknown definitions representation {value!r}; expected 'hash' or 'list'."
            ) from exc


@dataclass(frozen=True)
class ClientConfig:
    """Settings for one Capsule account session.

    Attributes:
        token: Bearer token sent with every request.
        host: API host the requests are addressed to.
        debug: Dump URLs, requests and responses to the ``capsule`` logger.
        definitions_representation: ``hash`` or ``list`` for
            ``custom_fields_definitions`` results.
        request_timeout_s: Per-request timeout; ``None`` keeps the transport default.
        user_agent: ``User-Agent`` header value.
    """

    token: str
    host: str = DEFAULT_HOST
    debug: bool = False
    definitions_representation: DefinitionsRepresentation = DefinitionsRepresentation.HASH
    request_timeout_s: Optional[float] = None
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if not isinstance(self.token, str) or not self.token.strip():
            raise ValueError("ClientConfig requires a non-empty token.")
        host = str(self.host or "").strip().rstrip("/")
        if not host:
            raise ValueError("ClientConfig host must be a non-empty string.")
        object.__setattr__(self, "host", host)
        object.__setattr__(
            self,
            "definitions_representation",
            DefinitionsRepresentation.coerce(self.definitions_representation),
        )
        if self.request_timeout_s is not None and self.request_timeout_s <= 0:
            raise ValueError("request_timeout_s must be positive when set.")

    @property
    def endpoint_uri(self) -> str:
        return f"https://{self.host}/api/v2/"

    def __repr__(self) -> str:
        # Keep the token out of logs and tracebacks.
        return (
            f"ClientConfig(host={self.host!r}, debug={self.debug!r}, "
            f"definitions_representation={self.definitions_representation.value!r})"
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """Build a config from ``CAPSULE_*`` environment variables.

        Recognised: ``CAPSULE_TOKEN`` (required), ``CAPSULE_HOST``,
        ``CAPSULE_DEBUG``, ``CAPSULE_DEFINITIONS_REPRESENTATION`` and
        ``CAPSULE_TIMEOUT_S``.
        """
        env = os.environ if environ is None else environ
        token = (env.get("CAPSULE_TOKEN") or "").strip()
        if not token:
            raise ValueError("CAPSULE_TOKEN is not configured.")

        timeout_raw = (env.get("CAPSULE_TIMEOUT_S") or "").strip()
        try:
            timeout = float(timeout_raw) if timeout_raw else None
        except ValueError as exc:
            raise ValueError(f"CAPSULE_TIMEOUT_S must be a number, got {timeout_raw!r}") from exc

        return cls(
            token=token,
            host=(env.get("CAPSULE_HOST") or "").strip() or DEFAULT_HOST,
            debug=(env.get("CAPSULE_DEBUG") or "").strip().lower() in _TRUTHY,
            definitions_representation=(
                env.get("CAPSULE_DEFINITIONS_REPRESENTATION") or DefinitionsRepresentation.HASH
            ),
            request_timeout_s=timeout,
        )
