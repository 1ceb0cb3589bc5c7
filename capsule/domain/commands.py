"""Value objects describing one logical call against the Capsule API and its outcome."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Union


class Verb(str, Enum):
    """HTTP verbs the Capsule API is driven with."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"

    @classmethod
    def coerce(cls, value: Union["Verb", str]) -> "Verb":
        if isinstance(value, Verb):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            raise ValueError(f"Unsupported HTTP verb: {value!r}") from exc


@dataclass(frozen=True)
class JsonPayload:
    """Mapping sent as a JSON body, or as query parameters on GET."""

    data: Mapping[str, Any]

    def __post_init__(self) -> None:
        if not isinstance(self.data, Mapping):
            raise ValueError("JsonPayload requires a mapping.")


@dataclass(frozen=True)
class XmlPayload:
    """Nested mapping sent as an XML document.

    ``root_name`` defaults to the final path segment of the command it is
    sent with.
    """

    data: Mapping[str, Any]
    root_name: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.data, Mapping):
            raise ValueError("XmlPayload requires a mapping.")
        if self.root_name is not None and not str(self.root_name).strip():
            raise ValueError("XmlPayload root_name must be a non-empty string.")


Payload = Union[JsonPayload, XmlPayload]


@dataclass(frozen=True)
class Command:
    """Path, verb and optional payload for one dispatcher call."""

    path: str
    verb: Verb = Verb.GET
    payload: Optional[Payload] = None

    def __post_init__(self) -> None:
        path = str(self.path or "").strip().strip("/")
        if not path:
            raise ValueError("Command path must be a non-empty string.")
        object.__setattr__(self, "path", path)
        object.__setattr__(self, "verb", Verb.coerce(self.verb))
        payload = self.payload
        if payload is not None and not isinstance(payload, (JsonPayload, XmlPayload)):
            # Plain mappings are accepted and treated as JSON.
            payload = JsonPayload(payload)
            object.__setattr__(self, "payload", payload)
        if isinstance(payload, XmlPayload) and self.verb is not Verb.POST:
            raise ValueError(f"{self.verb.value} {path}: XML payloads are only sent with POST.")

    @property
    def last_segment(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def wants_xml(self) -> bool:
        return isinstance(self.payload, XmlPayload)

    @property
    def xml_root(self) -> str:
        if isinstance(self.payload, XmlPayload) and self.payload.root_name:
            return self.payload.root_name
        return self.last_segment

    def __str__(self) -> str:
        return f"{self.verb.value} {self.path}"


@dataclass(frozen=True)
class Success:
    """2xx outcome.

    ``value`` is the created resource id on 201, the decoded body otherwise,
    or ``True`` when the body was empty.
    """

    value: Any
    status_code: int = 200

    ok = True


@dataclass(frozen=True)
class Failure:
    """Non-2xx outcome; the body is kept only for diagnostics."""

    status_code: int
    status_line: str
    context: str = ""
    payload: Any = field(default=None, compare=False)

    ok = False


Outcome = Union[Success, Failure]
