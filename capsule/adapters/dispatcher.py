# capsule/adapters/dispatcher.py
from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ElT
from typing import Dict, Optional, Union
from urllib.parse import urlsplit

import requests

from capsule.domain.commands import (
    Command,
    Failure,
    JsonPayload,
    Outcome,
    Payload,
    Success,
    Verb,
    XmlPayload,
)
from capsule.domain.settings import ClientConfig

from . import xml_codec
from .api_errors import ApiDecodeError, parse_error_payload
from .http_client import CapsuleSession

CAPSULE_HOST_HEADER = "api.capsulecrm.com"
JSON_MIME = "application/json"
XML_MIME = "text/xml"


class RequestDispatcher:
    """Builds, sends and interprets one Capsule API request per command.

    Wire rules:
      - URL is ``https://{host}/api/v2/{command.path}``.
      - Every request carries ``Host: api.capsulecrm.com`` and a bearer token.
      - GET: payload becomes the query string, never a body.
      - PUT: JSON body, ``Content-Type`` only.
      - POST: ``JsonPayload`` -> JSON body and JSON ``Accept``/``Content-Type``;
        ``XmlPayload`` -> XML body rooted at the last path segment (or the
        payload's ``root_name``) with ``text/xml`` headers. No payload sends an
        empty body with JSON headers.

    Response rules, in order:
      - non-2xx -> ``Failure``; ``last_error`` holds the status line.
      - 201 -> ``Success`` with the last path segment of ``Location``.
      - empty 2xx body -> ``Success(True)``.
      - XML requested -> decoded XML; otherwise decoded JSON.

    Transport failures raise ``ApiTransportError`` from the session and are
    not interpreted here. Undecodable 2xx bodies raise ``ApiDecodeError``.
    """

    def __init__(self, config: ClientConfig, session: CapsuleSession) -> None:
        self.config = config
        self.session = session
        self.last_error: Optional[str] = None
        self._log = logging.getLogger(__name__)

    @property
    def endpoint_uri(self) -> str:
        return self.config.endpoint_uri

    @property
    def has_error(self) -> bool:
        return self.last_error is not None

    def talk(
        self,
        path: str,
        verb: Union[Verb, str] = Verb.GET,
        payload: Optional[Payload] = None,
    ) -> Outcome:
        return self.send(Command(path, Verb.coerce(verb), payload))

    def send(self, command: Command) -> Outcome:
        url = self.endpoint_uri + command.path
        headers = self._base_headers()
        params = None
        body: Optional[bytes] = None

        if command.verb is Verb.GET:
            if isinstance(command.payload, JsonPayload):
                params = dict(command.payload.data)
        elif command.verb is Verb.PUT:
            headers["Content-Type"] = JSON_MIME
            body = self._encode_json(command)
        elif isinstance(command.payload, XmlPayload):
            headers["Accept"] = XML_MIME
            headers["Content-Type"] = XML_MIME
            body = xml_codec.dumps(command.payload.data, command.xml_root)
            self._debug("Encoding as XML under <%s>", command.xml_root)
        else:
            headers["Accept"] = JSON_MIME
            headers["Content-Type"] = JSON_MIME
            body = self._encode_json(command)
            self._debug("Encoding as JSON")

        self._debug("Uri: %s", url)
        resp = self.session.request(
            command.verb.value,
            url,
            params=params,
            data=body,
            headers=headers,
        )
        self._dump_exchange(resp)
        return self._interpret(command, resp)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _base_headers(self) -> Dict[str, str]:
        return {
            "Host": CAPSULE_HOST_HEADER,
            "Authorization": f"Bearer {self.config.token}",
        }

    @staticmethod
    def _encode_json(command: Command) -> bytes:
        if command.payload is None:
            return b""
        return json.dumps(dict(command.payload.data)).encode("utf-8")

    def _interpret(self, command: Command, resp: requests.Response) -> Outcome:
        status = resp.status_code
        status_line = f"{status} {resp.reason or ''}".strip()

        if not 200 <= status < 300:
            self.last_error = status_line
            self._log.warning("%s failed: %s", command, status_line)
            return Failure(
                status_code=status,
                status_line=status_line,
                context=str(command),
                payload=parse_error_payload(resp),
            )

        self._debug("Server said: %s", status_line)

        location = resp.headers.get("Location")
        if status == 201 and location:
            return Success(_trailing_segment(location), status_code=status)

        content = resp.content or b""
        if not content.strip():
            return Success(True, status_code=status)

        if command.wants_xml:
            try:
                return Success(xml_codec.loads(content), status_code=status)
            except ElT.ParseError as exc:
                raise ApiDecodeError(
                    f"{command}: invalid XML response: {exc}",
                    status=status,
                    payload=resp.text[:400],
                    context=str(command),
                ) from exc
        try:
            return Success(resp.json(), status_code=status)
        except ValueError as exc:
            raise ApiDecodeError(
                f"{command}: invalid JSON response",
                status=status,
                payload=resp.text[:400],
                context=str(command),
            ) from exc

    def _debug(self, msg: str, *args: object) -> None:
        if self.config.debug:
            self._log.debug(msg, *args)

    def _dump_exchange(self, resp: requests.Response) -> None:
        if not (self.config.debug and self._log.isEnabledFor(logging.DEBUG)):
            return
        sent = resp.request
        if sent is not None:
            sent_headers = dict(sent.headers)
            if "Authorization" in sent_headers:
                sent_headers["Authorization"] = "Bearer ***"
            self._log.debug(
                "Request: %s %s\n%s\n\n%s",
                sent.method,
                sent.url,
                _format_headers(sent_headers),
                _as_text(sent.body),
            )
        self._log.debug(
            "Response: %s %s\n%s\n\n%s",
            resp.status_code,
            resp.reason,
            _format_headers(dict(resp.headers)),
            resp.text,
        )


def _trailing_segment(location: str) -> str:
    path = urlsplit(location).path or location
    return path.rstrip("/").rsplit("/", 1)[-1]


def _format_headers(headers: Dict[str, str]) -> str:
    return "\n".join(f"{key}: {value}" for key, value in headers.items())


def _as_text(body: Union[bytes, str, None]) -> str:
    if body is None:
        return ""
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return str(body)


__all__ = ["RequestDispatcher", "CAPSULE_HOST_HEADER"]
