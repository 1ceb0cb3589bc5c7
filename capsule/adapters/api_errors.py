"""Typed failures raised by the Capsule adapters.

HTTP-level failures (non-2xx) are normally reported as ``Failure`` values by
the dispatcher. The classes here are raised for transport and decoding
problems, and by ``raise_for_failure`` for callers that prefer exceptions.
"""

from __future__ import annotations

from typing import Any, Optional


class ApiError(RuntimeError):
    """Base class for Capsule API failures."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.hint = hint
        self.payload = payload
        self.context = context


class ApiClientError(ApiError):
    """HTTP 4xx from the Capsule API."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            status=status,
            code=code,
            hint=hint,
            payload=payload,
            context=context,
        )


class ApiServerError(ApiError):
    """HTTP 5xx from the Capsule API."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message, status=status, payload=payload, context=context)


class ApiTransportError(ApiError):
    """Connection, TLS or other transport failure; no response to interpret."""

    def __init__(self, message: str, *, context: Optional[str] = None) -> None:
        super().__init__(message, context=context)


class ApiTimeoutError(ApiTransportError):
    """The transport gave up waiting for the server."""


class ApiDecodeError(ApiError):
    """A 2xx response carried a body that could not be decoded."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message, status=status, payload=payload, context=context)


def parse_error_payload(resp: Any) -> Any:
    """Best-effort extraction of an error body without raising."""
    try:
        return resp.json()
    except Exception:
        snippet = getattr(resp, "text", "")
        if not snippet:
            return None
        return snippet[:400]


def build_error_message(ctx: str, status_line: str, payload: Any) -> str:
    detail = first_message(payload)
    if detail:
        return f"{ctx}: {detail} (HTTP {status_line})"
    return f"{ctx}: HTTP {status_line}"


def extract_error_code(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        for key in ("code", "error", "errorCode"):
            value = payload.get(key)
            if value is None or isinstance(value, (dict, list)):
                continue
            return str(value)
    return None


def extract_error_hint(payload: Any) -> Optional[str]:
    """Collapse Capsule's ``errors`` list into one line.

    Capsule validation failures look like
    ``{"message": "...", "errors": [{"message": "...", "resource": "person"}]}``.
    """
    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, list):
            parts = [first_message(entry) for entry in errors[:3]]
            joined = "; ".join(part for part in parts if part)
            return joined[:200] or None
    if isinstance(payload, str):
        return payload.strip()[:200] or None
    return None


def first_message(payload: Any) -> Optional[str]:
    if isinstance(payload, str):
        text = payload.strip()
        return text or None
    if isinstance(payload, dict):
        for key in ("message", "error_description", "error", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    if isinstance(payload, list):
        for item in payload:
            candidate = first_message(item)
            if candidate:
                return candidate
    return None


def raise_for_failure(outcome: Any) -> Any:
    """Return ``outcome.value`` on success; raise the matching ``ApiError`` otherwise.

    For callers that prefer exceptions over inspecting ``Failure`` values.
    """
    if getattr(outcome, "ok", False):
        return outcome.value
    status = outcome.status_code
    payload = outcome.payload
    ctx = outcome.context or "capsule"
    message = build_error_message(ctx, outcome.status_line, payload)
    if 400 <= status < 500:
        raise ApiClientError(
            message,
            status=status,
            code=extract_error_code(payload),
            hint=extract_error_hint(payload),
            payload=payload,
            context=ctx,
        )
    if 500 <= status < 600:
        raise ApiServerError(message, status=status, payload=payload, context=ctx)
    raise ApiError(message, status=status, payload=payload, context=ctx)
