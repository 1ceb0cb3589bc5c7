"""HTTP transport wrapper for the Capsule dispatcher.

A thin layer over ``requests.Session`` that applies the client's timeout
policy, fixed identification headers, and maps ``requests`` transport
exceptions onto the typed ``ApiTransportError`` family.

Dependencies:
    - ``requests`` for network I/O.
    - ``capsule.adapters.api_errors`` for typed transport failures.

Call context:
    - Constructed by ``CapsuleClient`` and handed to ``RequestDispatcher``.
    - Never retries; a failed attempt surfaces to the caller immediately.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests
from requests import exceptions as req_exc

from capsule.adapters.api_errors import ApiTimeoutError, ApiTransportError


@dataclass
class HttpConfig:
    """Transport settings shared by every request of one client.

    Attributes:
        request_timeout_s: Timeout in seconds, or ``None`` for the
            ``requests`` default (wait indefinitely).
        user_agent: ``User-Agent`` header value.
    """
    request_timeout_s: Optional[float] = None
    user_agent: str = "python-capsule"


class CapsuleSession:
    """Long-lived ``requests`` session owned by one client.

    This class is transport-only. Callers build URLs, headers and bodies and
    decide how to interpret the response.
    """

    def __init__(self, cfg: Optional[HttpConfig] = None, session: Optional[requests.Session] = None) -> None:
        """Create the session wrapper.

        Args:
            cfg: Timeout and identification settings.
            session: Optional pre-built ``requests.Session`` (tests inject one
                mounted with ``requests_mock``).
        """
        self.cfg = cfg or HttpConfig()
        self.session = session if session is not None else requests.Session()
        self.session.headers["User-Agent"] = self.cfg.user_agent
        # Accept is set per request by the dispatcher; PUT and GET send none.
        self.session.headers.pop("Accept", None)

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> requests.Response:
        """Send one request and return the raw response.

        Raises:
            ApiTimeoutError: The server did not answer in time.
            ApiTransportError: Connection, TLS or any other ``requests`` failure.
        """
        context = f"{method} {url}"
        try:
            return self.session.request(
                method,
                url,
                params=params,
                data=data,
                headers=headers,
                timeout=timeout or self.cfg.request_timeout_s,
            )
        except req_exc.Timeout as exc:
            raise ApiTimeoutError(f"Timeout contacting {url}", context=context) from exc
        except req_exc.RequestException as exc:
            raise ApiTransportError(f"Transport failure contacting {url}: {exc}", context=context) from exc

    def close(self) -> None:
        self.session.close()


__all__ = ["HttpConfig", "CapsuleSession"]
