"""Party use cases: search, lookup, creation and tagging.

Each use case issues its dispatcher call(s) and reshapes the decoded body.
A ``Failure`` from the dispatcher or a body without the expected field
resolves to ``None``; the failure itself stays visible on
``dispatcher.last_error``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

from capsule.domain.commands import JsonPayload, Outcome, Verb
from capsule.domain.ports import DispatcherPort, PartyId

_log = logging.getLogger(__name__)


def _dig(value: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _value(outcome: Outcome) -> Any:
    return outcome.value if outcome.ok else None


@dataclass
class SearchParties:
    dispatcher: DispatcherPort

    def __call__(self, query: str) -> Optional[List[Dict[str, Any]]]:
        outcome = self.dispatcher.talk("parties/search", Verb.GET, JsonPayload({"q": query}))
        return _dig(_value(outcome), "parties")


@dataclass
class FindPartyByEmail:
    """Return the id of the first person registered with ``email``."""

    dispatcher: DispatcherPort

    def __call__(self, email: str) -> Optional[PartyId]:
        outcome = self.dispatcher.talk(
            "party", Verb.GET, JsonPayload({"email": email, "start": 0})
        )
        person = _dig(_value(outcome), "parties", "person")
        # several matches decode as a list of persons
        if isinstance(person, list):
            person = person[0] if person else None
        return _dig(person, "id") or None


@dataclass
class FindParty:
    dispatcher: DispatcherPort

    def __call__(
        self, party_id: PartyId, options: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        payload = JsonPayload(options) if options else None
        outcome = self.dispatcher.talk(f"parties/{party_id}", Verb.GET, payload)
        return _dig(_value(outcome), "party")


@dataclass
class CreateParty:
    """POST ``{kind: data}`` to ``kind``.

    Returns the new party id when Capsule answers 201 with a ``Location``
    header, otherwise the decoded response body.
    """

    dispatcher: DispatcherPort
    kind: str = "person"

    def __call__(self, data: Mapping[str, Any]) -> Any:
        outcome = self.dispatcher.talk(self.kind, Verb.POST, JsonPayload({self.kind: dict(data)}))
        return _value(outcome)


@dataclass
class AddTag:
    """Tag a party, one POST per tag in the given order.

    A failed tag is logged and does not stop the remaining ones. Returns
    the tags that could not be applied.
    """

    dispatcher: DispatcherPort

    def __call__(self, party_id: PartyId, *tags: str) -> List[str]:
        failed: List[str] = []
        for tag in tags:
            outcome = self.dispatcher.talk(
                f"party/{party_id}/tag/{quote(str(tag), safe='')}", Verb.POST
            )
            if not outcome.ok:
                failed.append(tag)
                _log.warning("Tagging party %s with %r failed: %s", party_id, tag, outcome.status_line)
        return failed
