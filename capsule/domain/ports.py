from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol, Union

from capsule.domain.commands import Command, Outcome, Payload, Verb

PartyId = Union[int, str]
EntityName = str
Definitions = Union[Dict[str, Dict[str, Any]], List[Dict[str, Any]]]


# ---- Ports (Hexagonal boundaries) ----
class DispatcherPort(Protocol):
    """Sends one command to the Capsule API and classifies the response."""

    last_error: Optional[str]

    def send(self, command: Command) -> Outcome: ...
    def talk(
        self, path: str, verb: Union[Verb, str] = Verb.GET, payload: Optional[Payload] = None
    ) -> Outcome: ...


class DefinitionsCachePort(Protocol):
    """Per-client store of custom field definitions keyed by entity name."""

    def get(self, entity: EntityName) -> Optional[Definitions]: ...
    def put(self, entity: EntityName, definitions: Definitions) -> None: ...
    def discard(self, entity: EntityName) -> bool: ...
    def fetch_through(
        self,
        entity: EntityName,
        fetch: Callable[[], Optional[Definitions]],
        *,
        use_cache: bool = True,
    ) -> Optional[Definitions]: ...
