from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from capsule.domain.commands import Verb
from capsule.domain.ports import Definitions, DefinitionsCachePort, DispatcherPort, EntityName
from capsule.domain.settings import DefinitionsRepresentation

_log = logging.getLogger(__name__)


def reshape_definitions(
    definitions: List[Dict[str, Any]], representation: DefinitionsRepresentation
) -> Definitions:
    """Key definitions by ``name`` in hash mode; keep the raw list otherwise.

    In hash mode ``name`` is removed from each entry. The decoded entries are
    copied, not mutated.
    """
    if representation is DefinitionsRepresentation.LIST:
        return definitions

    by_name: Dict[str, Dict[str, Any]] = {}
    for entry in definitions:
        if not isinstance(entry, dict) or "name" not in entry:
            _log.debug("Skipping unnamed custom field definition: %r", entry)
            continue
        rest = dict(entry)
        name = rest.pop("name")
        by_name[str(name)] = rest
    return by_name


@dataclass
class FetchCustomFieldDefinitions:
    """Custom field definitions for an entity, served from the cache when allowed."""

    dispatcher: DispatcherPort
    cache: DefinitionsCachePort
    representation: DefinitionsRepresentation = DefinitionsRepresentation.HASH

    def __call__(self, entity: EntityName, use_cache: bool = True) -> Optional[Definitions]:
        entity = str(entity or "").strip()
        if not entity:
            raise ValueError("Entity must be a non-empty string.")
        return self.cache.fetch_through(entity, lambda: self._fetch(entity), use_cache=use_cache)

    def _fetch(self, entity: EntityName) -> Optional[Definitions]:
        outcome = self.dispatcher.talk(f"{entity}/fields/definitions", Verb.GET)
        if not outcome.ok:
            return None
        body = outcome.value
        definitions = body.get("definitions") if isinstance(body, dict) else None
        if not isinstance(definitions, list):
            _log.warning("No definitions list in response for %s", entity)
            return None
        return reshape_definitions(definitions, self.representation)
