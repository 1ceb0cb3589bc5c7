from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterator, Optional

from capsule.domain.ports import Definitions, DefinitionsCachePort, EntityName


class DefinitionsCache(DefinitionsCachePort):
    """In-memory custom field definitions keyed by entity name.

    Entries never expire; they are dropped only when a caller bypasses the
    cache. ``fetch_through`` serialises callers per entity, so one entity is
    never fetched twice concurrently while a slow fetch for one entity leaves
    the others free.
    """

    def __init__(self) -> None:
        self._entries: Dict[EntityName, Definitions] = {}
        self._lock = threading.RLock()
        self._entity_locks: Dict[EntityName, threading.RLock] = {}
        self._log = logging.getLogger(__name__)

    def get(self, entity: EntityName) -> Optional[Definitions]:
        with self._lock:
            return self._entries.get(entity)

    def put(self, entity: EntityName, definitions: Definitions) -> None:
        with self._lock:
            self._entries[entity] = definitions

    def discard(self, entity: EntityName) -> bool:
        with self._lock:
            return self._entries.pop(entity, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def fetch_through(
        self,
        entity: EntityName,
        fetch: Callable[[], Optional[Definitions]],
        *,
        use_cache: bool = True,
    ) -> Optional[Definitions]:
        """Return cached definitions for ``entity`` or fetch them.

        With ``use_cache`` false any existing entry is dropped first and the
        fresh result is returned without being stored. A ``None`` result from
        ``fetch`` (failed request) is never stored.
        """
        with self._entity_lock(entity):
            with self._lock:
                if entity in self._entries:
                    if use_cache:
                        return self._entries[entity]
                    del self._entries[entity]
                    self._log.debug("Dropped cached definitions for %s", entity)

            definitions = fetch()
            if use_cache and definitions is not None:
                with self._lock:
                    self._entries[entity] = definitions
            return definitions

    def _entity_lock(self, entity: EntityName) -> threading.RLock:
        with self._lock:
            return self._entity_locks.setdefault(entity, threading.RLock())

    def __contains__(self, entity: object) -> bool:
        with self._lock:
            return entity in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[EntityName]:
        with self._lock:
            return iter(list(self._entries))
