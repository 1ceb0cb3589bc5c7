"""Composition root and public facade for the Capsule client.

``CapsuleClient`` owns the HTTP session, the dispatcher and the custom field
definitions cache, and exposes one method per domain operation. Methods
return ``None`` when the API answered with a non-2xx status; the status line
is then available from ``last_error``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from capsule.adapters.definitions_cache import DefinitionsCache
from capsule.adapters.dispatcher import RequestDispatcher
from capsule.adapters.http_client import CapsuleSession, HttpConfig
from capsule.domain.ports import Definitions, DefinitionsCachePort, DispatcherPort, PartyId
from capsule.domain.settings import ClientConfig
from capsule.usecases.custom_fields import FetchCustomFieldDefinitions
from capsule.usecases.parties import (
    AddTag,
    CreateParty,
    FindParty,
    FindPartyByEmail,
    SearchParties,
)
from capsule.utils.logging import apply_debug_preference


class CapsuleClient:
    """Connect to the Capsule API (www.capsulecrm.com).

    Example::

        client = CapsuleClient(ClientConfig(token="xxxx"))
        person_id = client.create_person({"firstName": "Simon", "lastName": "Elliott"})
        client.add_tag(person_id, "customer", "difficult")
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Optional[CapsuleSession] = None,
        dispatcher: Optional[DispatcherPort] = None,
        definitions_cache: Optional[DefinitionsCachePort] = None,
    ) -> None:
        self.config = config
        apply_debug_preference(config.debug)

        self.session = (
            session
            if session is not None
            else CapsuleSession(
                HttpConfig(request_timeout_s=config.request_timeout_s, user_agent=config.user_agent)
            )
        )
        self.dispatcher: DispatcherPort = (
            dispatcher if dispatcher is not None else RequestDispatcher(config, self.session)
        )
        self.definitions_cache: DefinitionsCachePort = (
            definitions_cache if definitions_cache is not None else DefinitionsCache()
        )

        self._search_parties = SearchParties(self.dispatcher)
        self._find_party_by_email = FindPartyByEmail(self.dispatcher)
        self._find_party = FindParty(self.dispatcher)
        self._create_person = CreateParty(self.dispatcher, kind="person")
        self._create_organisation = CreateParty(self.dispatcher, kind="organisation")
        self._add_tag = AddTag(self.dispatcher)
        self._definitions = FetchCustomFieldDefinitions(
            self.dispatcher,
            self.definitions_cache,
            representation=config.definitions_representation,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> "CapsuleClient":
        """Build a client from ``CAPSULE_*`` environment variables."""
        return cls(ClientConfig.from_env(), **kwargs)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def endpoint_uri(self) -> str:
        return self.config.endpoint_uri

    @property
    def last_error(self) -> Optional[str]:
        """Status line of the most recent failed request, if any.

        Overwritten by every failure and kept after later successes.
        """
        return self.dispatcher.last_error

    @property
    def has_error(self) -> bool:
        return self.dispatcher.last_error is not None

    @property
    def is_debug(self) -> bool:
        return self.config.debug

    # ------------------------------------------------------------------
    # Parties
    # ------------------------------------------------------------------
    def search_parties(self, query: str) -> Optional[List[Dict[str, Any]]]:
        """Search parties with ``query``; returns the matching party records."""
        return self._search_parties(query)

    def find_party_by_email(self, email: str) -> Optional[PartyId]:
        return self._find_party_by_email(email)

    def find_party(
        self, party_id: PartyId, options: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Fetch one party; ``options`` become query parameters (e.g. ``embed``)."""
        return self._find_party(party_id, options)

    def create_person(self, data: Mapping[str, Any]) -> Any:
        """Create a person.

        ``data`` is the person body, for example::

            {
                "firstName": "Simon",
                "lastName": "Elliott",
                "title": "Mr",
                "emailAddresses": [{"address": "simon@example.com"}],
            }

        Returns the new party id when Capsule answers 201, otherwise the
        decoded response.
        """
        return self._create_person(data)

    def create_organisation(self, data: Mapping[str, Any]) -> Any:
        """Create an organisation; see ``create_person``."""
        return self._create_organisation(data)

    def add_tag(self, party_id: PartyId, *tags: str) -> None:
        """Tag a party, one request per tag.

        Every tag is attempted even when an earlier one fails.
        """
        self._add_tag(party_id, *tags)

    # ------------------------------------------------------------------
    # Custom fields
    # ------------------------------------------------------------------
    def custom_fields_definitions(self, entity: str, use_cache: bool = True) -> Optional[Definitions]:
        """Definitions of the custom fields for ``entity`` (``person``, ``organisation``...).

        Results are cached per client; pass ``use_cache=False`` to drop the
        cached entry and fetch fresh definitions.
        """
        return self._definitions(entity, use_cache=use_cache)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "CapsuleClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
