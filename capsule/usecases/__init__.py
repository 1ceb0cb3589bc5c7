"""Use-case layer for the Capsule domain operations.

Each module shapes commands and results around the dispatcher port without
performing transport I/O directly.
"""

from .custom_fields import FetchCustomFieldDefinitions, reshape_definitions
from .parties import AddTag, CreateParty, FindParty, FindPartyByEmail, SearchParties

__all__ = [
    "AddTag",
    "CreateParty",
    "FetchCustomFieldDefinitions",
    "FindParty",
    "FindPartyByEmail",
    "SearchParties",
    "reshape_definitions",
]
