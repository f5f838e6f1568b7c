"""
A small query façade over LDAP directories, Active Directory in particular.
"""

from .attributes import AttributeId, AttributeRange, parse_range_attribute
from .connection import DIRECTORY_UNAVAILABLE, RootContext, RootDiscoveryError
from .filters import SearchBy, SearchTarget, build_filter, escape_key
from .query import SearchQuery
from .results import (
    AttributeValue,
    Entry,
    ResultSet,
    get_membership,
    get_scalar,
    get_values,
    normalize,
)
from .searcher import Searcher

__version__ = "1.0.0"

__all__ = [
    "DIRECTORY_UNAVAILABLE",
    "AttributeId",
    "AttributeRange",
    "AttributeValue",
    "Entry",
    "ResultSet",
    "RootContext",
    "RootDiscoveryError",
    "SearchBy",
    "SearchQuery",
    "SearchTarget",
    "Searcher",
    "build_filter",
    "escape_key",
    "get_membership",
    "get_scalar",
    "get_values",
    "normalize",
    "parse_range_attribute",
]
