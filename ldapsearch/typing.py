"""
LDAP search type definitions.

This module provides type aliases for the raw data python-ldap hands back from
a search and for the normalized structures built from it, using Python 3.10+
type hinting conventions.
"""

LDAPData = tuple[str, dict[str, list[bytes]]]
RawResponse = list[LDAPData]
NormalizedAttribute = tuple[str, list[str]]
NormalizedEntry = list[NormalizedAttribute]
