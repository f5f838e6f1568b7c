"""
Normalized search results and accessors.

:py:func:`normalize` turns the raw python-ldap response -- a list of
``(dn, {attribute: [bytes, ...]})`` tuples whose attribute dictionaries carry no
particular meaning in their ordering -- into a :py:class:`ResultSet`: entries
indexed ``0..N-1`` in the order the server sent them, each an ordered list of
``(name, values)`` pairs.

The accessors :py:func:`get_scalar`, :py:func:`get_values` and
:py:func:`get_membership` only ever look at entry 0, since searches are
expected to match exactly one object.  They never raise: missing data comes
back as ``""``, ``[]`` or ``False``.
"""

from collections.abc import Iterator
from typing import NamedTuple

from .attributes import AttributeId, AttributeRange, parse_range_attribute, wire_name
from .typing import NormalizedEntry, RawResponse


class AttributeValue(NamedTuple):
    """One attribute of an entry and all of its values."""

    name: str
    values: list[str]


class Entry:
    """
    One directory object from a search.

    Attribute names are kept as the server spelled them; lookups are
    case-insensitive, since LDAP attribute names are.

    Args:
        dn: The distinguished name of the object.
        attributes: The object's attributes in server order.

    """

    def __init__(self, dn: str, attributes: list[AttributeValue]) -> None:
        self.dn = dn
        self.attributes = attributes

    def __iter__(self) -> Iterator[AttributeValue]:
        return iter(self.attributes)

    def __len__(self) -> int:
        return len(self.attributes)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find(name) is not None

    def __repr__(self) -> str:
        return f"<Entry dn={self.dn!r} attributes={len(self.attributes)}>"

    def find(self, name: str) -> AttributeValue | None:
        """
        Return the first attribute called ``name``, or ``None``.

        Args:
            name: The attribute's wire name, in any case.

        """
        lowered = name.lower()
        for attribute in self.attributes:
            if attribute.name.lower() == lowered:
                return attribute
        return None

    def names(self) -> list[str]:
        return [attribute.name for attribute in self.attributes]

    def ranged(
        self, attribute: str = "member"
    ) -> tuple[AttributeRange, list[str]] | None:
        """
        Find the ranged form of ``attribute`` the server sent back, e.g.
        ``member;range=0-1499``, and return its window and values.

        The returned :py:class:`~ldapsearch.attributes.AttributeRange` tells the
        caller whether more values remain (``not is_last``) and where the
        next window starts (``next_begin``).

        Returns:
            ``(range, values)``, or ``None`` if there is no ranged attribute.

        """
        lowered = attribute.lower()
        for item in self.attributes:
            served = parse_range_attribute(item.name)
            if served is not None and served.attribute.lower() == lowered:
                return served, item.values
        return None

    def as_list(self) -> NormalizedEntry:
        return [(attribute.name, list(attribute.values)) for attribute in self]


class ResultSet:
    """
    The entries a search returned, indexed ``0..N-1`` in server order.

    The server decides the order and need not repeat it from one search to
    the next.

    Args:
        entries: The normalized entries.

    """

    def __init__(self, entries: list[Entry]) -> None:
        self.entries = entries

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> Entry:
        return self.entries[index]

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __repr__(self) -> str:
        return f"<ResultSet entries={len(self.entries)}>"

    @property
    def first(self) -> Entry | None:
        """Entry 0, or ``None`` if the search found nothing."""
        if not self.entries:
            return None
        return self.entries[0]

    def as_dict(self) -> dict[int, NormalizedEntry]:
        """
        Return the results as ``{index: [(name, values), ...]}``.
        """
        return {index: entry.as_list() for index, entry in enumerate(self.entries)}


def _to_str(value: bytes | str) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def normalize(raw: RawResponse) -> ResultSet:
    """
    Convert a raw python-ldap search response into a :py:class:`ResultSet`.

    Every value of every attribute is kept, decoded to ``str``.  Attribute
    order follows the server, repeated names are not merged, and attributes
    with no values are kept with an empty list.  Nothing is added that the
    server did not send.

    Args:
        raw: ``(dn, attrs)`` tuples as returned by ``search_s``.  Referrals,
            which python-ldap returns as ``(None, [urls])``, are skipped.

    Returns:
        The normalized results.

    """
    entries: list[Entry] = []
    for dn, attrs in raw:
        # AD appends search references that we want to ignore
        if not isinstance(attrs, dict):
            continue
        attributes = [
            AttributeValue(name, [_to_str(value) for value in values])
            for name, values in attrs.items()
        ]
        entries.append(Entry(dn, attributes))
    return ResultSet(entries)


def _first_attribute(
    attr: "AttributeId | str", results: ResultSet
) -> AttributeValue | None:
    entry = results.first
    if entry is None:
        return None
    return entry.find(wire_name(attr))


def get_scalar(attr: "AttributeId | str", results: ResultSet) -> str:
    """
    Return the first value of ``attr`` on entry 0 of ``results``.

    Returns:
        The value, or ``""`` if there is no entry 0, it has no ``attr``, or
        ``attr`` has no values.

    """
    attribute = _first_attribute(attr, results)
    if attribute is None or not attribute.values:
        return ""
    return attribute.values[0]


def get_values(attr: "AttributeId | str", results: ResultSet) -> list[str]:
    """
    Return every value of ``attr`` on entry 0 of ``results``, or ``[]``.
    """
    attribute = _first_attribute(attr, results)
    if attribute is None:
        return []
    return list(attribute.values)


def get_membership(attr: "AttributeId | str", results: ResultSet, probe: str) -> bool:
    """
    Return whether any value of ``attr`` on entry 0 contains ``probe``.

    This is a substring test, so ``probe="Admins"`` matches
    ``CN=Domain Admins,CN=Users,DC=example,DC=com``.

    Returns:
        ``True`` on a match, ``False`` otherwise, including when there is no
        entry 0 or no such attribute.

    """
    return any(probe in value for value in get_values(attr, results))
