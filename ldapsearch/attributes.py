"""
Directory attribute catalog and ranged attribute retrieval.

This module provides the :py:class:`AttributeId` catalog of directory
attributes together with their wire names, and the helpers that build the
attribute request list for a search.  Group searches carry a
``member;range=<begin>-<end>`` token so that groups with more members than the
server returns per response (1500 on Active Directory) can be read window by
window.
"""

import enum
import re
from collections.abc import Iterable
from types import MappingProxyType
from typing import NamedTuple

from django.core.exceptions import ImproperlyConfigured

from .filters import SearchTarget


class AttributeId(enum.Enum):
    """
    The directory attributes this package knows how to request.

    This is a limited set; add members (and their wire names in
    :py:data:`WIRE_NAMES`) to support more.
    """

    ADSPATH = enum.auto()
    CN = enum.auto()
    DISPLAY_NAME = enum.auto()
    DISTINGUISHED_NAME = enum.auto()
    EMPLOYEE_ID = enum.auto()
    EMPLOYEE_NUMBER = enum.auto()
    MAIL = enum.auto()
    MEMBER = enum.auto()
    MEMBER_RANGE = enum.auto()
    MEMBER_OF = enum.auto()
    NAME = enum.auto()
    OBJECT_CATEGORY = enum.auto()
    OBJECT_CLASS = enum.auto()
    SAM_ACCOUNT_NAME = enum.auto()
    SAM_ACCOUNT_TYPE = enum.auto()
    TITLE = enum.auto()
    USER_ACCOUNT_CONTROL = enum.auto()


#: Wire name for each attribute.  ``MEMBER_RANGE`` is a template, filled in by
#: :py:func:`range_token`.
WIRE_NAMES: MappingProxyType = MappingProxyType(
    {
        AttributeId.ADSPATH: "adspath",
        AttributeId.CN: "cn",
        AttributeId.DISPLAY_NAME: "displayname",
        AttributeId.DISTINGUISHED_NAME: "distinguishedname",
        AttributeId.EMPLOYEE_ID: "employeeid",
        AttributeId.EMPLOYEE_NUMBER: "employeenumber",
        AttributeId.MAIL: "mail",
        AttributeId.MEMBER: "member",
        AttributeId.MEMBER_RANGE: "member;range={begin}-{end}",
        AttributeId.MEMBER_OF: "memberof",
        AttributeId.NAME: "name",
        AttributeId.OBJECT_CATEGORY: "objectcategory",
        AttributeId.OBJECT_CLASS: "objectclass",
        AttributeId.SAM_ACCOUNT_NAME: "samaccountname",
        AttributeId.SAM_ACCOUNT_TYPE: "samaccounttype",
        AttributeId.TITLE: "title",
        AttributeId.USER_ACCOUNT_CONTROL: "useraccountcontrol",
    }
)

#: Every ranged attribute request starts with this.
RANGE_PREFIX = "member;"

#: Active Directory's default MaxValRange is 1500 values, so the default
#: window is 0-1499.
DEFAULT_RANGE_BEGIN = 0
DEFAULT_RANGE_END = 1499

_RANGE_RE = re.compile(
    r"^(?P<attribute>[^;]+);range=(?P<begin>\d+)-(?P<end>\d+|\*)$", re.IGNORECASE
)

_missing = [attr.name for attr in AttributeId if attr not in WIRE_NAMES]
if _missing:
    msg = f"AttributeId members with no wire name: {', '.join(_missing)}"
    raise ImproperlyConfigured(msg)


class AttributeRange(NamedTuple):
    """
    The window of values a server actually returned for a ranged attribute.

    ``end`` is ``None`` when the server answered with ``*``, meaning this was
    the last window.
    """

    attribute: str
    begin: int
    end: int | None

    @property
    def is_last(self) -> bool:
        return self.end is None

    @property
    def next_begin(self) -> int | None:
        """The first index of the following window, or ``None`` after the last."""
        if self.end is None:
            return None
        return self.end + 1


def wire_name(attr: "AttributeId | str") -> str:
    """
    Return the wire name for ``attr``.

    Plain strings are taken to be wire names already and are returned as-is,
    which lets a property list from an earlier request be passed back in.
    """
    if isinstance(attr, AttributeId):
        return WIRE_NAMES[attr]
    return attr


def range_token(begin: int, end: int | None) -> str:
    """
    Format the ranged ``member`` attribute for one window.

    Args:
        begin: Index of the first value to return.
        end: Index of the last value to return, or ``None`` for "to the end".

    Returns:
        A string like ``member;range=0-1499`` or ``member;range=1500-*``.

    """
    return WIRE_NAMES[AttributeId.MEMBER_RANGE].format(
        begin=begin, end="*" if end is None else end
    )


def is_range_token(name: str) -> bool:
    return name.lower().startswith(RANGE_PREFIX)


def parse_range_attribute(name: str) -> AttributeRange | None:
    """
    Parse an attribute name as served back by the directory, e.g.
    ``member;range=0-1499``.

    Returns:
        The parsed range, or ``None`` if ``name`` is not a ranged attribute.

    """
    match = _RANGE_RE.match(name)
    if not match:
        return None
    end = match.group("end")
    return AttributeRange(
        attribute=match.group("attribute"),
        begin=int(match.group("begin")),
        end=None if end == "*" else int(end),
    )


def resolve_wire_names(requested: Iterable["AttributeId | str"]) -> list[str]:
    """
    Resolve ``requested`` to an ordered list of wire names.

    An empty ``requested`` means the whole catalog.  Range tokens are never
    resolved: ``MEMBER_RANGE`` is a template rather than a name, and a raw
    ``member;range=...`` string is left over from an earlier request.  Both
    are skipped here; :py:func:`prepare_property_list` adds a fresh token for
    group searches only.  Duplicates are dropped, keeping first-seen order.
    """
    attrs = list(requested) or list(AttributeId)
    names: list[str] = []
    for attr in attrs:
        if attr is AttributeId.MEMBER_RANGE:
            continue
        name = wire_name(attr)
        if is_range_token(name):
            continue
        if name not in names:
            names.append(name)
    return names


def prepare_property_list(
    target: SearchTarget,
    requested: Iterable["AttributeId | str"],
    range_begin: int = DEFAULT_RANGE_BEGIN,
    range_end: int | None = DEFAULT_RANGE_END,
) -> list[str]:
    """
    Build the attribute request list for a search.

    Any ranged ``member;`` entries already in ``requested`` (say, carried
    over from a previous request) are dropped.  For
    :py:attr:`SearchTarget.GROUP` searches a fresh range token for
    ``range_begin``-``range_end`` is then appended, so the list always
    carries exactly one.  Other targets never carry one.

    Args:
        target: What kind of object is being searched for.
        requested: Attributes to load; empty means all of :py:class:`AttributeId`.

    Keyword Args:
        range_begin: First member index to request.
        range_end: Last member index to request, or ``None`` for the rest.

    Returns:
        The ordered list of attribute names to send to the server.

    """
    names = resolve_wire_names(requested)
    if target is SearchTarget.GROUP:
        names.append(range_token(range_begin, range_end))
    return names
