"""
LDAP search filter templates.

Each :py:class:`SearchTarget` maps to an ``objectCategory`` filter fragment and
each :py:class:`SearchBy` maps to a one-placeholder fragment.  A search filter
is always the AND of exactly those two, category first::

    >>> build_filter(SearchTarget.USER, SearchBy.EMAIL, "a@b.com")
    '(&(objectCategory=user)(mail=a@b.com))'

The key is substituted verbatim.  Filter special characters in it (``*``,
``(``, ``)``, ``\\``, NUL) are the caller's business; use :py:func:`escape_key`
first if the key comes from untrusted input.
"""

import enum
from types import MappingProxyType

from django.core.exceptions import ImproperlyConfigured
from ldap.filter import escape_filter_chars


class SearchTarget(enum.Enum):
    """The category of directory object to look for."""

    USER = enum.auto()
    GROUP = enum.auto()
    COMPUTER = enum.auto()
    PRINTER = enum.auto()


class SearchBy(enum.Enum):
    """Which attribute the search key is matched against."""

    EMAIL = enum.auto()
    LOGIN_ID = enum.auto()
    EMPLOYEE_ID = enum.auto()
    COMMON_NAME = enum.auto()
    GROUP_NAME = enum.auto()
    PRINTER_NAME = enum.auto()
    COMPUTER_NAME = enum.auto()


#: Category fragment for each search target.
TARGET_FILTERS: MappingProxyType = MappingProxyType(
    {
        SearchTarget.USER: "(objectCategory=user)",
        SearchTarget.GROUP: "(objectCategory=group)",
        SearchTarget.COMPUTER: "(objectCategory=computer)",
        SearchTarget.PRINTER: "(objectCategory=printQueue)",
    }
)

#: Match fragment for each search mode; ``{0}`` is replaced by the key.
#: Several modes share a template on purpose.
SEARCH_BY_FILTERS: MappingProxyType = MappingProxyType(
    {
        SearchBy.EMAIL: "(mail={0})",
        SearchBy.LOGIN_ID: "(samaccountname={0})",
        SearchBy.EMPLOYEE_ID: "(employeenumber={0})",
        SearchBy.COMMON_NAME: "(CN={0})",
        SearchBy.GROUP_NAME: "(CN={0})",
        SearchBy.PRINTER_NAME: "(Name={0})",
        SearchBy.COMPUTER_NAME: "(Name={0})",
    }
)


def _check_exhaustive(enum_class: type[enum.Enum], table: MappingProxyType) -> None:
    missing = [member.name for member in enum_class if member not in table]
    if missing:
        msg = f"{enum_class.__name__} members with no filter: {', '.join(missing)}"
        raise ImproperlyConfigured(msg)


_check_exhaustive(SearchTarget, TARGET_FILTERS)
_check_exhaustive(SearchBy, SEARCH_BY_FILTERS)


def build_filter(target: SearchTarget, by: SearchBy, key: str) -> str:
    """
    Build the search filter for ``key``.

    Args:
        target: The category of object to find.
        by: Which attribute ``key`` is matched against.
        key: The value to look for.  Not escaped.

    Returns:
        ``(&<target fragment><by fragment>)`` with no extra whitespace.

    """
    category = TARGET_FILTERS[target]
    match = SEARCH_BY_FILTERS[by].format(key)
    return f"(&{category}{match})"


def escape_key(key: str) -> str:
    """
    Escape filter special characters in ``key`` per RFC 4515.

    :py:func:`build_filter` never does this for you.
    """
    return escape_filter_chars(key)
