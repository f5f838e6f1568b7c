"""
Running searches against the directory.

:py:class:`Searcher` is the entry point of this package::

    searcher = Searcher()
    results = searcher.search(
        SearchTarget.USER,
        SearchBy.EMAIL,
        "milesmouse@example.com",
        [AttributeId.SAM_ACCOUNT_NAME, AttributeId.TITLE, AttributeId.MEMBER_OF],
    )
    title = get_scalar(AttributeId.TITLE, results)
    is_admin = get_membership(AttributeId.MEMBER_OF, results, "Domain Admins")
"""

import logging
import threading
from collections.abc import Callable, Iterable
from functools import wraps
from typing import Any

import ldap
from ldap.controls import SimplePagedResultsControl

from . import conf
from .attributes import DEFAULT_RANGE_BEGIN, DEFAULT_RANGE_END, AttributeId
from .connection import (
    RootContext,
    configured_root,
    connect,
    discover_root,
    probe,
)
from .filters import SearchBy, SearchTarget
from .query import SearchQuery
from .results import ResultSet, normalize
from .typing import LDAPData

logger = logging.getLogger("django-ldapsearch")


def atomic(func: Callable) -> Callable:
    """
    Decorator to wrap methods that need to talk to the LDAP server.

    Opens a connection for the current thread if there isn't one already and
    unbinds it when the outermost wrapped call returns.
    """

    @wraps(func)
    def wrapper(self, *args, **kwargs) -> Any:
        if self.has_connection():
            # Ensure we're not currently in a wrapped function
            return func(self, *args, **kwargs)
        self.connect()
        try:
            retval = func(self, *args, **kwargs)
        finally:
            # We do this in a finally: branch so that the ldap connection
            # gets cleaned up no matter what happens in `func()`.
            self.disconnect()
        return retval

    return wrapper


class Searcher:
    """
    Search one directory server for users, groups, computers and printers.

    Constructing a :py:class:`Searcher` checks that the server answers an
    anonymous bind within ``LDAPSEARCH_PROBE_TIMEOUT`` seconds and then finds
    the base DN to search under.  Either step failing raises, so a
    :py:class:`Searcher` that exists has a reachable directory behind it.

    Searches hold no state on the instance beyond the per-thread connection,
    so one :py:class:`Searcher` can serve many threads.

    Keyword Args:
        server: The key into ``settings.LDAP_SERVERS`` to use.

    Raises:
        ImproperlyConfigured: ``settings.LDAP_SERVERS`` lacks ``server``, or
            ``LDAPSEARCH_*`` settings are invalid.
        ldap.SERVER_DOWN, ldap.TIMEOUT, ldap.INVALID_CREDENTIALS: Propagated
            up from the probe.
        RootDiscoveryError: the server has no naming context to search.

    """

    def __init__(self, server: str = "default") -> None:
        conf.validate_settings()
        self.logger = logger
        self.server = server
        self.config: dict[str, Any] = conf.get_server_config(server, "read")
        self.options: list[str] = self.config.get("options", [])
        self.pagesize: int = conf.get_page_size()
        # keys in this dictionary get manipulated by .connect() and .disconnect()
        self._ldap_objects: dict[threading.Thread, ldap.ldapobject.LDAPObject] = {}  # type: ignore[name-defined]
        probe(self.config, conf.get_probe_timeout())
        # A configured basedn needs no bind to find
        self.root: RootContext = configured_root(self.config) or self._discover_root()

    @atomic
    def _discover_root(self) -> RootContext:
        return discover_root(self.connection, self.config)

    # -----------------------
    # Connection management
    # -----------------------

    def connect(self) -> None:
        """
        Set the per-thread LDAP connection object.  Used by the @atomic
        decorator.
        """
        self._ldap_objects[threading.current_thread()] = connect(self.config)

    def disconnect(self) -> None:
        """
        Disconnect the current thread's LDAP connection.
        """
        self.connection.unbind_s()
        del self._ldap_objects[threading.current_thread()]

    def has_connection(self) -> bool:
        return threading.current_thread() in self._ldap_objects

    @property
    def connection(self) -> ldap.ldapobject.LDAPObject:  # type: ignore[name-defined]
        """
        Get the current thread's LDAP connection object.
        """
        return self._ldap_objects[threading.current_thread()]

    # -----------------------
    # Searching
    # -----------------------

    def _get_pctrls(self, serverctrls):
        """
        Lookup an LDAP paged control object from the returned controls.
        """
        return [
            c
            for c in serverctrls
            if c.controlType == SimplePagedResultsControl.controlType
        ]

    def _paged_search(
        self, basedn: str, searchfilter: str, attrlist: list[str]
    ) -> list[LDAPData]:
        """
        Perform a paged search, collecting every page before returning.

        Args:
            basedn: The base DN to search from.
            searchfilter: The LDAP search filter string.
            attrlist: List of attributes to retrieve.

        Returns:
            List of LDAPData tuples (dn, attrs).

        """
        # Pass '' for the cookie because on first iteration, it starts out empty.
        paging = SimplePagedResultsControl(True, size=self.pagesize, cookie="")  # noqa: FBT003

        results: list[LDAPData] = []
        while True:
            msgid = self.connection.search_ext(
                basedn,
                ldap.SCOPE_SUBTREE,  # type: ignore[attr-defined]
                searchfilter,
                attrlist,
                serverctrls=[paging],
            )
            _, rdata, _, serverctrls = self.connection.result3(msgid)
            results.extend(rdata)

            paged_controls = self._get_pctrls(serverctrls)
            if not paged_controls:
                break
            # Push cookie back into the request control; no cookie, no more pages
            paging.cookie = paged_controls[0].cookie
            if not paging.cookie:
                break
        return results

    @atomic
    def raw_search(self, searchfilter: str, attributes: list[str]) -> list[LDAPData]:
        """
        Run one subtree search under the discovered root.

        If the server's configuration lists ``paged_search`` in ``options``,
        the search is paged with the simple paged results control and all
        pages are returned together.

        Args:
            searchfilter: The LDAP search filter string.
            attributes: List of attributes to retrieve.

        Returns:
            The raw ``(dn, attrs)`` tuples, in server order.

        """
        self.logger.debug(
            "ldapsearch.search basedn=%s filter=%s attributes=%s",
            self.root.basedn,
            searchfilter,
            ",".join(attributes),
        )
        if "paged_search" in self.options:
            return self._paged_search(self.root.basedn, searchfilter, attributes)
        return self.connection.search_s(
            self.root.basedn,
            ldap.SCOPE_SUBTREE,  # type: ignore[attr-defined]
            filterstr=searchfilter,
            attrlist=attributes,
        )

    def execute(self, query: SearchQuery) -> ResultSet:
        """
        Run ``query`` and return its normalized results.

        Args:
            query: The search to run.

        Returns:
            Every matching entry, in server order.

        """
        results = normalize(self.raw_search(query.filter, query.properties_to_load))
        self.logger.debug(
            "ldapsearch.search.done filter=%s entries=%d", query.filter, len(results)
        )
        return results

    def search(  # noqa: PLR0913
        self,
        target: SearchTarget,
        by: SearchBy,
        key: str,
        attributes: Iterable["AttributeId | str"] = (),
        range_begin: int = DEFAULT_RANGE_BEGIN,
        range_end: int | None = DEFAULT_RANGE_END,
    ) -> ResultSet:
        """
        Find objects of kind ``target`` whose ``by`` attribute is ``key``.

        Args:
            target: The category of object to find.
            by: Which attribute ``key`` is matched against.
            key: The value to look for.  Not escaped; see
                :py:func:`ldapsearch.filters.escape_key`.

        Keyword Args:
            attributes: Attributes to load.  Empty means every catalog attribute.
            range_begin: For group searches, the first member index to load.
            range_end: For group searches, the last member index to load, or
                ``None`` for the rest.

        Returns:
            Every matching entry, in server order.

        """
        query = SearchQuery(
            target,
            by,
            key,
            attributes=tuple(attributes),
            range_begin=range_begin,
            range_end=range_end,
        )
        return self.execute(query)
