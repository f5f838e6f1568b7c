"""
Connecting to the directory, checking that it is there, and finding the root
to search from.

These are thin wrappers around python-ldap.  Errors from python-ldap are
never caught here: a server that is down, slow or refuses the bind raises
straight through to the caller.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import ldap

logger = logging.getLogger("django-ldapsearch")

#: The python-ldap exceptions that mean "no directory to talk to".  The probe
#: raises these unchanged; catch this tuple to handle them.
DIRECTORY_UNAVAILABLE: tuple[type[Exception], ...] = (
    ldap.SERVER_DOWN,  # type: ignore[attr-defined]
    ldap.CONNECT_ERROR,  # type: ignore[attr-defined]
    ldap.TIMEOUT,  # type: ignore[attr-defined]
    ldap.INVALID_CREDENTIALS,  # type: ignore[attr-defined]
)

#: Root DSE attributes read during root discovery.
ROOT_DSE_ATTRIBUTES = ["defaultNamingContext", "namingContexts", "dnsHostName"]


class RootDiscoveryError(Exception):
    """The root DSE did not name a naming context to search under."""


@dataclass(frozen=True)
class RootContext:
    """Where searches start: the server, and the base DN on it."""

    url: str
    basedn: str
    dns_host_name: str = ""


def _check_file(path: str, label: str) -> None:
    file_path = Path(path)
    if not file_path.exists():
        msg = f"{label} file does not exist: {path}"
        raise OSError(msg)
    if not file_path.is_file():
        msg = f"{label} file is not a file: {path}"
        raise OSError(msg)


def connect(  # noqa: PLR0912
    config: dict[str, Any],
    anonymous: bool = False,
    timeout: float | None = None,
) -> ldap.ldapobject.LDAPObject:  # type: ignore[name-defined]
    """
    Create, configure and bind a new LDAP connection object.

    Args:
        config: One connection entry from ``settings.LDAP_SERVERS``.

    Keyword Args:
        anonymous: Bind anonymously even if ``config`` has credentials.
        timeout: Override the configured network timeout, in seconds.

    Raises:
        ValueError: If the ``tls_verify`` value in the configuration is invalid.
        OSError: If a configured CA certificate, certificate or key file is
            missing or is not a file.

    Returns:
        A bound LDAPObject.

    """
    ldap_object: ldap.ldapobject.LDAPObject = ldap.initialize(config["url"])  # type: ignore[name-defined]
    if config.get("follow_referrals", False):
        ldap_object.set_option(ldap.OPT_REFERRALS, 1)  # type: ignore[attr-defined]
    else:
        ldap_object.set_option(ldap.OPT_REFERRALS, 0)  # type: ignore[attr-defined]
    if timeout is None:
        timeout = config.get("timeout", 15.0)
    else:
        # Bound the whole operation too, not just the TCP connect
        ldap_object.set_option(ldap.OPT_TIMEOUT, float(timeout))  # type: ignore[attr-defined]
    ldap_object.set_option(ldap.OPT_NETWORK_TIMEOUT, float(timeout))  # type: ignore[attr-defined]
    sizelimit = config.get("sizelimit", None)
    if sizelimit:
        ldap_object.set_option(ldap.OPT_SIZELIMIT, int(sizelimit))  # type: ignore[attr-defined]
    tls_verify = config.get("tls_verify", "never")
    if tls_verify == "never":
        ldap_object.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_NEVER)  # type: ignore[attr-defined]
    elif tls_verify == "always":
        ldap_object.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_DEMAND)  # type: ignore[attr-defined]
    else:
        msg = f"Invalid tls_verify value: {tls_verify}"
        raise ValueError(msg)
    if tls_ca_certfile := config.get("tls_ca_certfile", None):
        _check_file(tls_ca_certfile, "CA Certificate")
        ldap_object.set_option(ldap.OPT_X_TLS_CACERTFILE, tls_ca_certfile)  # type: ignore[attr-defined]
    if tls_certfile := config.get("tls_certfile", None):
        _check_file(tls_certfile, "TLS Certificate")
        ldap_object.set_option(ldap.OPT_X_TLS_CERTFILE, tls_certfile)  # type: ignore[attr-defined]
    if tls_keyfile := config.get("tls_keyfile", None):
        _check_file(tls_keyfile, "TLS Key")
        ldap_object.set_option(ldap.OPT_X_TLS_KEYFILE, tls_keyfile)  # type: ignore[attr-defined]
    ldap_object.set_option(ldap.OPT_X_TLS_NEWCTX, 0)  # type: ignore[attr-defined]
    if config.get("use_starttls", True):
        ldap_object.start_tls_s()
    if anonymous or not config.get("user"):
        ldap_object.simple_bind_s()
    else:
        ldap_object.simple_bind_s(config["user"], config.get("password", ""))
    return ldap_object


def probe(config: dict[str, Any], timeout: float) -> bool:
    """
    Check that the directory answers an anonymous bind within ``timeout``.

    The probe binds to the configured ``url``, not to the ``dnsHostName`` the
    root DSE advertises: root discovery runs after the probe, and searches go
    to ``url`` as well.  :py:attr:`RootContext.dns_host_name` is only recorded
    for callers that want to know which domain controller answered.

    Args:
        config: One connection entry from ``settings.LDAP_SERVERS``.
        timeout: Seconds to wait before giving up.

    Raises:
        ldap.SERVER_DOWN, ldap.TIMEOUT, ...: Propagated up unchanged

    Returns:
        ``True``.  Failure is always an exception, never ``False``.

    """
    logger.debug("ldapsearch.probe.start url=%s timeout=%s", config["url"], timeout)
    connection = connect(config, anonymous=True, timeout=timeout)
    connection.unbind_s()
    logger.debug("ldapsearch.probe.success url=%s", config["url"])
    return True


def _first_value(root_dse: dict[str, list[bytes]], name: str) -> str:
    values = root_dse.get(name) or []
    if not values:
        return ""
    return values[0].decode("utf-8")


def configured_root(config: dict[str, Any]) -> RootContext | None:
    """
    Return the root named by ``basedn`` in ``config``, or ``None`` if the
    configuration leaves it to be discovered.
    """
    url = config["url"]
    if basedn := config.get("basedn"):
        logger.debug("ldapsearch.root.configured url=%s basedn=%s", url, basedn)
        return RootContext(url=url, basedn=basedn)
    return None


def discover_root(
    connection: ldap.ldapobject.LDAPObject,  # type: ignore[name-defined]
    config: dict[str, Any],
) -> RootContext:
    """
    Work out the base DN to search under.

    A ``basedn`` in ``config`` wins.  Otherwise read the root DSE and use
    ``defaultNamingContext`` (Active Directory), falling back to the first
    ``namingContexts`` value (OpenLDAP, 389).

    Args:
        connection: A bound connection.
        config: One connection entry from ``settings.LDAP_SERVERS``.

    Raises:
        RootDiscoveryError: the root DSE names no naming context.
        ldap.SERVER_DOWN, ldap.CONNECT_ERROR: Propagated up

    Returns:
        The root to search from.

    """
    if root := configured_root(config):
        return root

    url = config["url"]
    result = connection.search_s(
        "",  # Root DSE
        ldap.SCOPE_BASE,  # type: ignore[attr-defined]
        "(objectClass=*)",
        ROOT_DSE_ATTRIBUTES,
    )
    root_dse: dict[str, list[bytes]] = {}
    if result and isinstance(result[0][1], dict):
        root_dse = result[0][1]
    dns_host_name = _first_value(root_dse, "dnsHostName")
    basedn = _first_value(root_dse, "defaultNamingContext")
    if not basedn:
        basedn = _first_value(root_dse, "namingContexts")
        if basedn:
            logger.warning(
                "ldapsearch.root.no-default-naming-context url=%s using=%s",
                url,
                basedn,
            )
    if not basedn:
        msg = f"Root DSE of {url} has no defaultNamingContext or namingContexts"
        raise RootDiscoveryError(msg)
    logger.debug("ldapsearch.root.discovered url=%s basedn=%s", url, basedn)
    return RootContext(url=url, basedn=basedn, dns_host_name=dns_host_name)
