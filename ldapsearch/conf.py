"""
Configuration lookup for django-ldapsearch.

Server connection details come from ``settings.LDAP_SERVERS``; tunables come
from ``LDAPSEARCH_*`` settings, each with a fallback default.
"""

from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


def get_setting(setting_name: str, default_value: Any) -> Any:
    """
    Get configuration value from Django settings with fallback.

    Args:
        setting_name: Name of the setting (without LDAPSEARCH_ prefix)
        default_value: Default value if setting not found

    Returns:
        Configuration value from settings or default

    """
    full_setting_name = f"LDAPSEARCH_{setting_name}"
    return getattr(settings, full_setting_name, default_value)


def get_probe_timeout() -> float:
    """Get the availability probe timeout in seconds."""
    return float(get_setting("PROBE_TIMEOUT", 1.0))


def get_page_size() -> int:
    """Get the page size used for paged searches."""
    return int(get_setting("PAGE_SIZE", 1000))


def get_server_config(server: str, key: str = "read") -> dict[str, Any]:
    """
    Return the connection settings for one server.

    Args:
        server: Key into ``settings.LDAP_SERVERS``
        key: Which connection of that server to use

    Raises:
        ImproperlyConfigured: ``LDAP_SERVERS`` is missing or has no such entry

    Returns:
        The configuration dictionary for that connection.

    """
    try:
        servers = settings.LDAP_SERVERS
    except AttributeError as e:
        msg = "settings.LDAP_SERVERS does not exist!"
        raise ImproperlyConfigured(msg) from e
    try:
        config = servers[server]
    except KeyError as e:
        msg = f"settings.LDAP_SERVERS has no key '{server}'"
        raise ImproperlyConfigured(msg) from e
    try:
        return config[key]
    except KeyError as e:
        msg = f"settings.LDAP_SERVERS['{server}'] has no '{key}' key"
        raise ImproperlyConfigured(msg) from e


def validate_settings() -> None:
    """
    Validate Django settings for consistency.

    Raises:
        ImproperlyConfigured: If settings are invalid

    """
    try:
        timeout = get_probe_timeout()
        page_size = get_page_size()
    except (TypeError, ValueError) as e:
        msg = f"LDAPSEARCH_* settings must be numeric: {e}"
        raise ImproperlyConfigured(msg) from e

    if timeout <= 0:
        msg = f"LDAPSEARCH_PROBE_TIMEOUT ({timeout}) must be positive"
        raise ImproperlyConfigured(msg)

    if page_size <= 0:
        msg = f"LDAPSEARCH_PAGE_SIZE ({page_size}) must be positive"
        raise ImproperlyConfigured(msg)
