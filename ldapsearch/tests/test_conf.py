"""
Tests for settings lookup and validation.
"""

import unittest
from unittest.mock import Mock, patch

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.test import override_settings

from ldapsearch import conf

# Configure Django settings for testing
if not settings.configured:
    settings.configure(LDAP_SERVERS={})


SERVERS = {
    "default": {
        "read": {"url": "ldap://dc.example.com"},
    },
}


class TestServerConfig(unittest.TestCase):
    """Test get_server_config()."""

    def test_found(self):
        with override_settings(LDAP_SERVERS=SERVERS):
            self.assertEqual(
                conf.get_server_config("default"), {"url": "ldap://dc.example.com"}
            )

    def test_no_ldap_servers_setting(self):
        with patch("ldapsearch.conf.settings", Mock(spec=[])):
            with self.assertRaisesRegex(ImproperlyConfigured, "does not exist"):
                conf.get_server_config("default")

    def test_unknown_server(self):
        with override_settings(LDAP_SERVERS=SERVERS):
            with self.assertRaisesRegex(ImproperlyConfigured, "'other'"):
                conf.get_server_config("other")

    def test_unknown_key(self):
        with override_settings(LDAP_SERVERS=SERVERS):
            with self.assertRaisesRegex(ImproperlyConfigured, "'write'"):
                conf.get_server_config("default", "write")


class TestSettings(unittest.TestCase):
    """Test LDAPSEARCH_* settings and their defaults."""

    def test_defaults(self):
        with patch("ldapsearch.conf.settings", Mock(spec=[])):
            self.assertEqual(conf.get_probe_timeout(), 1.0)
            self.assertEqual(conf.get_page_size(), 1000)

    def test_overrides(self):
        with override_settings(LDAPSEARCH_PROBE_TIMEOUT=2, LDAPSEARCH_PAGE_SIZE=250):
            self.assertEqual(conf.get_probe_timeout(), 2.0)
            self.assertEqual(conf.get_page_size(), 250)
            conf.validate_settings()

    def test_non_positive_timeout(self):
        with override_settings(LDAPSEARCH_PROBE_TIMEOUT=-1):
            with self.assertRaises(ImproperlyConfigured):
                conf.validate_settings()

    def test_non_positive_page_size(self):
        with override_settings(LDAPSEARCH_PAGE_SIZE=0):
            with self.assertRaises(ImproperlyConfigured):
                conf.validate_settings()

    def test_non_numeric(self):
        with override_settings(LDAPSEARCH_PAGE_SIZE="lots"):
            with self.assertRaises(ImproperlyConfigured):
                conf.validate_settings()


if __name__ == "__main__":
    unittest.main()
