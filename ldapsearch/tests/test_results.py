"""
Tests for result normalization and the entry-0 accessors.
"""

import unittest

from ldapsearch.attributes import AttributeId, AttributeRange
from ldapsearch.results import (
    AttributeValue,
    Entry,
    ResultSet,
    get_membership,
    get_scalar,
    get_values,
    normalize,
)


USER_DN = "CN=Miles Mouse,OU=Users,DC=example,DC=com"


class TestNormalize(unittest.TestCase):
    """Test normalize()."""

    def test_single_entry(self):
        raw = [(USER_DN, {"title": [b"Engineer"], "memberof": [b"G1", b"G2"]})]
        results = normalize(raw)
        self.assertEqual(
            results.as_dict(),
            {0: [("title", ["Engineer"]), ("memberof", ["G1", "G2"])]},
        )
        self.assertEqual(results[0].dn, USER_DN)

    def test_entry_order_is_preserved(self):
        raw = [
            (f"CN=user{i},DC=example,DC=com", {"cn": [f"user{i}".encode()]})
            for i in range(5)
        ]
        results = normalize(raw)
        self.assertEqual(len(results), 5)
        for i, entry in enumerate(results):
            self.assertEqual(entry.dn, f"CN=user{i},DC=example,DC=com")
            self.assertEqual(entry.as_list(), [("cn", [f"user{i}"])])

    def test_attribute_order_is_preserved(self):
        attrs = {
            "samaccountname": [b"mmouse"],
            "title": [b"Engineer"],
            "cn": [b"Miles Mouse"],
            "mail": [b"milesmouse@example.com"],
        }
        results = normalize([(USER_DN, attrs)])
        self.assertEqual(
            results[0].names(), ["samaccountname", "title", "cn", "mail"]
        )

    def test_every_value_is_kept(self):
        members = [f"CN=u{i},DC=example,DC=com".encode() for i in range(1500)]
        results = normalize([("CN=big,DC=example,DC=com", {"member;range=0-1499": members})])
        self.assertEqual(len(results[0].attributes[0].values), 1500)
        self.assertEqual(results[0].attributes[0].values[-1], "CN=u1499,DC=example,DC=com")

    def test_empty_value_list_is_kept(self):
        results = normalize([(USER_DN, {"title": [], "cn": [b"Miles"]})])
        self.assertEqual(results[0].as_list(), [("title", []), ("cn", ["Miles"])])

    def test_nothing_is_synthesized(self):
        results = normalize([(USER_DN, {"cn": [b"Miles"]})])
        self.assertEqual(results[0].names(), ["cn"])

    def test_string_values_pass_through(self):
        results = normalize([(USER_DN, {"cn": ["Miles"]})])
        self.assertEqual(results[0].as_list(), [("cn", ["Miles"])])

    def test_undecodable_bytes_do_not_raise(self):
        results = normalize([(USER_DN, {"objectguid": [b"\xff\xfe\x00"]})])
        self.assertEqual(len(results[0].attributes[0].values), 1)
        self.assertIsInstance(results[0].attributes[0].values[0], str)

    def test_referrals_are_skipped(self):
        raw = [
            (USER_DN, {"cn": [b"Miles"]}),
            (None, ["ldap://other.example.com/DC=other,DC=example,DC=com"]),
        ]
        results = normalize(raw)
        self.assertEqual(len(results), 1)

    def test_empty_response(self):
        results = normalize([])
        self.assertEqual(len(results), 0)
        self.assertFalse(results)
        self.assertIsNone(results.first)
        self.assertEqual(results.as_dict(), {})


class TestEntry(unittest.TestCase):
    """Test Entry lookups."""

    def setUp(self):
        self.entry = Entry(
            USER_DN,
            [
                AttributeValue("sAMAccountName", ["mmouse"]),
                AttributeValue("memberOf", ["CN=G1,DC=example,DC=com"]),
                AttributeValue("memberOf", ["CN=second,DC=example,DC=com"]),
            ],
        )

    def test_find_is_case_insensitive(self):
        self.assertEqual(self.entry.find("samaccountname").values, ["mmouse"])
        self.assertEqual(self.entry.find("SAMACCOUNTNAME").values, ["mmouse"])

    def test_find_returns_first_match(self):
        self.assertEqual(self.entry.find("memberof").values, ["CN=G1,DC=example,DC=com"])

    def test_find_missing(self):
        self.assertIsNone(self.entry.find("title"))

    def test_contains(self):
        self.assertIn("memberof", self.entry)
        self.assertNotIn("title", self.entry)

    def test_len_and_iter(self):
        self.assertEqual(len(self.entry), 3)
        self.assertEqual([a.name for a in self.entry], ["sAMAccountName", "memberOf", "memberOf"])

    def test_ranged(self):
        entry = Entry(
            "CN=GROUP_1,DC=example,DC=com",
            [
                AttributeValue("cn", ["GROUP_1"]),
                AttributeValue("member;range=0-1499", ["CN=a", "CN=b"]),
            ],
        )
        served, values = entry.ranged()
        self.assertEqual(served, AttributeRange("member", 0, 1499))
        self.assertEqual(values, ["CN=a", "CN=b"])
        self.assertEqual(served.next_begin, 1500)

    def test_ranged_last_window(self):
        entry = Entry(
            "CN=GROUP_1,DC=example,DC=com",
            [AttributeValue("member;range=1500-*", ["CN=z"])],
        )
        served, values = entry.ranged("member")
        self.assertTrue(served.is_last)
        self.assertEqual(values, ["CN=z"])

    def test_ranged_missing(self):
        self.assertIsNone(self.entry.ranged())


class TestAccessors(unittest.TestCase):
    """Test get_scalar(), get_values() and get_membership()."""

    def setUp(self):
        self.results = normalize(
            [(USER_DN, {"title": [b"Engineer"], "memberof": [b"G1", b"G2"]})]
        )

    def test_get_scalar(self):
        self.assertEqual(get_scalar(AttributeId.TITLE, self.results), "Engineer")

    def test_get_scalar_first_value(self):
        self.assertEqual(get_scalar(AttributeId.MEMBER_OF, self.results), "G1")

    def test_get_scalar_missing_attribute(self):
        self.assertEqual(get_scalar(AttributeId.MAIL, self.results), "")

    def test_get_scalar_empty_values(self):
        results = normalize([(USER_DN, {"title": []})])
        self.assertEqual(get_scalar(AttributeId.TITLE, results), "")

    def test_get_scalar_empty_results(self):
        self.assertEqual(get_scalar(AttributeId.TITLE, ResultSet([])), "")

    def test_get_scalar_server_casing(self):
        results = normalize([(USER_DN, {"sAMAccountName": [b"mmouse"]})])
        self.assertEqual(get_scalar(AttributeId.SAM_ACCOUNT_NAME, results), "mmouse")

    def test_get_scalar_raw_name(self):
        self.assertEqual(get_scalar("title", self.results), "Engineer")

    def test_only_entry_zero_is_consulted(self):
        results = normalize(
            [
                ("CN=first,DC=example,DC=com", {"cn": [b"first"]}),
                ("CN=second,DC=example,DC=com", {"title": [b"Manager"], "memberof": [b"G9"]}),
            ]
        )
        self.assertEqual(get_scalar(AttributeId.TITLE, results), "")
        self.assertFalse(get_membership(AttributeId.MEMBER_OF, results, "G9"))
        self.assertEqual(get_values(AttributeId.MEMBER_OF, results), [])

    def test_get_membership(self):
        self.assertTrue(get_membership(AttributeId.MEMBER_OF, self.results, "G2"))
        self.assertFalse(get_membership(AttributeId.MEMBER_OF, self.results, "G3"))

    def test_get_membership_is_substring(self):
        results = normalize(
            [(USER_DN, {"memberof": [b"CN=Domain Admins,CN=Users,DC=example,DC=com"]})]
        )
        self.assertTrue(get_membership(AttributeId.MEMBER_OF, results, "Domain Admins"))
        self.assertTrue(get_membership(AttributeId.MEMBER_OF, results, "Admins"))
        self.assertFalse(get_membership(AttributeId.MEMBER_OF, results, "admins"))

    def test_get_membership_missing(self):
        self.assertFalse(get_membership(AttributeId.MEMBER, self.results, "G1"))
        self.assertFalse(get_membership(AttributeId.MEMBER_OF, ResultSet([]), "G1"))

    def test_get_values(self):
        self.assertEqual(get_values(AttributeId.MEMBER_OF, self.results), ["G1", "G2"])
        self.assertEqual(get_values(AttributeId.MAIL, self.results), [])

    def test_get_values_returns_a_copy(self):
        values = get_values(AttributeId.MEMBER_OF, self.results)
        values.append("G3")
        self.assertEqual(get_values(AttributeId.MEMBER_OF, self.results), ["G1", "G2"])

    def test_accessors_never_raise(self):
        for results in (
            ResultSet([]),
            normalize([(USER_DN, {})]),
            normalize([(USER_DN, {"title": []})]),
        ):
            for attr in AttributeId:
                with self.subTest(results=results, attr=attr):
                    self.assertEqual(get_scalar(attr, results), "")
                    self.assertFalse(get_membership(attr, results, "x"))


if __name__ == "__main__":
    unittest.main()
