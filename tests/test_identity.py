import unittest
import uuid

from identity import canonical_pair_id, default_avatar, default_name


class TestCanonicalPairId(unittest.TestCase):

    def test_order_independent(self):
        for _ in range(50):
            a, b = str(uuid.uuid4()), str(uuid.uuid4())
            self.assertEqual(canonical_pair_id(a, b), canonical_pair_id(b, a))

    def test_format_sorts_lexicographically(self):
        self.assertEqual(canonical_pair_id("zeta", "alpha"), "pm_alpha_zeta")
        self.assertEqual(canonical_pair_id("alpha", "zeta"), "pm_alpha_zeta")

    def test_distinct_pairs_give_distinct_ids(self):
        self.assertNotEqual(canonical_pair_id("a", "b"), canonical_pair_id("a", "c"))


class TestDefaults(unittest.TestCase):

    def test_default_name_uses_first_four_chars(self):
        self.assertEqual(default_name("abcdef-1234"), "User-abcd")

    def test_default_avatar_is_keyed_by_quoted_name(self):
        url = default_avatar("Jane Doe", "https://avatars.test/?name={name}")
        self.assertEqual(url, "https://avatars.test/?name=Jane%20Doe")

    def test_default_avatar_uses_configured_template(self):
        self.assertIn("name=Bob", default_avatar("Bob"))


if __name__ == "__main__":
    unittest.main()
