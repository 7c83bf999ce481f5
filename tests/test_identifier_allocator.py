import unittest

from fieldday.services.code_space import generate_candidates
from fieldday.services.identifier_allocator import (
    INCOMPLETE_DOMAIN_GENERIC,
    NO_CODES_AVAILABLE,
    allocate,
    incomplete_domain_message,
    is_placeholder,
    missing_domain_fields,
)


class IdentifierAllocatorTests(unittest.TestCase):
    def setUp(self):
        self.candidates = generate_candidates("B", 2)

    def test_first_unused_candidate_is_picked(self):
        self.assertEqual(allocate(None, set(), self.candidates), "A1")
        self.assertEqual(allocate("", {"A1"}, self.candidates), "A1-B1")
        self.assertEqual(allocate(None, {"A1", "A1-B1", "A1-B2"}, self.candidates), "A2")

    def test_unused_desired_id_is_kept_verbatim(self):
        self.assertEqual(allocate("B2", {"A1"}, self.candidates), "B2")
        self.assertEqual(allocate("custom-7", set(), self.candidates), "custom-7")

    def test_used_desired_id_is_extended_not_returned(self):
        used = {"A1", "B2"}
        self.assertEqual(allocate("A1", used, self.candidates), "A1-B1")
        self.assertEqual(allocate("B2", used, self.candidates), "A1-B2")
        for desired in used:
            self.assertNotIn(allocate(desired, used, self.candidates), used)

    def test_allocation_is_idempotent(self):
        used = {"A1", "A1-B1"}
        first = allocate("A1", used, self.candidates)
        second = allocate("A1", used, self.candidates)
        self.assertEqual(first, second)

    def test_exhausted_pool_returns_message(self):
        used = set(self.candidates)
        self.assertEqual(allocate(None, used, self.candidates), NO_CODES_AVAILABLE)
        self.assertEqual(allocate("A1", used, self.candidates), NO_CODES_AVAILABLE)
        self.assertEqual(allocate(None, set(), ()), NO_CODES_AVAILABLE)

    def test_incomplete_domain_blocks_generation(self):
        message = allocate(None, set(), self.candidates, False, ["Site", "Year"])
        self.assertEqual(message, "Fill in Site, Year to generate an ID")
        self.assertEqual(allocate("A1", set(), self.candidates, False), INCOMPLETE_DOMAIN_GENERIC)
        self.assertEqual(allocate(None, set(), self.candidates, True, ["Plot"]), incomplete_domain_message(["Plot"]))

    def test_missing_domain_fields(self):
        values = {"Site": "Select", "Plot": "3", "Year": "  "}
        self.assertEqual(missing_domain_fields(["Site", "Plot", "Year", "Team"], values), ["Site", "Year", "Team"])
        self.assertEqual(missing_domain_fields(["Site"], None), ["Site"])
        self.assertEqual(missing_domain_fields([], {}), [])

    def test_placeholders_are_recognised(self):
        self.assertTrue(is_placeholder(""))
        self.assertTrue(is_placeholder(NO_CODES_AVAILABLE))
        self.assertTrue(is_placeholder(incomplete_domain_message(["Site"])))
        self.assertFalse(is_placeholder("A1-B2"))


if __name__ == "__main__":
    unittest.main()
