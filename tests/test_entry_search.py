import unittest
from datetime import datetime, timezone
from types import SimpleNamespace

from fieldday.schemas.universal import Page, SortClause
from fieldday.services.entry_search import filter_entries_by_search, paginate, search_terms, sort_entries


def _entry(name, data, day=1):
    return SimpleNamespace(name=name, entry_data=data, entry_date=datetime(2026, 1, day, tzinfo=timezone.utc))


class EntrySearchTests(unittest.TestCase):
    def setUp(self):
        self.entries = [
            _entry("oak", {"Tree": "Oak", "Height": "10"}, day=3),
            _entry("pine", {"Tree": "Pine", "Height": "9"}, day=1),
            _entry("birch", {"Tree": "Birch", "Height": "tall"}, day=2),
            _entry("unknown", {"Tree": "", "Height": None}, day=4),
        ]

    def test_terms_are_split_on_plus(self):
        self.assertEqual(search_terms(" Oak + pine +"), ["oak", "pine"])
        self.assertEqual(search_terms(None), [])

    def test_search_matches_any_term(self):
        found = filter_entries_by_search(self.entries, "OAK+pin")
        self.assertEqual([e.name for e in found], ["oak", "pine"])
        self.assertEqual(len(filter_entries_by_search(self.entries, "  ")), 4)
        self.assertEqual(filter_entries_by_search(self.entries, "maple"), [])

    def test_numbers_sort_numerically_and_empty_values_last(self):
        asc = sort_entries(self.entries, [SortClause(field="Height")])
        self.assertEqual([e.name for e in asc], ["pine", "oak", "birch", "unknown"])
        desc = sort_entries(self.entries, [SortClause(field="Height", dir="desc")])
        self.assertEqual([e.name for e in desc], ["birch", "oak", "pine", "unknown"])

    def test_sort_by_entry_date(self):
        ordered = sort_entries(self.entries, [SortClause(field="entry_date", dir="desc")])
        self.assertEqual([e.name for e in ordered], ["unknown", "oak", "birch", "pine"])

    def test_multi_key_sort_is_stable(self):
        entries = [
            _entry("b", {"Site": "x", "Plot": "2"}),
            _entry("a", {"Site": "x", "Plot": "1"}),
            _entry("c", {"Site": "w", "Plot": "3"}),
        ]
        ordered = sort_entries(entries, [SortClause(field="Site"), SortClause(field="Plot")])
        self.assertEqual([e.name for e in ordered], ["c", "a", "b"])

    def test_paginate(self):
        self.assertEqual([e.name for e in paginate(self.entries, Page(limit=2, offset=1))], ["pine", "birch"])
        self.assertEqual(paginate(self.entries, Page(limit=5, offset=10)), [])


if __name__ == "__main__":
    unittest.main()
