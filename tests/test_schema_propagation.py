import unittest
from types import SimpleNamespace

from fieldday.services.schema_propagation import (
    propagate_deletion,
    propagate_rename,
    propagate_schema_changes,
    remap_entry_data,
)


def _row(row_id, data):
    return SimpleNamespace(id=row_id, entry_data=data)


class SchemaPropagationTests(unittest.TestCase):
    def test_rename_moves_value_and_skips_rows_without_the_key(self):
        rows = [_row(1, {"Site": "X"}), _row(2, {"Year": "2020"})]
        patches = propagate_rename("Site", "Location", rows)
        self.assertEqual(len(patches), 1)
        self.assertEqual(patches[0].entry_id, 1)
        self.assertEqual(patches[0].entry_data, {"Location": "X"})

    def test_deletion_drops_only_that_key(self):
        rows = [_row(1, {"Genus": "Panthera", "Species": "leo"}), _row(2, {"Species": "tigris"})]
        patches = propagate_deletion("Genus", rows)
        self.assertEqual([(p.entry_id, p.entry_data) for p in patches], [(1, {"Species": "leo"})])

    def test_rename_chain_is_applied_in_one_pass(self):
        rows = [_row(1, {"A": 1, "B": 2, "Z": 3})]
        patches = propagate_schema_changes({"A": "B", "B": "C"}, (), rows)
        self.assertEqual(patches[0].entry_data, {"B": 1, "C": 2, "Z": 3})

    def test_swapped_names_keep_both_values(self):
        data = remap_entry_data({"Site": "north", "Plot": "7"}, {"Site": "Plot", "Plot": "Site"})
        self.assertEqual(data, {"Plot": "north", "Site": "7"})

    def test_renamed_value_replaces_stale_key(self):
        data = remap_entry_data({"Site": "X", "Location": "old"}, {"Site": "Location"})
        self.assertEqual(data, {"Location": "X"})

    def test_renames_and_deletions_together(self):
        rows = [_row("e1", {"Genus": "Panthera", "Site": "X", "Count": "4"})]
        patches = propagate_schema_changes({"Site": "Location"}, ["Genus"], rows)
        self.assertEqual(patches[0].entry_data, {"Count": "4", "Location": "X"})

    def test_noop_changes_produce_no_patches(self):
        rows = [_row(1, {"Site": "X"}), _row(2, None)]
        self.assertEqual(propagate_schema_changes({}, (), rows), ())
        self.assertEqual(propagate_schema_changes({"Site": "Site"}, (), rows), ())
        self.assertEqual(propagate_deletion("Missing", rows), ())

    def test_rows_are_not_mutated(self):
        original = {"Site": "X"}
        propagate_rename("Site", "Location", [_row(1, original)])
        self.assertEqual(original, {"Site": "X"})


if __name__ == "__main__":
    unittest.main()
