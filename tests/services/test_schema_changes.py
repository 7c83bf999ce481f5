from fieldday.core.errors import SchemaVersionConflict
from fieldday.models.tab import Tab
from fieldday.services.column_registry import (
    ColumnDefinition,
    DataType,
    DuplicateNameError,
    DuplicateOrderError,
    InvalidOptionsError,
)
from fieldday.services.schema_changes import add_column, save_column_changes
from tests.services.base import StoreTestBase

GENUS = ColumnDefinition(id="genus", name="Genus", data_type=DataType.TEXT, order=1)
SPECIES = ColumnDefinition(id="species", name="Species", data_type=DataType.TEXT, order=2)
SITE = ColumnDefinition(id="site", name="Site", data_type=DataType.TEXT, order=3, identifier_domain=True)


class SaveColumnChangesTests(StoreTestBase):
    def _version(self, ctx):
        with self.SessionLocal() as db:
            return db.get(Tab, ctx.tab_id).schema_version

    def test_delete_column_strips_key_from_entries(self):
        ctx = self._make_tab([GENUS, SPECIES])
        row = self._add_entry(ctx, {"Genus": "Panthera", "Species": "leo"})

        result = save_column_changes(self.store, ctx, {"genus": {"order": "DELETE"}}, notifier=self.notifier)

        self.assertEqual(result.commit.deleted_names, ("Genus",))
        self.assertEqual(result.patched_entries, 1)
        self.assertEqual(self._entry_data(row.id), {"Species": "leo"})
        columns = self.store.fetch_columns(ctx.project_id, ctx.tab_id)
        self.assertEqual([(c.name, c.order) for c in columns if not c.is_system], [("Species", 1)])
        self.assertEqual(self.notifier.messages[-1]["kind"], "success")

    def test_rename_propagates_to_every_entry_including_deleted(self):
        ctx = self._make_tab([GENUS, SITE])
        live = self._add_entry(ctx, {"Site": "X", "Genus": "Felis"})
        other = self._add_entry(ctx, {"Genus": "Lynx"})
        gone = self._add_entry(ctx, {"Site": "Y"}, deleted=True)

        result = save_column_changes(self.store, ctx, {"site": {"name": "Location"}})

        self.assertEqual(dict(result.commit.renames), {"Site": "Location"})
        self.assertEqual(result.patched_entries, 2)
        self.assertEqual(self._entry_data(live.id), {"Genus": "Felis", "Location": "X"})
        self.assertEqual(self._entry_data(other.id), {"Genus": "Lynx"})
        self.assertEqual(self._entry_data(gone.id), {"Location": "Y"})

    def test_swapping_names_keeps_values_with_their_columns(self):
        ctx = self._make_tab([GENUS, SPECIES])
        row = self._add_entry(ctx, {"Genus": "Panthera", "Species": "leo"})
        save_column_changes(self.store, ctx, {"genus": {"name": "Species"}, "species": {"name": "Genus"}})
        self.assertEqual(self._entry_data(row.id), {"Species": "Panthera", "Genus": "leo"})

    def test_duplicate_order_commits_nothing(self):
        ctx = self._make_tab([GENUS, SPECIES])
        row = self._add_entry(ctx, {"Genus": "Panthera", "Species": "leo"})

        with self.assertRaises(DuplicateOrderError):
            save_column_changes(
                self.store,
                ctx,
                {"genus": {"order": 1, "name": "Family"}, "species": {"order": 1}},
                notifier=self.notifier,
            )

        self.assertEqual(self.notifier.messages[-1]["kind"], "error")
        self.assertEqual(self._version(ctx), 1)
        self.assertEqual(self._entry_data(row.id), {"Genus": "Panthera", "Species": "leo"})
        names = [c.name for c in self.store.fetch_columns(ctx.project_id, ctx.tab_id) if not c.is_system]
        self.assertEqual(names, ["Genus", "Species"])

    def test_empty_choice_list_is_rejected(self):
        ctx = self._make_tab([GENUS])
        with self.assertRaises(InvalidOptionsError):
            save_column_changes(self.store, ctx, {"genus": {"data_type": "multipleChoice", "entry_options": []}})

    def test_no_changes_leaves_version(self):
        ctx = self._make_tab([GENUS])
        result = save_column_changes(self.store, ctx, {}, notifier=self.notifier)
        self.assertEqual(result.schema_version, 1)
        self.assertTrue(result.commit.is_empty)
        self.assertEqual(self.notifier.messages[-1]["kind"], "info")

    def test_each_save_bumps_version_and_stale_save_conflicts(self):
        ctx = self._make_tab([GENUS, SPECIES])
        first = save_column_changes(self.store, ctx, {"genus": {"name": "Family"}}, expected_version=1)
        self.assertEqual(first.schema_version, 2)

        with self.assertRaises(SchemaVersionConflict):
            save_column_changes(
                self.store, ctx, {"species": {"name": "Epithet"}}, expected_version=1, notifier=self.notifier
            )
        self.assertEqual(self.notifier.messages[-1]["kind"], "error")
        names = [c.name for c in self.store.fetch_columns(ctx.project_id, ctx.tab_id) if not c.is_system]
        self.assertEqual(names, ["Family", "Species"])

    def test_deletions_argument_marks_columns(self):
        ctx = self._make_tab([GENUS, SPECIES])
        result = save_column_changes(self.store, ctx, {}, deletions=["species"])
        self.assertEqual(result.commit.deletions, ("species",))


class AddColumnTests(StoreTestBase):
    def test_new_column_goes_last(self):
        ctx = self._make_tab([GENUS, SPECIES])
        column = add_column(
            self.store,
            ctx,
            name=" Habitat ",
            data_type="Multiple Choice",
            entry_options=["forest", "Add Here", "grassland"],
            notifier=self.notifier,
        )
        self.assertEqual(column.name, "Habitat")
        self.assertEqual(column.order, 3)
        self.assertIs(column.data_type, DataType.MULTIPLE_CHOICE)
        self.assertEqual(column.entry_options, ("forest", "grassland"))
        stored = self.store.fetch_columns(ctx.project_id, ctx.tab_id)
        self.assertEqual(stored[-1].id, column.id)

    def test_clashing_name_is_rejected_and_notified(self):
        ctx = self._make_tab([GENUS])
        with self.assertRaises(DuplicateNameError):
            add_column(self.store, ctx, name="genus", notifier=self.notifier)
        self.assertEqual(self.notifier.messages[-1]["kind"], "error")
        self.assertEqual(len(self.store.fetch_columns(ctx.project_id, ctx.tab_id)), 4)
