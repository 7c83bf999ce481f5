from unittest import mock

from sqlalchemy.exc import OperationalError

from fieldday.core.errors import NotFoundError, PersistenceFailure, SchemaVersionConflict
from fieldday.models.tab import Tab
from fieldday.services.column_registry import ColumnDefinition, DataType
from fieldday.services.schema_propagation import EntryPatch
from tests.services.base import ACTOR, StoreTestBase

SITE = ColumnDefinition(id="site", name="Site", data_type=DataType.TEXT, order=1, identifier_domain=True)
PLOT = ColumnDefinition(id="plot", name="Plot", data_type=DataType.TEXT, order=2, identifier_domain=True)


class DocumentStoreTests(StoreTestBase):
    def test_fetch_columns_includes_system_columns_in_order(self):
        ctx = self._make_tab([PLOT, SITE])
        columns = self.store.fetch_columns(ctx.project_id, ctx.tab_id)
        self.assertEqual([c.id for c in columns], ["actions", "datetime", "identifier", "site", "plot"])
        self.assertIs(columns[2].data_type, DataType.AUTO_ID)

    def test_unknown_tab_is_not_found(self):
        ctx = self._make_tab()
        with self.assertRaises(NotFoundError):
            self.store.fetch_columns(ctx.project_id, ctx.project_id)

    def test_used_identifiers_scoped_by_exact_domain_values(self):
        ctx = self._make_tab([SITE, PLOT])
        self._add_entry(ctx, {"Site": "North", "Plot": "1", "Entry ID": "A1"})
        self._add_entry(ctx, {"Site": "North", "Plot": "2", "Entry ID": "A2"})
        self._add_entry(ctx, {"Site": "north", "Plot": "1", "Entry ID": "B1"})
        self._add_entry(ctx, {"Site": "North", "Plot": "1", "Entry ID": "B2"}, deleted=True)

        used = self.store.fetch_used_identifiers(ctx.project_id, ctx.tab_id, {"Site": "North", "Plot": "1"})
        self.assertEqual(used, {"A1"})
        used = self.store.fetch_used_identifiers(ctx.project_id, ctx.tab_id, {"Site": "North"})
        self.assertEqual(used, {"A1", "A2"})
        used = self.store.fetch_used_identifiers(ctx.project_id, ctx.tab_id, {})
        self.assertEqual(used, {"A1", "A2", "B1"})

    def test_used_identifiers_empty_without_identifier_column(self):
        ctx = self._make_tab([SITE], generate=False)
        self._add_entry(ctx, {"Site": "North", "Entry ID": "A1"})
        self.assertEqual(self.store.fetch_used_identifiers(ctx.project_id, ctx.tab_id, None), set())

    def test_schema_batch_writes_columns_rows_and_version_together(self):
        ctx = self._make_tab([SITE, PLOT])
        row = self._add_entry(ctx, {"Site": "North", "Plot": "1"})
        renamed = ColumnDefinition(id="site", name="Location", data_type=DataType.TEXT, order=1, identifier_domain=True)

        version = self.store.commit_schema_batch(
            ctx.project_id,
            ctx.tab_id,
            [renamed],
            ["plot"],
            [EntryPatch(entry_id=row.id, entry_data={"Location": "North"})],
            expected_version=1,
        )

        self.assertEqual(version, 2)
        columns = self.store.fetch_columns(ctx.project_id, ctx.tab_id)
        self.assertEqual([c.name for c in columns if not c.is_system], ["Location"])
        self.assertEqual(self._entry_data(row.id), {"Location": "North"})
        with self.SessionLocal() as db:
            self.assertEqual(db.get(Tab, ctx.tab_id).schema_version, 2)

    def test_stale_version_rejects_whole_batch(self):
        ctx = self._make_tab([SITE])
        row = self._add_entry(ctx, {"Site": "North"})
        self.store.commit_column_batch(ctx.project_id, ctx.tab_id, [], [], expected_version=1)

        renamed = ColumnDefinition(id="site", name="Location", data_type=DataType.TEXT, order=1)
        with self.assertRaises(SchemaVersionConflict) as exc:
            self.store.commit_schema_batch(
                ctx.project_id,
                ctx.tab_id,
                [renamed],
                [],
                [EntryPatch(entry_id=row.id, entry_data={"Location": "North"})],
                expected_version=1,
            )
        self.assertEqual((exc.exception.expected, exc.exception.actual), (1, 2))
        self.assertEqual([c.name for c in self.store.fetch_columns(ctx.project_id, ctx.tab_id)][-1], "Site")
        self.assertEqual(self._entry_data(row.id), {"Site": "North"})

    def test_commit_failure_rolls_back_and_raises_persistence_failure(self):
        ctx = self._make_tab([SITE])
        row = self._add_entry(ctx, {"Site": "North"})
        renamed = ColumnDefinition(id="site", name="Location", data_type=DataType.TEXT, order=1)

        with mock.patch.object(self.db, "commit", side_effect=OperationalError("COMMIT", {}, Exception("disk full"))):
            with self.assertRaises(PersistenceFailure) as exc:
                self.store.commit_schema_batch(
                    ctx.project_id,
                    ctx.tab_id,
                    [renamed],
                    [],
                    [EntryPatch(entry_id=row.id, entry_data={"Location": "North"})],
                )
        self.assertEqual(exc.exception.status_code, 503)
        self.assertIsInstance(exc.exception.cause, OperationalError)
        self.assertEqual([c.name for c in self.store.fetch_columns(ctx.project_id, ctx.tab_id)][-1], "Site")
        self.assertEqual(self._entry_data(row.id), {"Site": "North"})
        with self.SessionLocal() as db:
            self.assertEqual(db.get(Tab, ctx.tab_id).schema_version, 1)

    def test_row_batch_records_responsible(self):
        ctx = self._make_tab([SITE])
        row = self._add_entry(ctx, {"Site": "North"})
        count = self.store.commit_row_batch(ctx.project_id, ctx.tab_id, [EntryPatch(entry_id=row.id, entry_data={})])
        self.assertEqual(count, 1)
        self.db.refresh(row)
        self.assertEqual(row.entry_data, {})
        self.assertEqual(row.responsible, ACTOR)
