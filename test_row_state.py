import unittest

from row_state import (
    DeleteOutcome,
    RowMarkers,
    RowStateMachine,
    RowStatus,
    resolve_column,
)
from table_host import ColumnSpec


class DummyHost:
    def __init__(self, rows):
        self.rows = {label: dict(data) for label, data in rows.items()}
        self.columns = [ColumnSpec(key) for key in ("status", "deleted", "val")]

    def has_row(self, label):
        return label in self.rows

    def cell(self, label, key):
        return self.rows[label].get(key)

    def set_cell(self, label, key, value):
        self.rows[label][key] = value

    def remove_row(self, label):
        self.rows.pop(label, None)


class RowStatusTests(unittest.TestCase):
    def test_from_value(self):
        self.assertEqual(RowStatus.from_value(0), RowStatus.DRAFT)
        self.assertEqual(RowStatus.from_value(2.0), RowStatus.PUBLISHED)
        self.assertEqual(RowStatus.from_value("1"), RowStatus.LOCKED)
        self.assertIsNone(RowStatus.from_value(None))
        self.assertIsNone(RowStatus.from_value("bogus"))
        self.assertIsNone(RowStatus.from_value(7))


class ResolveColumnTests(unittest.TestCase):
    def test_matches_key_or_name(self):
        columns = [ColumnSpec("a"), ColumnSpec("state_col", name="status")]
        self.assertEqual(resolve_column(columns, "status"), "state_col")
        self.assertEqual(resolve_column(columns, "a"), "a")

    def test_absent_column_disables_feature(self):
        self.assertIsNone(resolve_column([ColumnSpec("a")], "deleted"))
        sm = RowStateMachine.from_columns([ColumnSpec("a")])
        self.assertIsNone(sm.status_column)
        self.assertIsNone(sm.deleted_column)


class RowStateMachineTests(unittest.TestCase):
    def _machine(self, rows):
        host = DummyHost(rows)
        return RowStateMachine.from_columns(host.columns), host

    def test_lock_unlock_publish_always_permitted(self):
        sm, host = self._machine({0: {"status": 2}})
        self.assertTrue(sm.unlock(host, 0))
        self.assertEqual(sm.status_of(host, 0), RowStatus.DRAFT)
        self.assertTrue(sm.lock(host, 0))
        self.assertEqual(host.rows[0]["status"], 1)
        self.assertTrue(sm.publish(host, 0))
        self.assertEqual(sm.status_of(host, 0), RowStatus.PUBLISHED)

    def test_unpublish_only_from_published(self):
        sm, host = self._machine({0: {"status": 2}, 1: {"status": 0}})
        self.assertTrue(sm.unpublish(host, 0))
        self.assertEqual(sm.status_of(host, 0), RowStatus.LOCKED)
        self.assertFalse(sm.unpublish(host, 1))
        self.assertEqual(sm.status_of(host, 1), RowStatus.DRAFT)

    def test_transitions_without_status_column_are_refused(self):
        sm = RowStateMachine()
        host = DummyHost({0: {"status": 0}})
        self.assertFalse(sm.lock(host, 0))
        self.assertIsNone(sm.status_of(host, 0))

    def test_delete_refused_for_locked_and_published(self):
        sm, host = self._machine(
            {0: {"status": 1, "deleted": False}, 1: {"status": 2, "deleted": False}}
        )
        before = {k: dict(v) for k, v in host.rows.items()}
        self.assertIs(sm.delete(host, 0), DeleteOutcome.REFUSED)
        self.assertIs(sm.delete(host, 1), DeleteOutcome.REFUSED)
        self.assertEqual(host.rows, before)

    def test_delete_draft_sets_flag(self):
        sm, host = self._machine({0: {"status": 0, "deleted": False}})
        self.assertIs(sm.delete(host, 0), DeleteOutcome.SOFT_DELETED)
        self.assertTrue(host.rows[0]["deleted"])

    def test_delete_never_saved_row_removes_it(self):
        sm, host = self._machine({0: {"status": None, "deleted": None}})
        self.assertIs(sm.delete(host, 0), DeleteOutcome.REMOVED)
        self.assertNotIn(0, host.rows)

    def test_delete_draft_without_deleted_column_is_refused(self):
        sm = RowStateMachine(status_column="status")
        host = DummyHost({0: {"status": 0}})
        self.assertIs(sm.delete(host, 0), DeleteOutcome.REFUSED)
        self.assertIn(0, host.rows)

    def test_markers_derived_from_status(self):
        sm = RowStateMachine()
        self.assertEqual(sm.markers_for(None), RowMarkers())
        self.assertEqual(
            sm.markers_for(RowStatus.DRAFT),
            RowMarkers(locked=False, published=False, editable=True),
        )
        self.assertEqual(
            sm.markers_for(RowStatus.LOCKED),
            RowMarkers(locked=True, published=False, editable=False),
        )
        self.assertEqual(
            sm.markers_for(RowStatus.PUBLISHED),
            RowMarkers(locked=True, published=True, editable=False),
        )

    def test_refresh_only_touches_given_rows(self):
        sm, host = self._machine({0: {"status": 1}, 1: {"status": 2}, 2: {"status": 0}})
        markers = {}
        sm.refresh(host, [0, 2], markers)
        self.assertEqual(set(markers), {0, 2})
        self.assertTrue(markers[0].locked)
        self.assertTrue(markers[2].editable)

    def test_refresh_is_idempotent(self):
        sm, host = self._machine({0: {"status": 2}})
        first = dict(sm.refresh(host, [0], {}))
        second = dict(sm.refresh(host, [0], {0: first[0]}))
        self.assertEqual(first, second)

    def test_unpublish_drops_published_marker_keeps_locked(self):
        sm, host = self._machine({0: {"status": 2}})
        markers = sm.refresh(host, [0], {})
        self.assertTrue(markers[0].published)
        sm.unpublish(host, 0)
        sm.refresh(host, [0], markers)
        self.assertEqual(host.rows[0]["status"], 1)
        self.assertFalse(markers[0].published)
        self.assertTrue(markers[0].locked)

    def test_editability_predicate(self):
        sm = RowStateMachine()
        draft = sm.markers_for(RowStatus.DRAFT)
        locked = sm.markers_for(RowStatus.LOCKED)
        editable_col = ColumnSpec("val", editable=True)
        header_col = ColumnSpec("val", header_editable=True)
        plain_col = ColumnSpec("val")
        self.assertTrue(sm.is_editable(draft, editable_col))
        self.assertTrue(sm.is_editable(draft, header_col))
        self.assertFalse(sm.is_editable(draft, plain_col))
        self.assertFalse(sm.is_editable(locked, editable_col))
        self.assertFalse(sm.is_editable(draft, editable_col, row_override=False))
        self.assertFalse(sm.is_editable(draft, None))


if __name__ == "__main__":
    unittest.main()
