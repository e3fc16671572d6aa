import logging
from typing import Callable, Optional

import config_paths
from dirty_ledger import DirtyLedger
from edit_session import EditSessionController
from editor_errors import PrerequisiteMissing
from row_state import DeleteOutcome, RowStateMachine
from table_editor_context import TableEditorContext

logger = logging.getLogger(__name__)

REQUIRED_HOST_CAPABILITIES = (
    "column",
    "column_dtype",
    "column_dtypes",
    "row_labels",
    "has_row",
    "row_data",
    "records",
    "cell",
    "set_cell",
    "set_row_data",
    "add_row",
    "remove_row",
    "replace_rows",
    "visible_rows",
    "select",
    "draw",
)


def check_host(host) -> None:
    missing = [name for name in REQUIRED_HOST_CAPABILITIES if not callable(getattr(host, name, None))]
    for attr in ("columns", "events"):
        if getattr(host, attr, None) is None:
            missing.append(attr)
    if missing:
        raise PrerequisiteMissing(f"Host is missing required capabilities: {', '.join(missing)}")


def _merged_config(config):
    if config is None:
        return config_paths.load_config()
    cfg = config_paths.default_config()
    cfg.update(config)
    return cfg


class TableEditor:
    """Inline row editing for one host table.

    Composes the row state machine, the dirty ledger and the edit session
    controller around a shared context, and listens to the host's "draw"
    and "row_saved" events.
    """

    def __init__(
        self,
        host,
        edit_handler: Optional[Callable] = None,
        validator: Optional[Callable] = None,
        set_status: Optional[Callable[[str, float], None]] = None,
        config=None,
    ):
        check_host(host)
        cfg = _merged_config(config)

        state_machine = RowStateMachine.from_columns(
            host.columns,
            status_name=cfg["STATUS_COLUMN"],
            deleted_name=cfg["DELETED_COLUMN"],
        )
        self.ctx = TableEditorContext(
            host=host,
            state_machine=state_machine,
            ledger=DirtyLedger(),
            _set_status=set_status or (lambda *_: None),
            config=cfg,
            edit_handler=edit_handler,
            validator=validator,
        )
        self.sessions = EditSessionController(self.ctx)

        if cfg["HIDE_DELETED_ROWS"] and hasattr(host, "hide_flagged_rows"):
            host.hide_flagged_rows(state_machine.deleted_column)

        host.table_editor = self
        self.ctx.ledger.snapshot(host)
        host.events.on("draw", self._on_draw)
        host.events.on("row_saved", self._on_row_saved)
        host.draw()
        logger.debug(
            f"Table editor attached (status={state_machine.status_column}, "
            f"deleted={state_machine.deleted_column})"
        )

    # ---------- shortcuts ----------
    @property
    def host(self):
        return self.ctx.host

    @property
    def state_machine(self):
        return self.ctx.state_machine

    @property
    def ledger(self):
        return self.ctx.ledger

    @property
    def active_session(self):
        return self.ctx.session

    # ---------- events ----------
    def _on_draw(self):
        self.refresh_status()

    def _on_row_saved(self, index, data=None):
        self.update_row_state(index)

    def detach(self):
        self.host.events.off("draw", self._on_draw)
        self.host.events.off("row_saved", self._on_row_saved)
        self.host.table_editor = None

    # ---------- edit sessions ----------
    def open_session(self, row, column=None) -> bool:
        if self.ctx.edit_handler is not None:
            return bool(self.ctx.edit_handler(self, row, column))
        return self.sessions.open_session(row, column)

    def add_row(self) -> bool:
        return self.sessions.open_new_row()

    def stage_input(self, column, value) -> bool:
        return self.sessions.stage_input(column, value)

    def set_focus(self, column) -> bool:
        return self.sessions.set_focus(column)

    def commit_session(self) -> bool:
        return self.sessions.commit_session()

    def discard_session(self) -> bool:
        return self.sessions.discard_session()

    def resolve_session(self) -> bool:
        return self.sessions.resolve_session()

    def is_editable(self, row, column) -> bool:
        return self.sessions.is_editable(row, column)

    def set_row_editable(self, row, editable: Optional[bool]) -> None:
        if editable is None:
            self.ctx.row_overrides.pop(row, None)
        else:
            self.ctx.row_overrides[row] = bool(editable)

    # ---------- dirty ledger ----------
    def get_dirty_rows(self):
        return self.ledger.dirty_rows()

    def save_baseline(self):
        self.ledger.snapshot(self.host)
        self.host.events.emit("baseline_saved")

    def rollback(self):
        self.ctx.session = None
        self.ctx.markers.clear()
        self.ledger.rollback(self.host)
        self.host.events.emit("rollback")

    def update_row_state(self, row) -> bool:
        dirty = self.ledger.reconcile(self.host, row)
        if self.host.has_row(row):
            self.state_machine.refresh(self.host, [row], self.ctx.markers)
        else:
            self.ctx.markers.pop(row, None)
        return dirty

    # ---------- row status ----------
    def status_of(self, row):
        return self.state_machine.status_of(self.host, row)

    def markers(self, row):
        return self.sessions.row_markers(row)

    def refresh_status(self):
        self.state_machine.refresh(self.host, self.host.visible_rows(), self.ctx.markers)

    def _transition(self, selector, transition) -> int:
        changed = 0
        for row in self.host.select(selector):
            if transition(self.host, row):
                self.update_row_state(row)
                changed += 1
        return changed

    def lock_rows(self, selector=None) -> int:
        return self._transition(selector, self.state_machine.lock)

    def unlock_rows(self, selector=None) -> int:
        return self._transition(selector, self.state_machine.unlock)

    def publish_rows(self, selector=None) -> int:
        return self._transition(selector, self.state_machine.publish)

    def unpublish_rows(self, selector=None) -> int:
        return self._transition(selector, self.state_machine.unpublish)

    def delete_row(self, row) -> bool:
        session = self.ctx.session
        outcome = self.state_machine.delete(self.host, row)
        if outcome is DeleteOutcome.REFUSED:
            self.ctx._set_status("Locked or published rows cannot be deleted", 2)
            return False

        if session is not None and not session.is_new and session.row == row:
            self.ctx.session = None

        if outcome is DeleteOutcome.SOFT_DELETED:
            self.host.events.emit("row_saved", index=row, data=self.host.row_data(row))
        else:
            self.ledger.discard(row)
            self.ctx.markers.pop(row, None)
        self.host.draw()
        return True


def attach(host, **options):
    """Enable inline editing on a host table.

    Returns the host's existing editor when one is already attached, and
    None when editing is not enabled by the options or the configured
    default.
    """
    existing = getattr(host, "table_editor", None)
    if existing is not None:
        return existing

    cfg = _merged_config(options.pop("config", None))
    editable = options.pop("editable", None)
    if editable is None:
        editable = cfg["EDITABLE_DEFAULT"]
    if not editable:
        return None
    return TableEditor(host, config=cfg, **options)
