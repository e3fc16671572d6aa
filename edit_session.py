import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from cell_coercion import coerce_cell_value, display_text
from editor_errors import SessionConflict, ValidationFailure

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "Finish editing the current row first"


@dataclass
class CellWidget:
    column: str
    input_type: str = "text"
    options: Optional[Any] = None
    initial: Any = ""
    value: Any = ""

    @property
    def changed(self) -> bool:
        return self.value != self.initial


@dataclass
class EditSession:
    row: Any  # host row label; None until a new row is committed
    is_new: bool = False
    widgets: Dict[str, CellWidget] = field(default_factory=dict)
    focus: Optional[str] = None

    def has_inputs(self) -> bool:
        return bool(self.widgets)

    def all_inputs_empty(self) -> bool:
        return not any(widget.value for widget in self.widgets.values())

    def staged_values(self) -> Dict[str, Any]:
        return {key: widget.value for key, widget in self.widgets.items()}


class EditSessionController:
    """Opens, commits and discards the table's single edit session."""

    def __init__(self, ctx):
        self.ctx = ctx

    # ---------- editability ----------
    def row_markers(self, label):
        markers = self.ctx.markers.get(label)
        if markers is None:
            sm = self.ctx.state_machine
            markers = sm.markers_for(sm.status_of(self.ctx.host, label))
        return markers

    def is_editable(self, label, column_key) -> bool:
        host = self.ctx.host
        if not host.has_row(label):
            return False
        return self.ctx.state_machine.is_editable(
            self.row_markers(label),
            host.column(column_key),
            self.ctx.row_overrides.get(label),
        )

    def editable_columns(self, label) -> List[str]:
        return [
            spec.key
            for spec in self.ctx.host.columns
            if spec.visible and self.is_editable(label, spec.key)
        ]

    # ---------- open ----------
    def open_session(self, label, column=None) -> bool:
        host = self.ctx.host
        active = self.ctx.session
        if active is not None and not active.is_new and active.row == label:
            return False
        if not host.has_row(label):
            return False

        keys = self.editable_columns(label)
        if not keys:
            self.ctx._set_status("Row is not editable", 2)
            return False

        try:
            self._resolve_active()
        except SessionConflict as exc:
            self.ctx._set_status(str(exc), 2)
            logger.debug(f"Open of row {label} refused: {exc}")
            return False

        data = host.row_data(label)
        session = EditSession(row=label)
        for key in keys:
            session.widgets[key] = self._build_widget(key, display_text(data.get(key)))
        session.focus = column if column in session.widgets else keys[0]
        self.ctx.session = session
        logger.debug(f"Opened edit session on row {label} (focus {session.focus})")
        return True

    def open_new_row(self) -> bool:
        if self.ctx.session is not None:
            self.ctx._set_status(CONFLICT_MESSAGE, 2)
            return False
        # a new row has no status yet, so every rendered column is editable
        keys = [spec.key for spec in self.ctx.host.columns if spec.visible]
        if not keys:
            self.ctx._set_status("No columns", 3)
            return False
        session = EditSession(row=None, is_new=True)
        for key in keys:
            session.widgets[key] = self._build_widget(key, "")
        session.focus = keys[0]
        self.ctx.session = session
        logger.debug("Opened edit session on a new row")
        return True

    def _resolve_active(self) -> None:
        if self.ctx.session is not None and not self.resolve_session():
            raise SessionConflict(CONFLICT_MESSAGE)

    def _build_widget(self, key, text) -> CellWidget:
        spec = self.ctx.host.column(key)
        return CellWidget(
            column=key,
            input_type=spec.input_type,
            options=spec.options,
            initial=text,
            value=text,
        )

    # ---------- staging ----------
    def stage_input(self, column, value) -> bool:
        session = self.ctx.session
        if session is None:
            return False
        widget = session.widgets.get(column)
        if widget is None:
            return False
        widget.value = "" if value is None else value
        return True

    def set_focus(self, column) -> bool:
        session = self.ctx.session
        if session is None or column not in session.widgets:
            return False
        session.focus = column
        return True

    # ---------- commit ----------
    def _validate(self, session) -> bool:
        validator = self.ctx.validator
        if validator is None:
            return True
        try:
            result = validator(session)
        except ValidationFailure as exc:
            self.ctx._set_status(str(exc), 3)
            return False
        if result is False:
            self.ctx._set_status("Validation failed", 3)
            return False
        return True

    def _coerce(self, key, value):
        if not self.ctx.config.get("COERCE_INPUTS", True):
            return value
        try:
            return coerce_cell_value(self.ctx.host.column_dtype(key), value)
        except (TypeError, ValueError) as exc:
            raise ValidationFailure(f"Invalid value for column '{key}'", column=key) from exc

    def _collect_values(self, session) -> Dict[str, Any]:
        host = self.ctx.host
        if session.is_new:
            values = {}
            for spec in host.columns:
                widget = session.widgets.get(spec.key)
                if not spec.visible or widget is None:
                    values[spec.key] = None
                else:
                    values[spec.key] = self._coerce(spec.key, widget.value)
            return values

        values = host.row_data(session.row)
        for key, widget in session.widgets.items():
            # an untouched widget keeps the stored value as-is
            if widget.changed:
                values[key] = self._coerce(key, widget.value)
        return values

    def commit_session(self) -> bool:
        session = self.ctx.session
        if session is None or not session.has_inputs():
            return False
        if session.is_new and session.all_inputs_empty():
            return self.discard_session()
        if not self._validate(session):
            return False
        try:
            values = self._collect_values(session)
        except ValidationFailure as exc:
            self.ctx._set_status(str(exc), 3)
            return False

        host = self.ctx.host
        if session.is_new:
            label = host.add_row(values)
        else:
            label = session.row
            host.set_row_data(label, values)

        host.draw()
        self.ctx.events.emit("row_saved", index=label, data=host.row_data(label))
        self.ctx.session = None
        logger.debug(f"Committed edit session on row {label}")
        return True

    # ---------- discard / resolve ----------
    def discard_session(self) -> bool:
        session = self.ctx.session
        if session is None:
            return False
        self.ctx.session = None
        logger.debug(
            "Discarded new row" if session.is_new else f"Cancelled edit of row {session.row}"
        )
        return True

    def resolve_session(self) -> bool:
        """Settle the active session the way a click-away does.

        All-empty inputs are discarded; anything else must validate and
        commit. Returns False when the session is still open afterwards.
        """
        session = self.ctx.session
        if session is None:
            return True
        if session.all_inputs_empty():
            return self.discard_session()
        return self.commit_session()
