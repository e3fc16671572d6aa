import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Iterable, Optional

from editor_errors import TransitionRefused

logger = logging.getLogger(__name__)


class RowStatus(IntEnum):
    DRAFT = 0
    LOCKED = 1
    PUBLISHED = 2

    @classmethod
    def from_value(cls, value) -> Optional["RowStatus"]:
        """Parse a stored status cell. Missing or unknown values give None."""
        if value is None:
            return None
        if isinstance(value, RowStatus):
            return value
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring unrecognised row status {value!r}")
            return None


@dataclass(frozen=True)
class RowMarkers:
    locked: bool = False
    published: bool = False
    editable: bool = True


# Draft is both "unlocked" and "unpublished"
STATUS_MARKERS = {
    RowStatus.DRAFT: RowMarkers(locked=False, published=False, editable=True),
    RowStatus.LOCKED: RowMarkers(locked=True, published=False, editable=False),
    RowStatus.PUBLISHED: RowMarkers(locked=True, published=True, editable=False),
}


class DeleteOutcome(Enum):
    REFUSED = "refused"
    SOFT_DELETED = "soft_deleted"
    REMOVED = "removed"


def resolve_column(columns, name: Optional[str]) -> Optional[str]:
    """Find the key of the column playing a role, or None if the table has none."""
    if not name:
        return None
    for spec in columns:
        if spec.matches(name):
            return spec.key
    return None


class RowStateMachine:
    """Row lifecycle transitions and the presentation markers derived from them."""

    def __init__(self, status_column: Optional[str] = None, deleted_column: Optional[str] = None):
        self.status_column = status_column
        self.deleted_column = deleted_column

    @classmethod
    def from_columns(cls, columns, status_name="status", deleted_name="deleted"):
        return cls(
            status_column=resolve_column(columns, status_name),
            deleted_column=resolve_column(columns, deleted_name),
        )

    # ---------- status ----------
    def status_of(self, host, label) -> Optional[RowStatus]:
        if self.status_column is None or not host.has_row(label):
            return None
        return RowStatus.from_value(host.cell(label, self.status_column))

    def _set_status(self, host, label, status: RowStatus) -> bool:
        if self.status_column is None or not host.has_row(label):
            return False
        host.set_cell(label, self.status_column, int(status))
        logger.debug(f"Row {label} -> {status.name}")
        return True

    def unlock(self, host, label) -> bool:
        return self._set_status(host, label, RowStatus.DRAFT)

    def lock(self, host, label) -> bool:
        return self._set_status(host, label, RowStatus.LOCKED)

    def publish(self, host, label) -> bool:
        return self._set_status(host, label, RowStatus.PUBLISHED)

    def unpublish(self, host, label) -> bool:
        if self.status_of(host, label) != RowStatus.PUBLISHED:
            return False
        return self._set_status(host, label, RowStatus.LOCKED)

    def delete(self, host, label) -> DeleteOutcome:
        """Gate and apply a delete.

        Locked and published rows are refused. A draft row is flagged
        deleted; a row without any status was never saved and is removed
        from storage outright.
        """
        if not host.has_row(label):
            return DeleteOutcome.REFUSED
        status = self.status_of(host, label)
        try:
            self._check_deletable(label, status)
        except TransitionRefused as exc:
            logger.debug(f"Delete refused: {exc}")
            return DeleteOutcome.REFUSED
        if status is None:
            host.remove_row(label)
            return DeleteOutcome.REMOVED
        host.set_cell(label, self.deleted_column, True)
        return DeleteOutcome.SOFT_DELETED

    def _check_deletable(self, label, status: Optional[RowStatus]) -> None:
        if status in (RowStatus.LOCKED, RowStatus.PUBLISHED):
            raise TransitionRefused(f"row {label} is {status.name.lower()}")
        if status is not None and self.deleted_column is None:
            raise TransitionRefused(f"row {label} has no deleted column to flag")

    # ---------- markers ----------
    def markers_for(self, status: Optional[RowStatus]) -> RowMarkers:
        if status is None:
            return RowMarkers()
        return STATUS_MARKERS[status]

    def refresh(self, host, labels: Iterable, markers: Dict) -> Dict:
        for label in labels:
            markers[label] = self.markers_for(self.status_of(host, label))
        return markers

    def is_editable(self, markers: Optional[RowMarkers], column, row_override: Optional[bool] = None) -> bool:
        if column is None or row_override is False:
            return False
        if markers is not None and not markers.editable:
            return False
        return bool(column.editable) or column.header_editable is True
