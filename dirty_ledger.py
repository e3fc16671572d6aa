import copy
import logging
from types import MappingProxyType
from typing import Any, Dict

logger = logging.getLogger(__name__)


class DirtyLedger:
    """Baseline snapshot of every row plus the rows that diverge from it.

    Both maps hold deep copies keyed by row label; nothing here aliases the
    host's storage.
    """

    def __init__(self):
        self._baseline: Dict[Any, dict] = {}
        self._dtypes: Dict[str, Any] = {}
        self._dirty: Dict[Any, dict] = {}

    # ---------- save points ----------
    def snapshot(self, host) -> None:
        self._baseline = {
            label: copy.deepcopy(data) for label, data in host.records().items()
        }
        self._dtypes = dict(host.column_dtypes())
        self._dirty = {}
        logger.debug(f"Baseline captured for {len(self._baseline)} rows")

    def rollback(self, host) -> None:
        host.replace_rows(copy.deepcopy(self._baseline), dtypes=self._dtypes)
        self._dirty = {}
        logger.debug(f"Rolled back to baseline of {len(self._baseline)} rows")
        host.draw()

    # ---------- per row ----------
    def reconcile(self, host, label) -> bool:
        """Re-classify one row; returns True if it is dirty afterwards."""
        if not host.has_row(label):
            self._dirty.pop(label, None)
            return False
        current = host.row_data(label)
        if label in self._baseline and current == self._baseline[label]:
            self._dirty.pop(label, None)
            logger.debug(f"Row {label} clean")
            return False
        self._dirty[label] = copy.deepcopy(current)
        logger.debug(f"Row {label} dirty")
        return True

    def discard(self, label) -> None:
        self._dirty.pop(label, None)

    def is_dirty(self, label) -> bool:
        return label in self._dirty

    # ---------- views ----------
    def dirty_rows(self):
        return MappingProxyType(copy.deepcopy(self._dirty))

    def baseline(self):
        return MappingProxyType(copy.deepcopy(self._baseline))
