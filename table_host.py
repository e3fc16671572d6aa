import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pandas as pd

from editor_errors import PrerequisiteMissing
from pagination import Paginator
from table_events import EventChannel

logger = logging.getLogger(__name__)

MIN_PANDAS_VERSION = "1.3"


def _release(version: str) -> tuple:
    """Major, minor and micro of a version string; missing parts count as 0."""
    numbers = [int(n) for n in re.findall(r"\d+", version or "")[:3]]
    return tuple(numbers + [0] * (3 - len(numbers)))


def version_at_least(current: str, minimum: str) -> bool:
    return _release(current) >= _release(minimum)


def to_python(value):
    """Normalise a stored cell value so rows compare by value."""
    if value is None:
        return None
    try:
        missing = pd.isna(value)
    except (TypeError, ValueError):
        missing = False
    if isinstance(missing, (bool, np.bool_)) and missing:
        return None
    if isinstance(value, np.datetime64):
        return pd.Timestamp(value)
    if isinstance(value, np.generic):
        return value.item()
    return value


def _is_flag_set(value) -> bool:
    value = to_python(value)
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() not in {"", "0", "false", "no"}
    return bool(value)


@dataclass
class ColumnSpec:
    key: str
    name: Optional[str] = None
    visible: bool = True
    editable: bool = False
    header_editable: Optional[bool] = None
    input_type: str = "text"  # text | select
    options: Optional[Any] = None

    def matches(self, name: str) -> bool:
        return self.key == name or self.name == name


class DataFrameHost:
    """Host tabular component backed by a pandas DataFrame.

    Rows are addressed by index label. Labels are never reused, so a label
    handed out once keeps pointing at the same row across removal and
    rollback.
    """

    def __init__(
        self,
        df: pd.DataFrame,
        columns: Optional[List[ColumnSpec]] = None,
        page_size: int = 1000,
        events: Optional[EventChannel] = None,
    ):
        if not version_at_least(pd.__version__, MIN_PANDAS_VERSION):
            raise PrerequisiteMissing(
                f"pandas {MIN_PANDAS_VERSION} or newer is required (found {pd.__version__})"
            )

        if df is None:
            df = pd.DataFrame()
        df = df.copy()
        if not df.index.is_unique or not pd.api.types.is_integer_dtype(df.index.dtype):
            logger.debug("Re-indexing DataFrame to integer row labels")
            df = df.reset_index(drop=True)
        self._df = df

        specs = {spec.key: spec for spec in (columns or [])}
        self.columns: List[ColumnSpec] = [
            specs.get(key, ColumnSpec(key=key)) for key in self._df.columns
        ]

        self.events = events if events is not None else EventChannel()
        self.paginator = Paginator(page_size=page_size)
        self.table_editor = None

        self._next_label = int(self._df.index.max()) + 1 if len(self._df) else 0
        self._filter: Optional[Callable[[dict], bool]] = None
        self._sort_key: Optional[str] = None
        self._sort_ascending = True
        self._hidden_flag_column: Optional[str] = None

        self.paginator.update_labels(self._ordered_labels())

    # ---------- storage ----------
    @property
    def df(self) -> pd.DataFrame:
        return self._df

    @property
    def column_keys(self) -> List[str]:
        return [spec.key for spec in self.columns]

    def column(self, key: str) -> Optional[ColumnSpec]:
        for spec in self.columns:
            if spec.key == key:
                return spec
        return None

    def column_dtype(self, key: str):
        if key not in self._df.columns:
            return None
        return self._df[key].dtype

    def column_dtypes(self) -> Dict[str, Any]:
        return {key: self._df[key].dtype for key in self.column_keys}

    def row_labels(self) -> list:
        return list(self._df.index)

    def has_row(self, label) -> bool:
        try:
            return label in self._df.index
        except TypeError:
            return False

    def row_data(self, label) -> Dict[str, Any]:
        if not self.has_row(label):
            raise KeyError(label)
        return {key: to_python(self._df.at[label, key]) for key in self.column_keys}

    def records(self) -> Dict[Any, Dict[str, Any]]:
        return {label: self.row_data(label) for label in self._df.index}

    def cell(self, label, key):
        return to_python(self._df.at[label, key])

    def set_cell(self, label, key, value) -> None:
        if not self.has_row(label):
            raise KeyError(label)
        self._ensure_column_accepts(key, value)
        self._df.at[label, key] = value

    def set_row_data(self, label, data: Dict[str, Any]) -> None:
        for key in self.column_keys:
            if key in data:
                self.set_cell(label, key, data[key])

    def build_default_row(self) -> Dict[str, Any]:
        return {key: None for key in self.column_keys}

    def add_row(self, data: Optional[Dict[str, Any]] = None):
        row = self.build_default_row()
        row.update({k: v for k, v in (data or {}).items() if k in row})
        for key, value in row.items():
            self._ensure_column_accepts(key, value)
        label = self._next_label
        self._next_label += 1
        self._df.loc[label] = [row[key] for key in self.column_keys]
        logger.debug(f"Added row {label}")
        return label

    def remove_row(self, label) -> None:
        if not self.has_row(label):
            return
        self._df = self._df.drop(index=label)
        logger.debug(f"Removed row {label}")

    def replace_rows(self, rows: Dict[Any, Dict[str, Any]], dtypes: Optional[Dict[str, Any]] = None) -> None:
        """Swap in a whole row set, casting columns back to `dtypes` where the values allow."""
        if dtypes is None:
            dtypes = self.column_dtypes()
        labels = list(rows.keys())
        if labels:
            df = pd.DataFrame(
                [rows[label] for label in labels],
                index=labels,
                columns=self.column_keys,
            )
        else:
            df = pd.DataFrame(columns=self.column_keys)
        for key in self.column_keys:
            if key in dtypes:
                df[key] = _restore_dtype(df[key], dtypes[key])
        self._df = df
        if labels:
            self._next_label = max(self._next_label, int(max(labels)) + 1)

    def _ensure_column_accepts(self, key, value) -> None:
        if key not in self._df.columns:
            raise KeyError(key)
        dtype = self._df[key].dtype
        if _dtype_accepts(dtype, value):
            return
        logger.debug(f"Upcasting column '{key}' from {dtype} to object")
        self._df[key] = self._df[key].astype(object)

    # ---------- view ----------
    def hide_flagged_rows(self, column: Optional[str]) -> None:
        self._hidden_flag_column = column

    def set_filter(self, predicate: Optional[Callable[[dict], bool]]) -> None:
        self._filter = predicate
        self.paginator.page_index = 0
        self.draw()

    def sort_by(self, key: Optional[str], ascending: bool = True) -> None:
        self._sort_key = key
        self._sort_ascending = ascending
        self.draw()

    def next_page(self) -> None:
        self.paginator.next_page()
        self.draw()

    def prev_page(self) -> None:
        self.paginator.prev_page()
        self.draw()

    def _ordered_labels(self) -> list:
        df = self._df
        if self._sort_key is not None and self._sort_key in df.columns:
            df = df.sort_values(
                self._sort_key, ascending=self._sort_ascending, kind="stable"
            )
        labels = []
        for label in df.index:
            if self._hidden_flag_column is not None and _is_flag_set(
                df.at[label, self._hidden_flag_column]
            ):
                continue
            if self._filter is not None and not self._filter(self.row_data(label)):
                continue
            labels.append(label)
        return labels

    def visible_rows(self) -> list:
        return self.paginator.page_labels

    def draw(self) -> None:
        self.paginator.update_labels(self._ordered_labels())
        self.events.emit("draw")

    # ---------- selection ----------
    def select(self, selector=None) -> list:
        if selector is None:
            return self.row_labels()
        if callable(selector):
            return [label for label in self._df.index if selector(self.row_data(label))]
        if isinstance(selector, (list, tuple, set, frozenset, range, pd.Index, np.ndarray)):
            return [label for label in selector if self.has_row(label)]
        return [selector] if self.has_row(selector) else []


def _dtype_accepts(dtype, value) -> bool:
    if pd.api.types.is_object_dtype(dtype):
        return True
    if value is None:
        return pd.api.types.is_float_dtype(dtype) or pd.api.types.is_datetime64_any_dtype(
            dtype
        )
    if pd.api.types.is_bool_dtype(dtype):
        return isinstance(value, (bool, np.bool_))
    if isinstance(value, (bool, np.bool_)):
        return False
    if pd.api.types.is_integer_dtype(dtype):
        return isinstance(value, (int, np.integer))
    if pd.api.types.is_float_dtype(dtype):
        return isinstance(value, (int, float, np.integer, np.floating))
    if pd.api.types.is_datetime64_any_dtype(dtype):
        return isinstance(value, (pd.Timestamp, np.datetime64))
    if pd.api.types.is_string_dtype(dtype):
        return isinstance(value, str)
    return False


def _restore_dtype(series: pd.Series, dtype) -> pd.Series:
    if series.dtype == dtype:
        return series
    nullable = (
        pd.api.types.is_object_dtype(dtype)
        or pd.api.types.is_float_dtype(dtype)
        or pd.api.types.is_datetime64_any_dtype(dtype)
    )
    if series.isna().any() and not nullable:
        return series
    try:
        return series.astype(dtype)
    except (TypeError, ValueError):
        return series
