from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional


@dataclass
class TableEditorContext:
    host: Any
    state_machine: Any
    ledger: Any
    _set_status: Callable[[str, float], None]
    config: Dict[str, Any] = field(default_factory=dict)

    # Capabilities resolved once at construction
    edit_handler: Optional[Callable] = None
    validator: Optional[Callable] = None

    # Presentation markers of rows seen by status refresh, keyed by row label
    markers: Dict[Any, Any] = field(default_factory=dict)
    # Per-row editability overrides (False disables editing of that row)
    row_overrides: Dict[Any, bool] = field(default_factory=dict)

    # The single active edit session, if any
    session: Optional[Any] = None

    @property
    def events(self):
        return self.host.events
