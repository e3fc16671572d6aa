import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)


class EventChannel:
    """Synchronous named-event dispatch between the host and the editor."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}

    def on(self, event: str, callback: Callable) -> None:
        callbacks = self._listeners.setdefault(event, [])
        if callback not in callbacks:
            callbacks.append(callback)
            logger.debug(f"Connected listener for '{event}': {callback}")

    def off(self, event: str, callback: Callable) -> None:
        callbacks = self._listeners.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)
            logger.debug(f"Disconnected listener for '{event}': {callback}")

    def emit(self, event: str, **payload) -> None:
        # copy so a listener may disconnect itself while being notified
        for callback in list(self._listeners.get(event, [])):
            callback(**payload)

    def listeners(self, event: str) -> List[Callable]:
        return list(self._listeners.get(event, []))
