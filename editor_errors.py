class TableEditorError(Exception):
    """Base class for table editor errors."""


class ValidationFailure(TableEditorError):
    """Staged input failed validation; the session stays open."""

    def __init__(self, message: str = "Validation failed", column=None):
        super().__init__(message)
        self.column = column


class TransitionRefused(TableEditorError):
    """A status transition is not permitted from the row's current state."""


class SessionConflict(TableEditorError):
    """Another edit session is active and could not be resolved."""


class PrerequisiteMissing(TableEditorError):
    """The host lacks a required version or capability."""
