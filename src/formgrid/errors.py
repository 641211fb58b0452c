"""Exception taxonomy for grid download runs."""
from __future__ import annotations


class FormGridError(RuntimeError):
    """Base class for every error raised by formgrid."""


class DriverError(FormGridError):
    """The automation backend failed to carry out a command."""


class ElementNotFound(DriverError):
    """An expected UI element is not present in the current search scope."""


class OptionNotFound(FormGridError):
    """A dropdown has no option for the requested value."""


class StaleFrameError(FormGridError):
    """A form action was attempted while the frame scope is stale."""


class FrameNotFound(FormGridError):
    """The form's embedded frame could not be located after navigation (fatal)."""


class RecoveryFailed(FormGridError):
    """Session state could not be restored after a failed attempt (fatal)."""
