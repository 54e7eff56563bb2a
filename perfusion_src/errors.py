"""Exceptions raised by the perfusion case tracker."""


class PerfusionError(Exception):
    """Base class for all tracker errors."""


class ValidationError(PerfusionError):
    """A requested change would violate a model invariant.

    The operation is declined and stored state is left unchanged.
    """


class InvalidTransition(PerfusionError):
    """A medication status change is not allowed from the current state."""

    def __init__(self, action: str, current_status, medication_type=None):
        self.action = action
        self.current_status = current_status
        self.medication_type = medication_type
        message = f"Cannot {action} a medication in status '{current_status.value}'"
        if medication_type is not None:
            message += f" (type '{medication_type.value}')"
        super().__init__(message)


class SourceUnavailable(PerfusionError):
    """The hospital data source is missing or unreadable."""


class StoreError(PerfusionError):
    """The backing repository failed to read or write."""
