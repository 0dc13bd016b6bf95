"""Domain errors raised inside workflows and mapped to HTTP statuses at their boundary."""


class WorkflowError(Exception):
    """Base class for expected workflow failures.

    The message is safe to show to the caller.
    """
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(WorkflowError):
    """Malformed or missing input."""
    status_code = 400


class NotFound(WorkflowError):
    """Unknown activation code, order, or profile."""
    status_code = 404


class Conflict(WorkflowError):
    """The record is not in a state that allows the operation."""
    status_code = 400


class UpstreamFailure(WorkflowError):
    """A Supabase or Stripe call failed. Detail goes to the logs only."""
    status_code = 500
