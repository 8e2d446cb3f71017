"""Error taxonomy for the financial event engine."""


class AlmanacError(Exception):
    """Base class for all engine errors."""


class ValidationError(AlmanacError):
    """A required parameter is missing or invalid. Never retried."""


class InvalidTransitionError(ValidationError):
    """The requested status transition is not allowed (e.g. leaving Cancelled)."""


class TransientFetchError(AlmanacError):
    """The backend failed during a query or mutation.

    The controller captures this into its state; retrying is the caller's
    decision (via ``refetch()``).
    """


class StaleResultDiscarded(AlmanacError):
    """A cancelled or superseded query's result was dropped.

    Internal signal only, not shown to users.
    """


class NotFoundError(AlmanacError):
    """The addressed record does not exist."""
