"""
Error taxonomy for the dashboard core. Nothing here is retried automatically:
every retry is operator-initiated.
"""


class DashboardError(Exception):
    """Base class for all dashboard errors."""


class ValidationError(DashboardError):
    """Rejected on the client side; never reaches the remote store."""


class InvalidTransition(ValidationError):
    """Order status change not allowed by the transition table."""
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change status from {current} to {target}")


class RemoteError(DashboardError):
    """HTTP or network failure talking to a remote store."""
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(DashboardError):
    """Resource vanished (404) between list fetch and detail fetch."""


class ParseError(DashboardError):
    """Persisted data could not be decoded."""


class ChannelError(DashboardError):
    """Event source connection dropped."""
