"""
Error taxonomy shared by services and routes.

Backend failures keep the backend's own message so it can be shown to the
user verbatim; local failures are raised before any network call.
"""


class BackendError(Exception):
    """Failure reported by (or while talking to) the hosted backend."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(BackendError):
    """Network or service failure. Safe to retry."""

    status_code = 503


class AuthorizationError(BackendError):
    status_code = 401


class NotFoundError(BackendError):
    status_code = 404


class ValidationError(Exception):
    """Input rejected locally; no network call has been made."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.message = message
        self.field = field


class WriteRefusedError(Exception):
    """Admin write refused because the dashboard tab is in the background."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class WriteBusyError(Exception):
    """Another catalog write held the lock for longer than the wait timeout."""

    def __init__(self, message: str = "Another operation is still in progress. Please try again."):
        super().__init__(message)
        self.message = message


class OperationCancelled(Exception):
    def __init__(self, message: str = "Operation cancelled"):
        super().__init__(message)
        self.message = message
