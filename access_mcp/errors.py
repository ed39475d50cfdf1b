"""Errors raised by the database gateway and the host automation layer."""

from fastmcp.exceptions import FastMCPError


class AccessError(FastMCPError):
    """Base class for all failures surfaced to clients as tool errors."""


class DatabaseNotFound(AccessError):
    """The database file does not exist."""


class ConnectionFailed(AccessError):
    """The backend could not open the database file."""


class NotConnected(AccessError):
    """An operation needing a database was called while disconnected."""

    def __init__(self, message: str = "Not connected to database"):
        super().__init__(message)


class BackendError(AccessError):
    """The backend rejected a query or statement."""


class InvalidDocument(AccessError):
    """An imported form or report document could not be read."""
