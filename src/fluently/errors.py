"""Exception types raised by fluently clients and the client factory."""

from __future__ import annotations

import typing as _t

if _t.TYPE_CHECKING:
    from .models import Request, Response

__all__ = [
    "FluentlyError",
    "ClientValidationError",
    "ClientConflictError",
    "ClientNotFoundError",
    "ClientDisposedError",
    "TransportError",
    "HttpStatusError",
]


class FluentlyError(Exception):
    """Base class for all fluently errors."""


class ClientValidationError(FluentlyError, ValueError):
    """Raised when client options are missing a mandatory field."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field

    @classmethod
    def field_not_specified(cls, field: str) -> ClientValidationError:
        return cls(f"Client option '{field}' must be specified.", field=field)


class ClientConflictError(FluentlyError, KeyError):
    """Raised when registering an identifier that is already taken."""

    def __init__(self, identifier: str):
        super().__init__(f"Client '{identifier}' is already registered.")
        self.identifier = identifier

    def __str__(self) -> str:
        return self.args[0]


class ClientNotFoundError(FluentlyError, KeyError):
    """Raised when looking up an identifier that is not registered."""

    def __init__(self, identifier: str):
        super().__init__(f"Client '{identifier}' not registered.")
        self.identifier = identifier

    def __str__(self) -> str:
        return self.args[0]


class ClientDisposedError(FluentlyError, RuntimeError):
    """Raised when sending through a client that has been disposed."""


class TransportError(FluentlyError):
    """Raised when the terminal network call fails (connection, timeout, protocol)."""

    def __init__(self, message: str, request: Request | None = None):
        super().__init__(message)
        self.request = request


class HttpStatusError(FluentlyError):
    """Raised by ``Response.raise_for_status`` for 4xx/5xx responses."""

    def __init__(self, message: str, response: Response):
        super().__init__(message)
        self.response = response
