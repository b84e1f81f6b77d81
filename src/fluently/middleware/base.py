"""Middleware pipeline for fluently clients.

A pipeline is a chain of stages folded around a terminal send function.
Each stage is produced by a factory ``(next_handler, options) -> SendFunction``;
a ``Middleware`` subclass is such a factory, since calling the class with
those two arguments yields an awaitable-callable instance.
"""

from __future__ import annotations

import abc
import typing as _t
from dataclasses import dataclass

from pydantic import BaseModel

from ..models import Request, Response, SendFunction

__all__ = [
    "Middleware",
    "MiddlewareFactory",
    "MiddlewareRegistration",
    "compose",
    "merge_options",
]

MiddlewareFactory = _t.Callable[[SendFunction, _t.Any], SendFunction]

OptionsT = _t.TypeVar("OptionsT", bound=BaseModel)


class Middleware(abc.ABC):
    """Base class for class-based pipeline stages.

    Subclasses implement ``invoke`` and call ``self.next_handler(request)``
    to continue down the chain. Not calling it short-circuits the request.
    """

    def __init__(self, next_handler: SendFunction, options: _t.Any = None):
        self.next_handler = next_handler
        self.options = options

    @abc.abstractmethod
    async def invoke(self, request: Request) -> Response:
        """Process the request and return a response."""
        pass

    async def __call__(self, request: Request) -> Response:
        return await self.invoke(request)


@dataclass(frozen=True)
class MiddlewareRegistration:
    """A middleware factory together with the options it is created with."""

    factory: MiddlewareFactory
    options: _t.Any = None

    @property
    def name(self) -> str:
        return getattr(self.factory, "__name__", type(self.factory).__name__)

    def create(self, next_handler: SendFunction) -> SendFunction:
        return self.factory(next_handler, self.options)


def compose(
    registrations: _t.Sequence[MiddlewareRegistration],
    terminal: SendFunction,
) -> SendFunction:
    """Fold the registrations right-to-left around ``terminal``.

    The first registration ends up outermost: its request-side code runs
    first and its response-side code runs last.
    """
    send = terminal
    for registration in reversed(registrations):
        send = registration.create(send)
    return send


def merge_options(per_request: OptionsT | None, default: OptionsT | None) -> OptionsT | None:
    """Merge per-request options over defaults, field by field.

    Fields left as ``None`` on ``per_request`` fall back to ``default``;
    explicit values (including ``False``) win. Neither argument is modified.
    """
    if per_request is None:
        return default
    if default is None:
        return per_request
    return default.model_copy(update=per_request.model_dump(exclude_none=True))
