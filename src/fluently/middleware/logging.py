"""Logger middleware: logs outgoing requests and incoming responses."""

from __future__ import annotations

import logging
import typing as _t

from pydantic import BaseModel

from ..models import Request, RequestBuilder, Response, SendFunction
from .base import Middleware, merge_options

__all__ = [
    "LoggerMiddlewareOptions",
    "LoggerMiddleware",
    "with_logging_options",
    "get_logging_options",
]

_LOGGING_OPTIONS_KEY = "LOGGING_OPTIONS"


class LoggerMiddlewareOptions(BaseModel):
    """Logging options, usable as client defaults or per request.

    Detailed logs include the body. Reading the body is costly, so only
    enable them for development or while diagnosing an issue.
    """

    should_log_detailed_request: bool | None = None
    should_log_detailed_response: bool | None = None


class LoggerMiddleware(Middleware):
    """Logs each request before dispatch and each response after it returns."""

    def __init__(
        self,
        next_handler: SendFunction,
        options: LoggerMiddlewareOptions | None = None,
        logger: logging.Logger | None = None,
    ):
        super().__init__(next_handler, options or LoggerMiddlewareOptions())
        self.logger = logger or logging.getLogger("fluently.middleware.logging")

    async def invoke(self, request: Request) -> Response:
        if not self.logger.isEnabledFor(logging.INFO):
            return await self.next_handler(request)

        options = get_logging_options(request, self.options)
        if request.content and options.should_log_detailed_request:
            self.logger.info(
                f"Pre-request... {request}\nContent: {_decode(request.content)}"
            )
        else:
            self.logger.info(f"Pre-request... {request}")

        response = await self.next_handler(request)

        if response.content and options.should_log_detailed_response:
            self.logger.info(f"Post-request... {response}\nContent: {response.text}")
        else:
            self.logger.info(f"Post-request... {response}")
        return response


def _decode(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


def _as_options(value: _t.Any) -> LoggerMiddlewareOptions:
    if isinstance(value, LoggerMiddlewareOptions):
        return value
    return LoggerMiddlewareOptions.model_validate(value)


def with_logging_options(
    builder: RequestBuilder, options: LoggerMiddlewareOptions | _t.Mapping[str, _t.Any]
) -> RequestBuilder:
    """Attach per-request logging options to a request builder.

    A mapping is validated into ``LoggerMiddlewareOptions`` first.
    """
    return builder.with_item(_LOGGING_OPTIONS_KEY, _as_options(options))


def get_logging_options(
    request: Request, default: LoggerMiddlewareOptions | None = None
) -> LoggerMiddlewareOptions:
    """Return the request's logging options merged over ``default``."""
    per_request = request.items.get(_LOGGING_OPTIONS_KEY)
    if per_request is not None:
        per_request = _as_options(per_request)
    return merge_options(per_request, default) or LoggerMiddlewareOptions()
