"""Retry middleware backed by tenacity."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import TransportError
from ..models import Request, Response, SendFunction
from .base import Middleware

__all__ = [
    "RetryMiddlewareOptions",
    "RetryMiddleware",
]

logger = logging.getLogger("fluently.middleware.retry")


class RetryMiddlewareOptions(BaseModel):
    """Retry settings. ``max_retries`` counts total attempts."""

    max_retries: int = 3
    retry_min_wait: float = 1.0
    retry_max_wait: float = 10.0
    retry_on_status_codes: list[int] = Field(default_factory=lambda: [429, 500, 502, 503, 504])


def _last_outcome(retry_state: RetryCallState) -> Response:
    # Re-raises the last TransportError, or hands back the last retryable response.
    return retry_state.outcome.result()


class RetryMiddleware(Middleware):
    """Re-sends the request on transport failures and retryable status codes.

    When attempts run out the last failure propagates unchanged, or, for
    status-code retries, the last response is returned to the caller.
    """

    def __init__(self, next_handler: SendFunction, options: RetryMiddlewareOptions | None = None):
        super().__init__(next_handler, options or RetryMiddlewareOptions())

    def _should_retry_response(self, response: Response) -> bool:
        return response.status_code in self.options.retry_on_status_codes

    def _create_retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=(
                retry_if_exception_type(TransportError)
                | retry_if_result(self._should_retry_response)
            ),
            stop=stop_after_attempt(self.options.max_retries),
            wait=wait_exponential(
                multiplier=1,
                min=self.options.retry_min_wait,
                max=self.options.retry_max_wait,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            retry_error_callback=_last_outcome,
        )

    async def invoke(self, request: Request) -> Response:
        return await self._create_retrying()(self.next_handler, request)
