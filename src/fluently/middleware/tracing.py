"""Tracing middleware: per-request hooks for history and debugging."""

from __future__ import annotations

import abc
import collections
import logging
import time
import typing as _t
import uuid
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from ..models import Request, Response, SendFunction
from .base import Middleware

__all__ = [
    "RequestTracer",
    "TracingMiddlewareOptions",
    "TracingMiddleware",
    "RequestHistoryTracer",
    "TraceRecord",
    "get_trace_id",
]

logger = logging.getLogger("fluently.middleware.tracing")

_TRACE_ID_KEY = "TRACE_ID"


def get_trace_id(request: Request) -> str | None:
    """Return the id the tracing stage assigned to ``request``, if any."""
    return _t.cast("str | None", request.items.get(_TRACE_ID_KEY))


class RequestTracer(abc.ABC):
    """Abstract base class for request tracing.

    Hooks run inside the tracing stage. ``get_trace_id(request)`` is set by
    the time ``on_request_start`` is called and stays the same for the
    matching end or error hook.
    """

    @abc.abstractmethod
    async def on_request_start(self, request: Request) -> None:
        """Called when a request is about to be sent."""
        pass

    @abc.abstractmethod
    async def on_request_end(self, request: Request, response: Response) -> None:
        """Called with the timed response; ``response.elapsed`` is set."""
        pass

    @abc.abstractmethod
    async def on_request_error(self, request: Request, error: Exception, elapsed: float) -> None:
        """Called when the rest of the pipeline raises."""
        pass


class TracingMiddlewareOptions(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    tracers: list[RequestTracer] = Field(default_factory=list)


class TracingMiddleware(Middleware):
    """Notifies tracers around the rest of the pipeline and times it."""

    def __init__(self, next_handler: SendFunction, options: TracingMiddlewareOptions | None = None):
        super().__init__(next_handler, options or TracingMiddlewareOptions())

    async def invoke(self, request: Request) -> Response:
        tracers = self.options.tracers
        if not tracers:
            return await self.next_handler(request)

        request.items.setdefault(_TRACE_ID_KEY, uuid.uuid4().hex)
        start_time = time.perf_counter()
        for tracer in tracers:
            await tracer.on_request_start(request)

        try:
            response = await self.next_handler(request)
        except Exception as e:
            elapsed = time.perf_counter() - start_time
            logger.debug(f"{request} failed after {elapsed:.3f}s: {e}")
            for tracer in tracers:
                await tracer.on_request_error(request, e, elapsed)
            raise

        response = response.copy_with(elapsed=time.perf_counter() - start_time)
        for tracer in tracers:
            await tracer.on_request_end(request, response)
        return response


@dataclass(frozen=True)
class TraceRecord:
    """A finished request as seen by the tracing stage."""

    trace_id: str
    request: Request
    elapsed: float
    response: Response | None = None
    error: Exception | None = None

    @property
    def successful(self) -> bool:
        return self.error is None and self.response is not None and self.response.is_success


class RequestHistoryTracer(RequestTracer):
    """Keeps the most recent ``max_history`` finished requests.

    Requests are matched by their trace id, so retries or concurrent sends
    of equal requests never overwrite each other.
    """

    def __init__(self, max_history: int = 100):
        self._history: collections.deque[TraceRecord] = collections.deque(maxlen=max_history)
        self._pending: dict[str, Request] = {}

    @property
    def pending(self) -> list[Request]:
        """Requests that started but have not finished yet."""
        return list(self._pending.values())

    async def on_request_start(self, request: Request) -> None:
        self._pending[get_trace_id(request) or ""] = request

    async def on_request_end(self, request: Request, response: Response) -> None:
        trace_id = get_trace_id(request) or ""
        self._pending.pop(trace_id, None)
        self._history.append(
            TraceRecord(trace_id, request, response.elapsed or 0.0, response=response)
        )

    async def on_request_error(self, request: Request, error: Exception, elapsed: float) -> None:
        trace_id = get_trace_id(request) or ""
        self._pending.pop(trace_id, None)
        self._history.append(TraceRecord(trace_id, request, elapsed, error=error))

    def get_history(self) -> list[TraceRecord]:
        return list(self._history)

    def get_recent_failures(self) -> list[TraceRecord]:
        return [record for record in self._history if not record.successful]

    def clear_history(self) -> None:
        self._history.clear()
