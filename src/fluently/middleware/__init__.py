"""Pipeline stages for fluently clients.

``compose`` folds registered stages around the terminal transport call.
The logger, retry and tracing stages are ready to use via
``ClientBuilder.use_logging``, ``use_retry`` and ``use_tracing``.
"""

from .base import Middleware, MiddlewareFactory, MiddlewareRegistration, compose, merge_options
from .logging import LoggerMiddleware, LoggerMiddlewareOptions, get_logging_options, with_logging_options
from .retry import RetryMiddleware, RetryMiddlewareOptions
from .tracing import (
    RequestHistoryTracer,
    RequestTracer,
    TraceRecord,
    TracingMiddleware,
    TracingMiddlewareOptions,
    get_trace_id,
)


__all__ = [
    'LoggerMiddleware',
    'LoggerMiddlewareOptions',
    'Middleware',
    'MiddlewareFactory',
    'MiddlewareRegistration',
    'RequestHistoryTracer',
    'RequestTracer',
    'RetryMiddleware',
    'RetryMiddlewareOptions',
    'TraceRecord',
    'TracingMiddleware',
    'TracingMiddlewareOptions',
    'compose',
    'get_logging_options',
    'get_trace_id',
    'merge_options',
    'with_logging_options',
]
