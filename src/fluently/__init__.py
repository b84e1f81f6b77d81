"""fluently: a configurable HTTP client.

Clients are registered by name on a ``ClientFactory``; each sends its
requests through an ordered middleware pipeline before the httpx
transport call.
"""

from .builder import ClientBuilder, ClientOptions
from .client import Client
from .config import FluentlyConfig, get_config, load_config
from .errors import (
    ClientConflictError,
    ClientDisposedError,
    ClientNotFoundError,
    ClientValidationError,
    FluentlyError,
    HttpStatusError,
    TransportError,
)
from .factory import ClientFactory, default_client_factory
from .middleware import (
    LoggerMiddleware,
    LoggerMiddlewareOptions,
    Middleware,
    MiddlewareRegistration,
    RetryMiddleware,
    RetryMiddlewareOptions,
    TracingMiddleware,
    compose,
    merge_options,
)
from .models import Request, RequestBuilder, Response, SendFunction


__all__ = [
    'Client',
    'ClientBuilder',
    'ClientConflictError',
    'ClientDisposedError',
    'ClientFactory',
    'ClientNotFoundError',
    'ClientOptions',
    'ClientValidationError',
    'FluentlyConfig',
    'FluentlyError',
    'HttpStatusError',
    'LoggerMiddleware',
    'LoggerMiddlewareOptions',
    'Middleware',
    'MiddlewareRegistration',
    'Request',
    'RequestBuilder',
    'Response',
    'RetryMiddleware',
    'RetryMiddlewareOptions',
    'SendFunction',
    'TracingMiddleware',
    'TransportError',
    'compose',
    'default_client_factory',
    'get_config',
    'load_config',
    'merge_options',
]

# Version of the fluently package
version: str = '0.1.0'
