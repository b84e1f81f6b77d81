"""Client builder and the immutable options it produces."""

from __future__ import annotations

import types
import typing as _t

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .middleware.base import MiddlewareFactory, MiddlewareRegistration
from .middleware.logging import LoggerMiddleware, LoggerMiddlewareOptions
from .middleware.retry import RetryMiddleware, RetryMiddlewareOptions
from .middleware.tracing import RequestTracer, TracingMiddleware, TracingMiddlewareOptions

if _t.TYPE_CHECKING:
    from .client import Client
    from .factory import ClientFactory

__all__ = [
    "ClientOptions",
    "ClientBuilder",
]


class ClientOptions(BaseModel):
    """Everything needed to construct a client. Frozen once built."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    identifier: str | None = None
    base_url: str | None = None
    timeout: float | None = None
    default_headers: _t.Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    middleware: tuple[MiddlewareRegistration, ...] = ()

    # Injected transport or client; neither is closed by Client.dispose
    transport: httpx.AsyncBaseTransport | None = None
    http_client: httpx.AsyncClient | None = None

    @field_validator("default_headers", mode="after")
    @classmethod
    def _read_only_headers(cls, headers: _t.Mapping[str, str]) -> _t.Mapping[str, str]:
        return types.MappingProxyType(dict(headers))


def _original_case(headers: httpx.Headers) -> dict[str, str]:
    # Headers.items() lower-cases names; raw keeps the case of the last write.
    return {
        name.decode(headers.encoding): value.decode(headers.encoding)
        for name, value in headers.raw
    }


class ClientBuilder:
    """Fluent builder accumulating client configuration.

    Every setter returns the builder. Later calls override earlier ones,
    which is how factory defaults, the defaults hook and caller settings
    layer on top of each other.
    """

    def __init__(self, factory: ClientFactory | None = None):
        self._factory = factory
        self._identifier: str | None = None
        self._base_url: str | None = None
        self._timeout: float | None = None
        self._headers = httpx.Headers()
        self._middleware: list[MiddlewareRegistration] = []
        self._transport: httpx.AsyncBaseTransport | None = None
        self._http_client: httpx.AsyncClient | None = None

    def with_identifier(self, identifier: str | None) -> ClientBuilder:
        self._identifier = identifier
        return self

    def with_base_url(self, base_url: str) -> ClientBuilder:
        self._base_url = base_url
        return self

    def with_timeout(self, timeout: float) -> ClientBuilder:
        """Set the timeout, in seconds, for the terminal network call."""
        self._timeout = timeout
        return self

    def with_user_agent(self, user_agent: str) -> ClientBuilder:
        return self.with_header("User-Agent", user_agent)

    def with_header(self, name: str, value: str) -> ClientBuilder:
        self._headers[name] = value
        return self

    def with_headers(self, headers: _t.Mapping[str, str]) -> ClientBuilder:
        self._headers.update(headers)
        return self

    def with_transport(self, transport: httpx.AsyncBaseTransport) -> ClientBuilder:
        """Send through ``transport`` instead of the default network transport."""
        self._transport = transport
        return self

    def with_http_client(self, http_client: httpx.AsyncClient) -> ClientBuilder:
        """Share an existing ``httpx.AsyncClient`` instead of creating one."""
        self._http_client = http_client
        return self

    def use_middleware(self, factory: MiddlewareFactory, options: _t.Any = None) -> ClientBuilder:
        """Append a pipeline stage. Registration order is execution order."""
        self._middleware.append(MiddlewareRegistration(factory, options))
        return self

    def use_logging(self, options: LoggerMiddlewareOptions | None = None) -> ClientBuilder:
        return self.use_middleware(LoggerMiddleware, options or LoggerMiddlewareOptions())

    def use_retry(self, options: RetryMiddlewareOptions | None = None) -> ClientBuilder:
        return self.use_middleware(RetryMiddleware, options or RetryMiddlewareOptions())

    def use_tracing(self, *tracers: RequestTracer) -> ClientBuilder:
        return self.use_middleware(TracingMiddleware, TracingMiddlewareOptions(tracers=list(tracers)))

    def build(self) -> ClientOptions:
        """Snapshot the current configuration. The builder stays usable."""
        return ClientOptions(
            identifier=self._identifier,
            base_url=self._base_url,
            timeout=self._timeout,
            default_headers=_original_case(self._headers),
            middleware=tuple(self._middleware),
            transport=self._transport,
            http_client=self._http_client,
        )

    def register(self) -> Client:
        """Build and add the client to the factory this builder came from."""
        if self._factory is None:
            raise RuntimeError("Builder is not bound to a ClientFactory")
        return self._factory.add(self)
