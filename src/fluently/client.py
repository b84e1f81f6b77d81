from __future__ import annotations

import logging
import time
import typing as _t

import httpx

from .builder import ClientOptions
from .errors import ClientDisposedError, TransportError
from .middleware.base import compose
from .models import Request, RequestBuilder, Response

__all__ = [
    "Client",
]

logger = logging.getLogger("fluently.client")

T = _t.TypeVar("T")


class Client:
    """HTTP client sending every request through a middleware pipeline.

    The pipeline is composed once, here, from the registered middleware and
    a terminal stage that performs the network call with httpx. It never
    changes afterwards, so concurrent requests share it without locking.
    """

    def __init__(self, options: ClientOptions):
        """Initialize the client with the given options.

        Args:
            options: Built options; identifier and base URL are expected
                to have been validated by the factory.
        """
        self.options = options
        self.identifier = options.identifier
        self._http_client: httpx.AsyncClient | None = options.http_client
        self._owns_http_client = options.http_client is None and options.transport is None
        self._disposed = False
        self._pipeline = compose(options.middleware, self._send_over_wire)

        logger.debug(
            f"Client '{self.identifier}' created with "
            f"{len(options.middleware)} middleware: "
            f"{[registration.name for registration in options.middleware]}"
        )

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.dispose()

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                transport=self.options.transport,
                follow_redirects=True,
            )
        return self._http_client

    def _resolve_url(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        base_url = self.options.base_url or ""
        if not url:
            return base_url
        return base_url.rstrip("/") + "/" + url.lstrip("/")

    async def _send_over_wire(self, request: Request) -> Response:
        """Terminal stage: perform the actual exchange through httpx."""
        http_client = self._get_http_client()
        url = self._resolve_url(request.url)
        timeout = (
            self.options.timeout if self.options.timeout is not None else httpx.USE_CLIENT_DEFAULT
        )
        headers = httpx.Headers(self.options.default_headers)
        headers.update(request.headers)
        http_request = http_client.build_request(
            request.method,
            url,
            headers=headers,
            content=request.content,
            params=request.params or None,
            timeout=timeout,
        )

        start_time = time.time()
        try:
            http_response = await http_client.send(http_request)
        except httpx.TransportError as e:
            elapsed = time.time() - start_time
            logger.error(f"{request.method} {url} failed after {elapsed:.3f}s: {e}")
            raise TransportError(f"{request.method} {url} failed: {e}", request=request) from e

        return Response(
            status_code=http_response.status_code,
            headers=dict(http_response.headers),
            content=http_response.content,
            request=request,
            elapsed=time.time() - start_time,
        )

    def create_request(self, path: str = "") -> RequestBuilder:
        """Start building a request for ``path``, relative to the base URL."""
        return RequestBuilder(self, path)

    async def send(self, request: Request) -> Response:
        """Send a request through the pipeline.

        The pipeline works on its own copy, so stages never touch the
        caller's request object.

        Raises:
            ClientDisposedError: If the client has been disposed
            TransportError: If the terminal call fails and no stage handles it
        """
        if self._disposed:
            raise ClientDisposedError(f"Client '{self.identifier}' has been disposed")
        return await self._pipeline(request.copy_with())

    async def request(
        self,
        method: str,
        path: str,
        body: _t.Any = None,
        *,
        response_type: type[T] | None = None,
    ) -> Response | T | None:
        """Send a request and optionally deserialize the body.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: Path relative to the base URL, or an absolute URL
            body: Request body, see ``RequestBuilder.with_body``
            response_type: When given, error statuses raise and the body is
                parsed into this type

        Returns:
            The response, or the parsed body when ``response_type`` is set
        """
        builder = self.create_request(path).with_method(method).with_body(body)
        if response_type is None:
            return await builder.send()
        return await builder.return_as(response_type)

    async def get(self, path: str, *, response_type: type[T] | None = None) -> Response | T | None:
        return await self.request("GET", path, response_type=response_type)

    async def post(self, path: str, body: _t.Any = None, *, response_type: type[T] | None = None) -> Response | T | None:
        return await self.request("POST", path, body, response_type=response_type)

    async def put(self, path: str, body: _t.Any = None, *, response_type: type[T] | None = None) -> Response | T | None:
        return await self.request("PUT", path, body, response_type=response_type)

    async def patch(self, path: str, body: _t.Any = None, *, response_type: type[T] | None = None) -> Response | T | None:
        return await self.request("PATCH", path, body, response_type=response_type)

    async def delete(self, path: str, *, response_type: type[T] | None = None) -> Response | T | None:
        return await self.request("DELETE", path, response_type=response_type)

    async def dispose(self) -> None:
        """Release the httpx client if this client created it. Idempotent."""
        if self._disposed:
            return
        self._disposed = True

        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
        self._http_client = None
        logger.debug(f"Client '{self.identifier}' disposed")
