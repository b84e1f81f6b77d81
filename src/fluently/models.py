"""Request and response value types flowing through a client pipeline."""

from __future__ import annotations

import dataclasses
import json
import typing as _t
from dataclasses import dataclass, field

import httpx
from pydantic import TypeAdapter

from .errors import HttpStatusError

__all__ = [
    "Request",
    "Response",
    "RequestBuilder",
    "SendFunction",
]

T = _t.TypeVar("T")


@dataclass
class Request:
    """An outgoing HTTP request.

    ``items`` is the per-request metadata bag. Middleware keep their own
    entries in it (see ``fluently.middleware.logging``) so cross-cutting
    options travel with the request without widening this type.

    ``headers`` is an ``httpx.Headers``; names are case-insensitive.
    """

    method: str = "GET"
    url: str = ""
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: bytes | None = None
    params: dict[str, _t.Any] = field(default_factory=dict)
    items: dict[str, _t.Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.headers, httpx.Headers):
            self.headers = httpx.Headers(self.headers)

    def copy_with(self, **changes: _t.Any) -> Request:
        """Return an independent copy with the given fields replaced."""
        fields = {
            "headers": httpx.Headers(self.headers),
            "params": dict(self.params),
            "items": dict(self.items),
        }
        fields.update(changes)
        return dataclasses.replace(self, **fields)

    def __str__(self) -> str:
        return f"{self.method} {self.url}"


@dataclass(frozen=True)
class Response:
    """An HTTP response. Immutable; use ``copy_with`` to derive a new one."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes | None = None
    request: Request | None = None
    elapsed: float | None = None

    @property
    def text(self) -> str:
        if not self.content:
            return ""
        return self.content.decode("utf-8", errors="replace")

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> _t.Any:
        return json.loads(self.content) if self.content else None

    def parse(self, response_type: type[T]) -> T | None:
        """Deserialize the body into ``response_type``. Empty bodies yield ``None``."""
        if not self.content:
            return None
        return TypeAdapter(response_type).validate_json(self.content)

    def raise_for_status(self) -> Response:
        if self.status_code >= 400:
            raise HttpStatusError(
                f"{self.request or 'Request'} returned status {self.status_code}", self
            )
        return self

    def copy_with(self, **changes: _t.Any) -> Response:
        return dataclasses.replace(self, **changes)

    def __str__(self) -> str:
        return f"{self.status_code} ({self.request})" if self.request else str(self.status_code)


SendFunction = _t.Callable[[Request], _t.Awaitable[Response]]


class _Sender(_t.Protocol):
    async def send(self, request: Request) -> Response: ...


class RequestBuilder:
    """Fluent builder for a single request, bound to the client that sends it."""

    def __init__(self, client: _Sender, url: str = ""):
        self._client = client
        self.method = "GET"
        self.url = url
        self.headers = httpx.Headers()
        self.params: dict[str, _t.Any] = {}
        self.content: bytes | None = None
        self.items: dict[str, _t.Any] = {}

    def with_method(self, method: str) -> RequestBuilder:
        self.method = method.upper()
        return self

    def as_get(self) -> RequestBuilder:
        return self.with_method("GET")

    def as_post(self) -> RequestBuilder:
        return self.with_method("POST")

    def as_put(self) -> RequestBuilder:
        return self.with_method("PUT")

    def as_patch(self) -> RequestBuilder:
        return self.with_method("PATCH")

    def as_delete(self) -> RequestBuilder:
        return self.with_method("DELETE")

    def with_url(self, url: str) -> RequestBuilder:
        self.url = url
        return self

    def with_header(self, name: str, value: str) -> RequestBuilder:
        self.headers[name] = value
        return self

    def with_headers(self, headers: _t.Mapping[str, str]) -> RequestBuilder:
        self.headers.update(headers)
        return self

    def with_query(self, params: _t.Mapping[str, _t.Any]) -> RequestBuilder:
        self.params.update(params)
        return self

    def with_body(self, body: _t.Any) -> RequestBuilder:
        """Set the request body.

        ``bytes`` and ``str`` are sent as-is; anything else is serialized to
        JSON and the content type set accordingly. ``None`` clears the body.
        """
        if body is None:
            self.content = None
        elif isinstance(body, bytes):
            self.content = body
        elif isinstance(body, str):
            self.content = body.encode("utf-8")
        else:
            self.content = TypeAdapter(type(body)).dump_json(body)
            self.headers.setdefault("Content-Type", "application/json")
        return self

    def with_item(self, key: str, value: _t.Any) -> RequestBuilder:
        self.items[key] = value
        return self

    def build(self) -> Request:
        return Request(
            method=self.method,
            url=self.url,
            headers=httpx.Headers(self.headers),
            content=self.content,
            params=dict(self.params),
            items=dict(self.items),
        )

    async def send(self) -> Response:
        return await self._client.send(self.build())

    async def return_as(self, response_type: type[T]) -> T | None:
        """Send the request, fail on error status and deserialize the body."""
        response = await self.send()
        return response.raise_for_status().parse(response_type)
