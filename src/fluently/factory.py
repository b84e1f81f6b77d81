"""Client factory: a registry of named clients.

The factory creates builders seeded with baseline defaults, constructs
clients from built options, and owns them until they are removed.
It supports both a default global factory and instance-based factories.
"""

from __future__ import annotations

import logging
import threading
import typing as _t

from .builder import ClientBuilder, ClientOptions
from .client import Client
from .config import FluentlyConfig
from .errors import ClientConflictError, ClientNotFoundError, ClientValidationError

__all__ = [
    "BuilderHook",
    "ClientFactory",
    "default_client_factory",
]

logger = logging.getLogger("fluently.factory")

BuilderHook = _t.Callable[[ClientBuilder], _t.Any]


class ClientFactory:
    """Registry of clients keyed by identifier.

    Map access is serialized with a lock, so ``add`` checks uniqueness and
    inserts atomically even when called from several threads.
    """

    def __init__(self, config: FluentlyConfig | None = None):
        self.config = config or FluentlyConfig()
        self._clients: dict[str, Client] = {}
        self._lock = threading.RLock()
        self._configure: BuilderHook | None = None

    async def __aenter__(self) -> ClientFactory:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.dispose()

    def create_builder(self, identifier: str | None = None) -> ClientBuilder:
        """Create a builder seeded with baseline defaults and the defaults hook.

        Does not register anything.
        """
        builder = (
            ClientBuilder(self)
            .with_identifier(identifier)
            .with_user_agent(self.config.user_agent)
            .with_timeout(self.config.timeout)
            .with_headers(self.config.default_headers)
        )

        if self._configure is not None:
            self._configure(builder)

        return builder

    def configure_defaults(self, configure: BuilderHook | None) -> ClientFactory:
        """Set the hook applied to every builder created from now on.

        Replaces any previous hook; ``None`` clears it.
        """
        self._configure = configure
        return self

    def get(self, identifier: str) -> Client:
        """Return the client registered as ``identifier``.

        Raises:
            ClientNotFoundError: If no such client is registered
        """
        with self._lock:
            client = self._clients.get(identifier)
        if client is None:
            raise ClientNotFoundError(identifier)
        return client

    def add(self, options: ClientOptions | ClientBuilder) -> Client:
        """Create and register a client from options or a builder.

        Raises:
            ClientValidationError: If identifier or base URL is empty
            ClientConflictError: If the identifier is already registered
        """
        if options is None:
            raise TypeError("options must not be None")
        if isinstance(options, ClientBuilder):
            options = options.build()

        if not options.identifier:
            raise ClientValidationError.field_not_specified("identifier")
        if not options.base_url:
            raise ClientValidationError.field_not_specified("base_url")

        with self._lock:
            if options.identifier in self._clients:
                raise ClientConflictError(options.identifier)
            client = Client(options)
            self._clients[options.identifier] = client

        logger.info(f"Registered client '{options.identifier}' for {options.base_url}")
        return client

    async def remove(self, identifier: str) -> ClientFactory:
        """Unregister and dispose a client. Unknown identifiers are ignored.

        The identifier can be reused as soon as it is unregistered, even
        while disposal is still in progress.
        """
        with self._lock:
            client = self._clients.pop(identifier, None)
        if client is None:
            return self

        logger.info(f"Removed client '{identifier}'")
        await client.dispose()
        return self

    def has(self, identifier: str) -> bool:
        with self._lock:
            return identifier in self._clients

    def list_clients(self) -> list[str]:
        """List registered identifiers."""
        with self._lock:
            return list(self._clients.keys())

    def register_from_config(self) -> list[Client]:
        """Add every client declared in ``config.clients``."""
        clients = []
        for identifier, entry in self.config.clients.items():
            builder = self.create_builder(identifier).with_base_url(entry.base_url)
            if entry.timeout is not None:
                builder.with_timeout(entry.timeout)
            if entry.user_agent is not None:
                builder.with_user_agent(entry.user_agent)
            builder.with_headers(entry.headers)
            clients.append(self.add(builder))
        return clients

    async def dispose(self) -> None:
        """Remove and dispose all registered clients."""
        for identifier in self.list_clients():
            await self.remove(identifier)


# --- Module-level default factory ---
default_client_factory = ClientFactory()
