"""Tests for the factory module."""

import asyncio
import threading

import pytest

from fluently.builder import ClientBuilder
from fluently.client import Client
from fluently.config import ClientConfigEntry, FluentlyConfig
from fluently.errors import ClientConflictError, ClientNotFoundError, ClientValidationError
from fluently.factory import ClientFactory


def options_for(identifier, base_url="https://example.test"):
    return ClientBuilder().with_identifier(identifier).with_base_url(base_url).build()


class TestCreateBuilder:
    """Test cases for ClientFactory.create_builder."""

    def test_baseline_defaults(self, client_factory):
        options = client_factory.create_builder("svc").build()

        assert options.identifier == "svc"
        assert options.base_url is None
        assert options.default_headers["User-Agent"] == "fluently"
        assert options.timeout == 15.0

    def test_does_not_register(self, client_factory):
        client_factory.create_builder("svc").with_base_url("https://example.test")

        assert not client_factory.has("svc")

    def test_config_supplies_baseline(self):
        factory = ClientFactory(FluentlyConfig(user_agent="custom", timeout=3, default_headers={"X-Env": "test"}))

        options = factory.create_builder("svc").build()

        assert options.default_headers == {"User-Agent": "custom", "X-Env": "test"}
        assert options.timeout == 3.0

    def test_defaults_hook_runs_before_caller(self, client_factory):
        client_factory.configure_defaults(lambda builder: builder.with_timeout(60).with_user_agent("hooked"))

        options = client_factory.create_builder("svc").with_timeout(5).build()

        assert options.timeout == 5
        assert options.default_headers["User-Agent"] == "hooked"

    def test_configure_defaults_last_call_wins(self, client_factory):
        before = client_factory.configure_defaults(lambda builder: builder.with_header("X-First", "1")).create_builder("a")
        client_factory.configure_defaults(lambda builder: builder.with_header("X-Second", "2"))
        after = client_factory.create_builder("b")

        assert before.build().default_headers.get("X-First") == "1"
        assert "X-Second" not in before.build().default_headers
        assert "X-First" not in after.build().default_headers
        assert after.build().default_headers.get("X-Second") == "2"

    def test_configure_defaults_returns_factory(self, client_factory):
        assert client_factory.configure_defaults(None) is client_factory


class TestAdd:
    """Test cases for ClientFactory.add."""

    def test_add_options(self, client_factory):
        client = client_factory.add(options_for("svc"))

        assert isinstance(client, Client)
        assert client.identifier == "svc"
        assert client_factory.has("svc")
        assert client_factory.get("svc") is client

    def test_add_builder(self, client_factory):
        client = client_factory.add(client_factory.create_builder("svc").with_base_url("https://example.test"))

        assert client_factory.get("svc") is client

    @pytest.mark.parametrize("identifier,base_url,field", [
        ("", "https://example.test", "identifier"),
        (None, "https://example.test", "identifier"),
        ("svc", "", "base_url"),
        ("svc", None, "base_url"),
    ])
    def test_missing_fields_fail_validation(self, client_factory, identifier, base_url, field):
        with pytest.raises(ClientValidationError) as exc_info:
            client_factory.add(options_for(identifier, base_url))

        assert exc_info.value.field == field
        assert client_factory.list_clients() == []

    def test_validation_precedes_conflict(self, client_factory):
        client_factory.add(options_for("svc"))

        with pytest.raises(ClientValidationError):
            client_factory.add(options_for("svc", ""))

    def test_duplicate_identifier_conflicts(self, client_factory):
        original = client_factory.add(options_for("svc"))

        with pytest.raises(ClientConflictError):
            client_factory.add(options_for("svc", "https://other.test"))

        assert client_factory.get("svc") is original
        assert original.options.base_url == "https://example.test"
        assert not original.is_disposed

    def test_add_none_is_rejected(self, client_factory):
        with pytest.raises(TypeError):
            client_factory.add(None)

    def test_concurrent_adds_keep_identifiers_unique(self, client_factory):
        results = []

        def register():
            try:
                results.append(client_factory.add(options_for("svc")))
            except ClientConflictError as e:
                results.append(e)

        threads = [threading.Thread(target=register) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sum(isinstance(result, Client) for result in results) == 1
        assert sum(isinstance(result, ClientConflictError) for result in results) == 7


class TestGetAndRemove:
    """Test cases for ClientFactory.get, has and remove."""

    def test_get_unknown_fails(self, client_factory):
        with pytest.raises(ClientNotFoundError, match="'ghost' not registered"):
            client_factory.get("ghost")

    @pytest.mark.asyncio
    async def test_remove_disposes_and_frees_identifier(self, client_factory):
        client = client_factory.add(options_for("svc"))

        result = await client_factory.remove("svc")

        assert result is client_factory
        assert not client_factory.has("svc")
        assert client.is_disposed
        with pytest.raises(ClientNotFoundError):
            client_factory.get("svc")

        replacement = client_factory.add(options_for("svc"))
        assert client_factory.get("svc") is replacement

    @pytest.mark.asyncio
    async def test_remove_unknown_is_noop(self, client_factory):
        assert await client_factory.remove("ghost") is client_factory

    @pytest.mark.asyncio
    async def test_concurrent_removes_dispose_once(self, client_factory):
        client_factory.add(options_for("svc"))

        await asyncio.gather(*(client_factory.remove("svc") for _ in range(5)))

        assert not client_factory.has("svc")

    @pytest.mark.asyncio
    async def test_dispose_removes_everything(self, client_factory):
        first = client_factory.add(options_for("a"))
        second = client_factory.add(options_for("b"))

        async with client_factory:
            assert client_factory.list_clients() == ["a", "b"]

        assert client_factory.list_clients() == []
        assert first.is_disposed and second.is_disposed


class TestRegisterFromConfig:
    """Test cases for ClientFactory.register_from_config."""

    def test_registers_declared_clients(self):
        config = FluentlyConfig(clients={
            "heroes": ClientConfigEntry(base_url="https://heroes.test", timeout=2, headers={"X-Api": "1"}),
            "maps": ClientConfigEntry(base_url="https://maps.test", user_agent="maps-agent"),
        })
        factory = ClientFactory(config)

        clients = factory.register_from_config()

        assert [client.identifier for client in clients] == ["heroes", "maps"]
        heroes = factory.get("heroes").options
        assert heroes.timeout == 2
        assert heroes.default_headers == {"User-Agent": "fluently", "X-Api": "1"}
        maps = factory.get("maps").options
        assert maps.timeout == 15.0
        assert maps.default_headers["User-Agent"] == "maps-agent"
