"""Tests for the builder module."""

import httpx
import pytest
from pydantic import ValidationError

from fluently.builder import ClientBuilder, ClientOptions
from fluently.middleware.logging import LoggerMiddleware, LoggerMiddlewareOptions
from fluently.middleware.retry import RetryMiddleware
from fluently.middleware.tracing import RequestHistoryTracer, TracingMiddleware


class TestClientBuilder:
    """Test cases for the ClientBuilder class."""

    def test_build_collects_configuration(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200))

        options = (
            ClientBuilder()
            .with_identifier("svc")
            .with_base_url("https://example.test")
            .with_timeout(30)
            .with_user_agent("tests")
            .with_header("Accept", "application/json")
            .with_transport(transport)
            .build()
        )

        assert isinstance(options, ClientOptions)
        assert options.identifier == "svc"
        assert options.base_url == "https://example.test"
        assert options.timeout == 30.0
        assert options.default_headers == {"User-Agent": "tests", "Accept": "application/json"}
        assert options.transport is transport
        assert options.middleware == ()

    def test_later_calls_override_earlier(self):
        options = ClientBuilder().with_user_agent("first").with_timeout(5).with_user_agent("second").with_timeout(9).build()

        assert options.default_headers["User-Agent"] == "second"
        assert options.timeout == 9

    def test_header_names_override_regardless_of_case(self):
        options = ClientBuilder().with_user_agent("first").with_header("user-agent", "second").build()

        assert list(options.default_headers.items()) == [("user-agent", "second")]

    def test_default_headers_are_read_only(self):
        options = ClientBuilder().with_header("A", "1").build()

        with pytest.raises(TypeError):
            options.default_headers["A"] = "2"
        assert options.default_headers == {"A": "1"}

    def test_middleware_registration_order(self):
        logging_options = LoggerMiddlewareOptions(should_log_detailed_request=True)
        tracer = RequestHistoryTracer()

        options = ClientBuilder().use_logging(logging_options).use_retry().use_tracing(tracer).build()

        assert [registration.factory for registration in options.middleware] == [
            LoggerMiddleware,
            RetryMiddleware,
            TracingMiddleware,
        ]
        assert options.middleware[0].options is logging_options
        assert options.middleware[2].options.tracers == [tracer]

    def test_options_are_frozen_snapshots(self):
        builder = ClientBuilder().with_identifier("svc").with_header("A", "1")
        options = builder.build()

        builder.with_identifier("other").with_header("B", "2").use_retry()

        assert options.identifier == "svc"
        assert options.default_headers == {"A": "1"}
        assert options.middleware == ()
        with pytest.raises(ValidationError):
            options.identifier = "changed"

    def test_register_requires_factory(self):
        with pytest.raises(RuntimeError):
            ClientBuilder().with_identifier("svc").with_base_url("https://example.test").register()

    def test_register_through_factory(self, client_factory):
        client = client_factory.create_builder("svc").with_base_url("https://example.test").register()

        assert client_factory.get("svc") is client
