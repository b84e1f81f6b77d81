"""Global pytest configuration and fixtures."""

import json
import logging
import os
import sys

import httpx
import pytest

# Add the local 'src' directory to sys.path so tests run without installing
ROOT_DIR = os.path.dirname(os.path.dirname(__file__))
SRC_DIR = os.path.join(ROOT_DIR, "src")
sys.path.insert(0, SRC_DIR)

from fluently import ClientFactory

# Configure logging for tests
logging.basicConfig(level=logging.INFO)


@pytest.fixture
def client_factory():
    """A fresh factory per test so registrations never leak between tests."""
    return ClientFactory()


@pytest.fixture
def mock_transport():
    """Create an httpx.MockTransport answering from a route table.

    Routes map ``(method, path)`` to ``(status_code, body)``; unknown routes
    answer 404. Received requests are collected on ``transport.calls``.
    """
    def _mock_transport(routes=None):
        routes = routes or {}
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            status_code, body = routes.get((request.method, request.url.path), (404, b""))
            if isinstance(body, (dict, list)):
                return httpx.Response(status_code, content=json.dumps(body).encode(),
                                      headers={"Content-Type": "application/json"})
            return httpx.Response(status_code, content=body)

        transport = httpx.MockTransport(handler)
        transport.calls = calls
        return transport
    return _mock_transport
