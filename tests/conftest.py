"""
Shared fixtures for the Fastalert MCP tests.

HTTP is simulated with httpx.MockTransport: each test supplies a handler
that receives the outgoing httpx.Request and returns an httpx.Response.
"""

import httpx
import pytest

from core.client import FastalertClient

TEST_API_KEY = "test-key-123"
TEST_BASE_URL = "https://fastalert.test/api/v1"


@pytest.fixture
def sent_requests():
    """Requests captured by the mock transport, in order."""
    return []


@pytest.fixture
def make_client(sent_requests):
    """Build a FastalertClient whose HTTP calls go to a handler function."""

    def _make(handler):
        def _record(request: httpx.Request) -> httpx.Response:
            sent_requests.append(request)
            return handler(request)

        return FastalertClient(
            TEST_API_KEY,
            base_url=TEST_BASE_URL,
            transport=httpx.MockTransport(_record),
        )

    return _make


@pytest.fixture
def sample_channels():
    return [
        {"uuid": "abc-cl1-xyz-123", "name": "Ops", "subscriber": "12"},
        {"uuid": "def-cl2-uvw-456", "name": "Ops Night", "subscriber": "3"},
    ]
