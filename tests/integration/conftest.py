"""Pytest configuration for integration tests.

Servers started by a test are stopped afterwards even when the test fails,
so a leaked listener cannot interfere with later tests.
"""

from collections.abc import Iterator

import pytest

from mock_fixture_server import MockServer


@pytest.fixture
def started_servers() -> Iterator[list[MockServer]]:
    """Collects servers a test starts and stops them after the test."""
    servers: list[MockServer] = []

    yield servers

    for server in servers:
        server.stop()
