"""Shared pytest fixtures for interop harness tests.

This module provides common fixtures used across multiple test modules,
reducing duplication and ensuring consistency in test data.
"""

from __future__ import annotations

import pytest

from quic_interop.config import InteropConfig
from quic_interop.models.entities import Peer
from quic_interop.observability import configure_logging

# Load quic_interop.testing fixtures (udp_peer, silent_udp_peer, scripted_runner_factory)
pytest_plugins = ["quic_interop.testing.fixtures"]


@pytest.fixture(autouse=True, scope="session")
def _quiet_logging() -> None:
    """Keep test output readable; individual tests may reconfigure with force=True."""
    configure_logging(log_format="console", log_level="WARNING", force=True)


@pytest.fixture
def sample_peers() -> tuple[Peer, ...]:
    """A small peer table with three distinct labels.

    Returns:
        Peers in scheduling order
    """
    return (
        Peer(label="local", host="127.0.0.1", port=4433),
        Peer(label="quant", host="quant.eggert.org", port=4433),
        Peer(label="google", host="quic.rocks", port=4433),
    )


@pytest.fixture
def sample_config(sample_peers: tuple[Peer, ...]) -> InteropConfig:
    """InteropConfig over sample_peers with default settings."""
    return InteropConfig(peers=sample_peers)
