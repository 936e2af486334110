"""Pytest fixtures and context managers for interop tests.

Fixtures (use with pytest):
    udp_peer: A started UdpPeer answering with a default ScriptedResponder.
    silent_udp_peer: A started UdpPeer that never answers.
    scripted_runner_factory: Builds an InteropRunner wired to the scripted engine.

Context managers:
    running_peer(): Sync context manager yielding a started UdpPeer.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager

import pytest

from quic_interop.config import InteropConfig, Selection
from quic_interop.models.entities import Peer
from quic_interop.runner import InteropRunner
from quic_interop.testing.mocks import (
    ScriptedResponder,
    UdpPeer,
    scripted_engine_factory,
    scripted_overlay_factory,
    silent,
)

# Short enough to keep timeout tests fast, long enough for loopback round trips.
TEST_PHASE_TIMEOUT = 0.5


@contextmanager
def running_peer(
    responder: Callable[[bytes], list[bytes]] = silent, host: str = "127.0.0.1"
) -> Iterator[UdpPeer]:
    """Start a UdpPeer for the scope and stop it afterwards."""
    peer = UdpPeer(responder, host=host)
    with peer:
        yield peer


def make_config(*peers: Peer, timeout: float = TEST_PHASE_TIMEOUT) -> InteropConfig:
    return InteropConfig(peers=tuple(peers), phase_timeout_seconds=timeout)


@pytest.fixture
def udp_peer() -> Iterator[UdpPeer]:
    """A started UdpPeer that completes the handshake and answers requests."""
    with running_peer(ScriptedResponder()) as peer:
        yield peer


@pytest.fixture
def silent_udp_peer() -> Iterator[UdpPeer]:
    """A started UdpPeer that never answers."""
    with running_peer(silent) as peer:
        yield peer


@pytest.fixture
def scripted_runner_factory() -> Callable[..., InteropRunner]:
    """Return a builder for runners that use the scripted engine and overlay.

    Extra keyword arguments are passed to InteropRunner.
    """

    def build(
        config: InteropConfig, selection: Selection | None = None, **kwargs: object
    ) -> InteropRunner:
        kwargs.setdefault("engine_factory", scripted_engine_factory)
        kwargs.setdefault("overlay_factory", scripted_overlay_factory)
        return InteropRunner(config, selection, **kwargs)  # type: ignore[arg-type]

    return build
