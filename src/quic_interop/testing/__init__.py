"""Testing utilities for the interop harness.

This package provides a scripted engine and overlay that stand in for QUIC,
a localhost UDP peer to run them against, and pytest fixtures wiring them
into the runner.

Modules:
    mocks: ScriptedEngine, ScriptedOverlay, ScriptedResponder, UdpPeer.
    fixtures: Pytest fixtures (udp_peer, silent_udp_peer, scripted_runner_factory)
              and the running_peer() context manager.

Example:
    >>> from quic_interop.testing import ScriptedResponder, UdpPeer
"""

from quic_interop.testing.mocks import (
    ScriptedEngine,
    ScriptedOverlay,
    ScriptedResponder,
    UdpPeer,
    scripted_engine_factory,
    scripted_overlay_factory,
    silent,
)

__all__ = [
    "ScriptedEngine",
    "ScriptedOverlay",
    "ScriptedResponder",
    "UdpPeer",
    "scripted_engine_factory",
    "scripted_overlay_factory",
    "silent",
]
