"""Connect phase probe, run first for every scenario."""

from __future__ import annotations

from collections.abc import Sequence

from quic_interop.engine.base import EngineEvent, TransportEngine
from quic_interop.errors import ProtocolViolationError
from quic_interop.models.enums import ConnectionState

_SETTLED = frozenset({ConnectionState.CONNECTED, ConnectionState.CLOSING})


class ConnectivityProbe:
    """Keeps the loop running until the handshake settles.

    Events are ignored; the engine's own state is all that matters.
    """

    name = "connect"

    def __init__(self, engine: TransportEngine) -> None:
        self._engine = engine

    @property
    def violation(self) -> ProtocolViolationError | None:
        return None

    def step(self, events: Sequence[EngineEvent]) -> bool:
        return self._engine.connection_state() not in _SETTLED

    def verdict(self) -> str | None:
        state = self._engine.connection_state()
        if state is ConnectionState.CONNECTED:
            return None
        return f"Engine ended in state {state.value}"
