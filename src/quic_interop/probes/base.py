"""Common contract for probe scenarios.

A probe is consulted once per driver loop iteration with the engine events
queued since the previous iteration. ``step`` returns False to stop the loop.
After the loop ends, ``violation`` and ``verdict()`` decide the outcome.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from quic_interop.engine.base import EngineEvent
from quic_interop.errors import ProtocolViolationError


class Probe(Protocol):
    name: str

    @property
    def violation(self) -> ProtocolViolationError | None: ...

    def step(self, events: Sequence[EngineEvent]) -> bool: ...

    def verdict(self) -> str | None:
        """Failure reason once the loop has stopped, or None if the probe passed."""
        ...


class StreamTracker:
    """Stream ids a probe opened itself.

    Any event about another stream is a protocol violation.
    """

    def __init__(self) -> None:
        self._streams: set[int] = set()
        self.violation: ProtocolViolationError | None = None

    def track(self, stream_id: int) -> None:
        self._streams.add(stream_id)

    def __contains__(self, stream_id: object) -> bool:
        return stream_id in self._streams

    def __len__(self) -> int:
        return len(self._streams)

    def check(self, stream_id: int) -> bool:
        """Return True for a tracked stream; record a violation otherwise."""
        if stream_id in self._streams:
            return True
        if self.violation is None:
            self.violation = ProtocolViolationError(stream_id)
        return False
