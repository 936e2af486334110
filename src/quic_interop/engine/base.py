"""Engine-neutral interfaces consumed by the driver loop and the probes.

The harness never implements QUIC itself. It drives an engine through the
TransportEngine protocol and, for HTTP/3, an overlay through the
OverlayEngine protocol. Events are small frozen dataclasses; the
engine-native event that produced one is kept in ``raw`` so an overlay
built on the same engine can consume it.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, Union

from quic_interop.models.enums import ConnectionState

Address = tuple[str, int]


@dataclass(frozen=True)
class Datagram:
    """An inbound payload tagged with the channel's addressing."""

    payload: bytes
    source: Address
    destination: Address


@dataclass(frozen=True)
class HandshakeDone:
    alpn: str | None = None
    raw: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class StreamReadable:
    stream_id: int
    raw: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class StreamWritable:
    stream_id: int
    raw: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class ConnectionClosed:
    error_code: int = 0
    reason: str = ""
    raw: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class OtherEvent:
    """Any engine event the harness has no specific handling for."""

    name: str
    raw: Any = field(default=None, compare=False, repr=False)


EngineEvent = Union[HandshakeDone, StreamReadable, StreamWritable, ConnectionClosed, OtherEvent]


@dataclass(frozen=True)
class HeadersReady:
    stream_id: int


@dataclass(frozen=True)
class DataReadable:
    stream_id: int


OverlayEvent = Union[HeadersReady, DataReadable]


class TransportEngine(Protocol):
    """A QUIC connection the driver loop can advance.

    All methods are synchronous and non-blocking. ``now`` values come from
    the same monotonic clock the driver loop uses for its deadline.
    """

    def submit_inbound(self, datagrams: Sequence[Datagram], now: float) -> None: ...

    def poll_outbound(self, now: float) -> list[bytes]: ...

    def connection_state(self) -> ConnectionState: ...

    def drain_events(self) -> list[EngineEvent]: ...

    def open_stream(self, bidirectional: bool = True) -> int: ...

    def send_on_stream(self, stream_id: int, data: bytes, end_stream: bool = False) -> None: ...

    def read_from_stream(self, stream_id: int, max_bytes: int) -> tuple[bytes, bool]: ...

    def close(self, error_code: int, reason: str) -> None: ...

    def next_timer(self) -> float | None:
        """Time at which the engine wants to run its timers, or None."""
        ...


class OverlayEngine(Protocol):
    """A request/response overlay (HTTP/3) running on a transport engine."""

    def process_step(self, events: Sequence[EngineEvent]) -> None: ...

    def drain_events(self) -> list[OverlayEvent]: ...

    def fetch(
        self,
        method: str,
        scheme: str,
        host: str,
        path: str,
        headers: Sequence[tuple[str, str]] = (),
    ) -> int: ...

    def read_data(self, stream_id: int, max_bytes: int) -> tuple[bytes, bool]: ...

    def get_headers(self, stream_id: int) -> list[tuple[str, str]]: ...

    def close(self, error_code: int, reason: str) -> None: ...
