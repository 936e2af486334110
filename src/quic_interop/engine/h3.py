"""OverlayEngine adapter over aioquic's H3Connection.

Header blocks arrive as typed (name, value) byte pairs; they are decoded
into text pairs directly, never parsed back out of a printed form.
"""

from __future__ import annotations

from collections.abc import Sequence

from aioquic.h3.connection import H3Connection
from aioquic.h3.events import DataReceived, HeadersReceived
from aioquic.quic.events import QuicEvent

from quic_interop import __version__
from quic_interop.engine.base import (
    DataReadable,
    EngineEvent,
    HeadersReady,
    OverlayEvent,
    TransportEngine,
)
from quic_interop.engine.quic import QuicEngine

USER_AGENT = f"quic-interop/{__version__}"


def decode_headers(headers: Sequence[tuple[bytes, bytes]]) -> list[tuple[str, str]]:
    """Decode an HTTP/3 header block into text (name, value) pairs.

    Example:
        >>> decode_headers([(b":status", b"200"), (b"server", b"quant")])
        [(':status', '200'), ('server', 'quant')]
    """
    return [
        (name.decode("ascii", errors="replace"), value.decode("utf-8", errors="replace"))
        for name, value in headers
    ]


def encode_headers(headers: Sequence[tuple[str, str]]) -> list[tuple[bytes, bytes]]:
    return [(name.lower().encode("ascii"), value.encode("utf-8")) for name, value in headers]


class H3Overlay:
    """HTTP/3 session running on a QuicEngine's connection."""

    def __init__(self, engine: QuicEngine) -> None:
        self._engine = engine
        self._h3 = H3Connection(engine.connection)
        self._events: list[OverlayEvent] = []
        self._headers: dict[int, list[tuple[str, str]]] = {}
        self._data: dict[int, bytearray] = {}
        self._ended: set[int] = set()
        for raw in engine.drained_unidirectional():
            self._handle(raw)

    def process_step(self, events: Sequence[EngineEvent]) -> None:
        for event in events:
            if event.raw is not None:
                self._handle(event.raw)

    def _handle(self, quic_event: QuicEvent) -> None:
        for h3_event in self._h3.handle_event(quic_event):
            if isinstance(h3_event, HeadersReceived):
                stream_id = h3_event.stream_id
                self._headers.setdefault(stream_id, []).extend(
                    decode_headers(h3_event.headers)
                )
                self._events.append(HeadersReady(stream_id=stream_id))
                if h3_event.stream_ended:
                    self._ended.add(stream_id)
                    self._events.append(DataReadable(stream_id=stream_id))
            elif isinstance(h3_event, DataReceived):
                stream_id = h3_event.stream_id
                self._data.setdefault(stream_id, bytearray()).extend(h3_event.data)
                if h3_event.stream_ended:
                    self._ended.add(stream_id)
                self._events.append(DataReadable(stream_id=stream_id))

    def drain_events(self) -> list[OverlayEvent]:
        drained, self._events = self._events, []
        return drained

    def fetch(
        self,
        method: str,
        scheme: str,
        host: str,
        path: str,
        headers: Sequence[tuple[str, str]] = (),
    ) -> int:
        stream_id = self._engine.open_stream(bidirectional=True)
        request = [
            (":method", method),
            (":scheme", scheme),
            (":authority", host),
            (":path", path),
            ("user-agent", USER_AGENT),
            *headers,
        ]
        self._h3.send_headers(stream_id=stream_id, headers=encode_headers(request), end_stream=True)
        return stream_id

    def read_data(self, stream_id: int, max_bytes: int) -> tuple[bytes, bool]:
        buffer = self._data.get(stream_id, bytearray())
        chunk = bytes(buffer[:max_bytes])
        del buffer[:max_bytes]
        return chunk, stream_id in self._ended and not buffer

    def get_headers(self, stream_id: int) -> list[tuple[str, str]]:
        return list(self._headers.get(stream_id, []))

    def close(self, error_code: int, reason: str) -> None:
        self._engine.close(error_code, reason)


def default_overlay_factory(engine: TransportEngine) -> H3Overlay:
    """Build an HTTP/3 overlay on an aioquic engine."""
    if not isinstance(engine, QuicEngine):
        raise TypeError(f"HTTP/3 overlay requires a QuicEngine, got {type(engine).__name__}")
    return H3Overlay(engine)

