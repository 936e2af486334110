"""TransportEngine adapter over aioquic's sans-I/O QuicConnection.

aioquic pushes stream data inside its events, while the driver loop and the
probes work with "stream readable" notifications followed by explicit reads.
The adapter buffers received stream data per stream and tracks the
connection state from the events it sees.
"""

from __future__ import annotations

import ipaddress
import ssl
import time
from collections import deque
from collections.abc import Sequence
from typing import TYPE_CHECKING

from aioquic.quic import events as quic_events
from aioquic.quic.configuration import QuicConfiguration
from aioquic.quic.connection import QuicConnection

from quic_interop.engine.base import (
    Address,
    ConnectionClosed,
    Datagram,
    EngineEvent,
    HandshakeDone,
    OtherEvent,
    StreamReadable,
)
from quic_interop.models.enums import ConnectionState
from quic_interop.observability import get_logger

if TYPE_CHECKING:
    from quic_interop.config import InteropConfig
    from quic_interop.models.entities import Peer
    from quic_interop.transport.channel import NetworkChannel

logger = get_logger(__name__)


class QuicEngine:
    """A client QuicConnection driven through the TransportEngine protocol."""

    def __init__(self, connection: QuicConnection, remote: Address, now: float) -> None:
        self._connection = connection
        self._remote = remote
        self._state = ConnectionState.CONNECTING
        self._pending: deque[quic_events.QuicEvent] = deque()
        self._buffers: dict[int, bytearray] = {}
        self._finished: set[int] = set()
        self._unidirectional: list[quic_events.StreamDataReceived] | None = []
        connection.connect(remote, now=now)

    @classmethod
    def create(
        cls,
        peer: Peer,
        alpn: Sequence[str],
        remote: Address,
        config: InteropConfig,
        now: float | None = None,
    ) -> QuicEngine:
        configuration = QuicConfiguration(
            is_client=True,
            alpn_protocols=list(alpn),
            server_name=None if _is_ip_literal(peer.host) else peer.host,
            idle_timeout=config.idle_timeout_seconds,
        )
        if not config.verify_certificates:
            configuration.verify_mode = ssl.CERT_NONE
        return cls(
            QuicConnection(configuration=configuration),
            remote,
            time.monotonic() if now is None else now,
        )

    @property
    def connection(self) -> QuicConnection:
        return self._connection

    def submit_inbound(self, datagrams: Sequence[Datagram], now: float) -> None:
        for datagram in datagrams:
            self._connection.receive_datagram(datagram.payload, datagram.source, now=now)
        timer = self._connection.get_timer()
        if timer is not None and timer <= now:
            self._connection.handle_timer(now=now)
        self._pump()

    def poll_outbound(self, now: float) -> list[bytes]:
        datagrams = [data for data, _addr in self._connection.datagrams_to_send(now=now)]
        self._pump()
        return datagrams

    def connection_state(self) -> ConnectionState:
        return self._state

    def drain_events(self) -> list[EngineEvent]:
        drained: list[EngineEvent] = []
        while self._pending:
            drained.append(self._translate(self._pending.popleft()))
        return drained

    def open_stream(self, bidirectional: bool = True) -> int:
        return self._connection.get_next_available_stream_id(is_unidirectional=not bidirectional)

    def send_on_stream(self, stream_id: int, data: bytes, end_stream: bool = False) -> None:
        self._connection.send_stream_data(stream_id, data, end_stream=end_stream)

    def read_from_stream(self, stream_id: int, max_bytes: int) -> tuple[bytes, bool]:
        buffer = self._buffers.get(stream_id)
        if buffer is None:
            return b"", stream_id in self._finished
        chunk = bytes(buffer[:max_bytes])
        del buffer[:max_bytes]
        return chunk, stream_id in self._finished and not buffer

    def close(self, error_code: int, reason: str) -> None:
        self._connection.close(error_code=error_code, reason_phrase=reason)
        if self._state is not ConnectionState.CLOSED:
            self._state = ConnectionState.CLOSING

    def next_timer(self) -> float | None:
        return self._connection.get_timer()

    def drained_unidirectional(self) -> list[quic_events.StreamDataReceived]:
        """Hand over the drained data events of peer-initiated unidirectional streams.

        An overlay attached after the handshake replays these to pick up the
        control and QPACK streams the peer opened before it existed. Recording
        stops once they are handed over; later calls return an empty list.
        """
        drained, self._unidirectional = self._unidirectional or [], None
        return drained

    def _pump(self) -> None:
        event = self._connection.next_event()
        while event is not None:
            if isinstance(event, quic_events.HandshakeCompleted):
                if self._state is ConnectionState.CONNECTING:
                    self._state = ConnectionState.CONNECTED
            elif isinstance(event, quic_events.ConnectionTerminated):
                self._state = ConnectionState.CLOSED
                logger.debug(
                    "interop.engine.terminated",
                    error_code=event.error_code,
                    reason=event.reason_phrase,
                )
            self._pending.append(event)
            event = self._connection.next_event()

    def _translate(self, event: quic_events.QuicEvent) -> EngineEvent:
        if isinstance(event, quic_events.StreamDataReceived):
            self._buffers.setdefault(event.stream_id, bytearray()).extend(event.data)
            if event.end_stream:
                self._finished.add(event.stream_id)
            if self._unidirectional is not None and _is_peer_unidirectional(event.stream_id):
                self._unidirectional.append(event)
            return StreamReadable(stream_id=event.stream_id, raw=event)
        if isinstance(event, quic_events.HandshakeCompleted):
            return HandshakeDone(alpn=event.alpn_protocol, raw=event)
        if isinstance(event, quic_events.ConnectionTerminated):
            return ConnectionClosed(
                error_code=event.error_code, reason=event.reason_phrase, raw=event
            )
        return OtherEvent(name=type(event).__name__, raw=event)


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def _is_peer_unidirectional(stream_id: int) -> bool:
    # Server-initiated unidirectional stream ids end in 0b11.
    return stream_id & 0x3 == 0x3


def default_engine_factory(
    peer: Peer, alpn: Sequence[str], channel: NetworkChannel, config: InteropConfig
) -> QuicEngine:
    """Build an aioquic client engine for the peer behind ``channel``."""
    return QuicEngine.create(peer, alpn, channel.remote_address, config)
