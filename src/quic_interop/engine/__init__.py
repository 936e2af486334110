"""Protocol engine interfaces and the aioquic adapters behind them."""

from quic_interop.engine.base import (
    ConnectionClosed,
    DataReadable,
    Datagram,
    EngineEvent,
    HandshakeDone,
    HeadersReady,
    OtherEvent,
    OverlayEngine,
    OverlayEvent,
    StreamReadable,
    StreamWritable,
    TransportEngine,
)

__all__ = [
    "ConnectionClosed",
    "DataReadable",
    "Datagram",
    "EngineEvent",
    "HandshakeDone",
    "HeadersReady",
    "OtherEvent",
    "OverlayEngine",
    "OverlayEvent",
    "StreamReadable",
    "StreamWritable",
    "TransportEngine",
]
