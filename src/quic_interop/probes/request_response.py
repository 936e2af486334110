"""HTTP/0.9 request/response probe ("h9").

Opens a single bidirectional stream, sends one request line, and reads the
response until the stream's FIN. Passing requires a non-empty response that
ends with a FIN on the tracked stream.
"""

from __future__ import annotations

from collections.abc import Sequence

from quic_interop.engine.base import (
    EngineEvent,
    StreamReadable,
    StreamWritable,
    TransportEngine,
)
from quic_interop.errors import ProtocolViolationError
from quic_interop.models.constants import (
    CLOSE_ERROR_CODE,
    CLOSE_REASON,
    HQ_REQUEST_LINE,
    STREAM_READ_CHUNK,
)
from quic_interop.observability import get_logger
from quic_interop.probes.base import StreamTracker

logger = get_logger(__name__)

EMPTY_RESPONSE = "Empty response"
NO_FIN = "No FIN"


class RequestResponseProbe:
    name = "h9"

    def __init__(self, engine: TransportEngine, request: str = HQ_REQUEST_LINE) -> None:
        self._engine = engine
        self._streams = StreamTracker()
        self.received_bytes = 0
        self.fin_received = False

        self.stream_id = engine.open_stream(bidirectional=True)
        self._streams.track(self.stream_id)
        engine.send_on_stream(self.stream_id, request.encode("ascii"), end_stream=True)

    @property
    def violation(self) -> ProtocolViolationError | None:
        return self._streams.violation

    def step(self, events: Sequence[EngineEvent]) -> bool:
        for event in events:
            if isinstance(event, StreamReadable):
                if not self._streams.check(event.stream_id):
                    logger.warning("interop.probe.unexpected_stream", stream_id=event.stream_id)
                    return False
                if self._drain(event.stream_id):
                    logger.debug("interop.probe.fin", stream_id=event.stream_id)
                    self._engine.close(CLOSE_ERROR_CODE, CLOSE_REASON)
                    return False
            elif isinstance(event, StreamWritable):
                if not self._streams.check(event.stream_id):
                    logger.warning("interop.probe.unexpected_stream", stream_id=event.stream_id)
                    return False
            else:
                logger.debug("interop.probe.event", event_type=type(event).__name__)
        return True

    def verdict(self) -> str | None:
        if self.violation is not None:
            return self.violation.message
        if self.received_bytes == 0:
            return EMPTY_RESPONSE
        if not self.fin_received:
            return NO_FIN
        return None

    def _drain(self, stream_id: int) -> bool:
        """Read everything buffered on the stream; return True once FIN is seen."""
        while True:
            data, fin = self._engine.read_from_stream(stream_id, STREAM_READ_CHUNK)
            self.received_bytes += len(data)
            if fin:
                self.fin_received = True
                return True
            if not data:
                return False
