"""HTTP/3 probe ("h3") running over the multiplexed overlay."""

from __future__ import annotations

from collections.abc import Sequence

from quic_interop.engine.base import (
    DataReadable,
    EngineEvent,
    HeadersReady,
    OverlayEngine,
)
from quic_interop.errors import ProtocolViolationError
from quic_interop.models.constants import (
    CLOSE_REASON,
    H3_NO_ERROR,
    H3_REQUEST_PATH,
    STREAM_READ_CHUNK,
)
from quic_interop.observability import get_logger
from quic_interop.probes.base import StreamTracker

logger = get_logger(__name__)

NO_FIN = "No FIN"


class MultiplexedProbe:
    """Fetches one resource over HTTP/3 and waits for the response FIN.

    Every step first advances the overlay with the transport events, then
    handles the overlay's own events.
    """

    name = "h3"

    def __init__(
        self,
        overlay: OverlayEngine,
        host: str,
        path: str = H3_REQUEST_PATH,
        close_code: int = H3_NO_ERROR,
    ) -> None:
        self._overlay = overlay
        self._streams = StreamTracker()
        self._close_code = close_code
        self.headers: list[tuple[str, str]] = []
        self.body = bytearray()
        self.fin_received = False

        self.stream_id = overlay.fetch("GET", "https", host, path)
        self._streams.track(self.stream_id)

    @property
    def violation(self) -> ProtocolViolationError | None:
        return self._streams.violation

    @property
    def status(self) -> str | None:
        for name, value in self.headers:
            if name == ":status":
                return value
        return None

    def step(self, events: Sequence[EngineEvent]) -> bool:
        self._overlay.process_step(events)
        for event in self._overlay.drain_events():
            if not self._streams.check(event.stream_id):
                logger.warning("interop.probe.unexpected_stream", stream_id=event.stream_id)
                return False
            if isinstance(event, HeadersReady):
                self.headers = self._overlay.get_headers(event.stream_id)
                logger.info(
                    "interop.probe.headers",
                    stream_id=event.stream_id,
                    headers=self.headers,
                )
            elif isinstance(event, DataReadable):
                if self._drain(event.stream_id):
                    logger.info(
                        "interop.probe.fin",
                        stream_id=event.stream_id,
                        size=len(self.body),
                    )
                    self._overlay.close(self._close_code, CLOSE_REASON)
                    return False
        return True

    def verdict(self) -> str | None:
        if self.violation is not None:
            return self.violation.message
        if not self.fin_received:
            return NO_FIN
        return None

    def _drain(self, stream_id: int) -> bool:
        while True:
            data, fin = self._overlay.read_data(stream_id, STREAM_READ_CHUNK)
            self.body.extend(data)
            if fin:
                self.fin_received = True
                return True
            if not data:
                return False
