"""Probe scenarios.

A closed set of variants sharing one ``step`` operation:

- ConnectivityProbe: handshake only, used as the first phase of every run
- RequestResponseProbe: HTTP/0.9 request on a single stream ("h9")
- MultiplexedProbe: HTTP/3 request through the overlay ("h3")
"""

from __future__ import annotations

from collections.abc import Callable

from quic_interop.engine.base import OverlayEngine, TransportEngine
from quic_interop.models.entities import Peer
from quic_interop.models.enums import ProbeKind
from quic_interop.probes.base import Probe, StreamTracker
from quic_interop.probes.connectivity import ConnectivityProbe
from quic_interop.probes.multiplexed import MultiplexedProbe
from quic_interop.probes.request_response import RequestResponseProbe

OverlayFactory = Callable[[TransportEngine], OverlayEngine]


def build_scenario_probe(
    kind: ProbeKind,
    engine: TransportEngine,
    peer: Peer,
    overlay_factory: OverlayFactory,
) -> Probe:
    """Build the scenario-phase probe for ``kind`` on a connected engine.

    Raises:
        ValueError: For the connect kind, which has no scenario phase
    """
    if kind is ProbeKind.H9:
        return RequestResponseProbe(engine)
    if kind is ProbeKind.H3:
        return MultiplexedProbe(overlay_factory(engine), host=peer.host)
    raise ValueError(f"{kind.value} has no scenario phase")


__all__ = [
    "ConnectivityProbe",
    "MultiplexedProbe",
    "OverlayFactory",
    "Probe",
    "RequestResponseProbe",
    "StreamTracker",
    "build_scenario_probe",
]
