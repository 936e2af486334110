"""Enumerations for the interop harness.

This module defines all enum types used across the harness to ensure
type safety and prevent magic strings.
"""

from enum import Enum

from quic_interop.models.constants import ALPN_H3, ALPN_HQ


class ProbeKind(str, Enum):
    """Probe scenarios that can be run against a peer.

    The value doubles as the label used by the include/exclude filters.

    Example:
        >>> ProbeKind("h3").default_alpn
        ['h3']
        >>> [kind.label for kind in ProbeKind.ordered()]
        ['connect', 'h9', 'h3']
    """

    CONNECT = "connect"
    H9 = "h9"
    H3 = "h3"

    @classmethod
    def ordered(cls) -> tuple["ProbeKind", ...]:
        """Return all kinds in submission order."""
        return (cls.CONNECT, cls.H9, cls.H3)

    @property
    def label(self) -> str:
        return self.value

    @property
    def default_alpn(self) -> list[str]:
        """ALPN offered during the handshake for this kind of probe."""
        if self is ProbeKind.H3:
            return [ALPN_H3]
        return [ALPN_HQ]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    ProbeKind.CONNECT: "Handshake only",
    ProbeKind.H9: "HTTP/0.9 request and response on one stream",
    ProbeKind.H3: "HTTP/3 request over the multiplexed overlay",
}


class OutcomeStatus(str, Enum):
    """Final result of one (peer, probe) unit of work."""

    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"
    CRASHED = "crashed"


class Phase(str, Enum):
    """Phase of a probe run. Each phase has its own deadline."""

    CONNECT = "connect"
    SCENARIO = "scenario"


class ConnectionState(str, Enum):
    """Connection state as reported by a transport engine.

    Example:
        >>> ConnectionState.CLOSED.is_closed
        True
    """

    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"
    CLOSED = "closed"

    @property
    def is_closed(self) -> bool:
        return self is ConnectionState.CLOSED
