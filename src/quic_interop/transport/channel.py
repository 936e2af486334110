"""UDP channel owned by exactly one probe worker.

A NetworkChannel is bound to an ephemeral local port of the same address
family as the peer, then connected to the peer so datagrams from any other
source are never delivered. Receives are bounded by an absolute deadline on
the monotonic clock.
"""

from __future__ import annotations

import socket
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from quic_interop.engine.base import Address, Datagram
from quic_interop.errors import BindError, ChannelIOError, ConnectError
from quic_interop.models.constants import MAX_DATAGRAM_SIZE
from quic_interop.models.entities import Peer
from quic_interop.observability import get_logger

logger = get_logger(__name__)


class ReceiveStatus(str, Enum):
    DATA = "data"
    DROPPED = "dropped"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass(frozen=True)
class Received:
    """Result of one bounded receive."""

    status: ReceiveStatus
    datagram: Datagram | None = None
    reason: str | None = None


_TIMEOUT = Received(ReceiveStatus.TIMEOUT)


def resolve(peer: Peer) -> tuple[socket.AddressFamily, Address]:
    """Resolve the peer to its first UDP address.

    Raises:
        ConnectError: If the name does not resolve
    """
    try:
        infos = socket.getaddrinfo(peer.host, peer.port, type=socket.SOCK_DGRAM)
    except OSError as exc:
        raise ConnectError(f"cannot resolve {peer.authority}: {exc}") from exc
    if not infos:
        raise ConnectError(f"no addresses for {peer.authority}")
    family, _type, _proto, _canon, sockaddr = infos[0]
    return family, (str(sockaddr[0]), int(sockaddr[1]))


class NetworkChannel:
    """One bound and connected UDP socket.

    Attributes:
        max_datagram_size: Receive buffer size; a read that fills it is dropped
    """

    def __init__(
        self,
        max_datagram_size: int = MAX_DATAGRAM_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_datagram_size = max_datagram_size
        self._clock = clock
        self._sock: socket.socket | None = None
        self._local: Address | None = None
        self._remote: Address | None = None

    @classmethod
    def open(
        cls,
        peer: Peer,
        max_datagram_size: int = MAX_DATAGRAM_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> NetworkChannel:
        """Create a channel bound and connected to ``peer``."""
        channel = cls(max_datagram_size=max_datagram_size, clock=clock)
        try:
            channel.bind(peer)
            channel.connect(peer)
        except Exception:
            channel.close()
            raise
        return channel

    @property
    def local_address(self) -> Address:
        if self._local is None:
            raise RuntimeError("channel is not bound")
        return self._local

    @property
    def remote_address(self) -> Address:
        if self._remote is None:
            raise RuntimeError("channel is not connected")
        return self._remote

    def bind(self, peer: Peer) -> Address:
        """Bind an ephemeral local port of the peer's address family.

        Raises:
            ConnectError: If the peer does not resolve
            BindError: If no local endpoint can be allocated
        """
        family, _remote = resolve(peer)
        wildcard = "::" if family == socket.AF_INET6 else "0.0.0.0"
        try:
            sock = socket.socket(family, socket.SOCK_DGRAM)
        except OSError as exc:
            raise BindError(str(exc), details={"family": family.name}) from exc
        try:
            sock.bind((wildcard, 0))
        except OSError as exc:
            sock.close()
            raise BindError(str(exc), details={"family": family.name}) from exc
        self._sock = sock
        self._local = _address(sock.getsockname())
        return self._local

    def connect(self, peer: Peer) -> Address:
        """Restrict the socket to the peer's address.

        Raises:
            ConnectError: If the peer does not resolve or the connect fails
        """
        if self._sock is None:
            raise ConnectError("channel is not bound")
        family, remote = resolve(peer)
        if family != self._sock.family:
            raise ConnectError(f"{peer.authority} resolved to a different address family")
        try:
            self._sock.connect(remote)
        except OSError as exc:
            raise ConnectError(str(exc), details={"peer": peer.label}) from exc
        self._remote = remote
        # connect() may pin the local address to a concrete interface.
        self._local = _address(self._sock.getsockname())
        return self._remote

    def send(self, datagrams: Iterable[bytes]) -> None:
        """Send each datagram to the peer.

        A short write is logged and not retried.

        Raises:
            ChannelIOError: If the socket rejects a send
        """
        sock = self._require_socket()
        for datagram in datagrams:
            try:
                sent = sock.send(datagram)
            except OSError as exc:
                raise ChannelIOError(f"Send error: {exc}") from exc
            if sent != len(datagram):
                logger.warning(
                    "interop.channel.short_send",
                    expected=len(datagram),
                    sent=sent,
                )

    def receive(self, deadline: float) -> Received:
        """Wait for one datagram until ``deadline`` on the channel clock.

        Zero-length reads and reads that fill the whole buffer are dropped.
        """
        sock = self._require_socket()
        remaining = deadline - self._clock()
        if remaining <= 0:
            # Still pick up anything already queued.
            sock.settimeout(0.0)
        else:
            sock.settimeout(remaining)
        try:
            data = sock.recv(self.max_datagram_size)
        except (TimeoutError, BlockingIOError):
            return _TIMEOUT
        except OSError as exc:
            logger.warning("interop.channel.recv_error", error=str(exc))
            return Received(ReceiveStatus.ERROR, reason="Read error")

        if len(data) == self.max_datagram_size:
            logger.warning(
                "interop.channel.oversize",
                size=len(data),
                limit=self.max_datagram_size,
            )
            return Received(ReceiveStatus.DROPPED, reason="oversize")
        if not data:
            return Received(ReceiveStatus.DROPPED, reason="empty")
        return Received(
            ReceiveStatus.DATA,
            datagram=Datagram(payload=data, source=self.remote_address, destination=self.local_address),
        )

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise ChannelIOError("channel is closed")
        return self._sock

    def __enter__(self) -> NetworkChannel:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()


def _address(sockaddr: tuple) -> Address:
    return str(sockaddr[0]), int(sockaddr[1])
