"""aioquic servers for exercising the engine adapters.

LoopbackServer shuttles datagrams in memory; ThreadedQuicServer listens on a
real loopback UDP port for end-to-end runs.
"""

from __future__ import annotations

import asyncio
import datetime
import socket
import threading
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from aioquic.asyncio import QuicConnectionProtocol, serve
from aioquic.asyncio.server import QuicServer
from aioquic.buffer import Buffer
from aioquic.h3.connection import H3Connection
from aioquic.h3.events import HeadersReceived
from aioquic.quic import events as quic_events
from aioquic.quic.configuration import QuicConfiguration
from aioquic.quic.connection import QuicConnection
from aioquic.quic.packet import pull_quic_header
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from quic_interop.engine.base import Datagram
from quic_interop.engine.quic import QuicEngine
from quic_interop.models.entities import Peer

CLIENT_ADDRESS = ("127.0.0.1", 50000)
SERVER_ADDRESS = ("127.0.0.1", 4433)

ServerHandler = Callable[[QuicConnection, quic_events.QuicEvent], None]


@pytest.fixture(scope="session")
def certificate_files(tmp_path_factory: pytest.TempPathFactory) -> tuple[Path, Path]:
    """Self-signed EC certificate and key for localhost."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "localhost")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=1))
        .add_extension(x509.SubjectAlternativeName([x509.DNSName("localhost")]), critical=False)
        .sign(key, hashes.SHA256())
    )
    directory = tmp_path_factory.mktemp("certs")
    cert_path = directory / "cert.pem"
    key_path = directory / "key.pem"
    cert_path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    key_path.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    return cert_path, key_path


class LoopbackServer:
    """A server QuicConnection exchanging datagrams with a QuicEngine in memory."""

    def __init__(self, alpn: list[str], certificate_files: tuple[Path, Path]) -> None:
        configuration = QuicConfiguration(is_client=False, alpn_protocols=alpn)
        configuration.load_cert_chain(*certificate_files)
        self.configuration = configuration
        self._connection: QuicConnection | None = None
        self.events: list[quic_events.QuicEvent] = []
        self.handler: ServerHandler | None = None
        self.now = 1.0

    @property
    def connection(self) -> QuicConnection:
        if self._connection is None:
            raise RuntimeError("no client datagram received yet")
        return self._connection

    def _accept(self, payload: bytes) -> QuicConnection:
        """Create the server connection from the client's first Initial."""
        if self._connection is None:
            header = pull_quic_header(
                Buffer(data=payload), host_cid_length=self.configuration.connection_id_length
            )
            self._connection = QuicConnection(
                configuration=self.configuration,
                original_destination_connection_id=header.destination_cid,
            )
        return self._connection

    def exchange(
        self,
        engine: QuicEngine,
        until: Callable[[], bool],
        rounds: int = 50,
        step: float = 0.01,
    ) -> bool:
        """Shuttle datagrams both ways until ``until()`` holds or the rounds run out.

        Each round advances the shared clock by ``step`` and fires the
        server's timer when it is due; the engine fires its own.
        """
        for _ in range(rounds):
            self.now += step
            if self._connection is not None:
                timer = self._connection.get_timer()
                if timer is not None and timer <= self.now:
                    self._connection.handle_timer(now=self.now)
            for payload in engine.poll_outbound(self.now):
                self._accept(payload).receive_datagram(payload, CLIENT_ADDRESS, now=self.now)
            if self._connection is None:
                continue
            event = self.connection.next_event()
            while event is not None:
                self.events.append(event)
                if self.handler is not None:
                    self.handler(self.connection, event)
                event = self.connection.next_event()
            inbound = [
                Datagram(payload, SERVER_ADDRESS, CLIENT_ADDRESS)
                for payload, _addr in self.connection.datagrams_to_send(now=self.now)
            ]
            engine.submit_inbound(inbound, self.now)
            if until():
                return True
        return False


@pytest.fixture
def loopback_server(certificate_files: tuple[Path, Path]) -> Callable[[list[str]], LoopbackServer]:
    def build(alpn: list[str]) -> LoopbackServer:
        return LoopbackServer(alpn, certificate_files)

    return build


class InteropServerProtocol(QuicConnectionProtocol):
    """Answers hq-interop requests with a fixed body and h3 requests with a 200."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._http: H3Connection | None = None

    def quic_event_received(self, event: quic_events.QuicEvent) -> None:
        if isinstance(event, quic_events.ProtocolNegotiated) and event.alpn_protocol == "h3":
            self._http = H3Connection(self._quic)
        if self._http is not None:
            for http_event in self._http.handle_event(event):
                if isinstance(http_event, HeadersReceived):
                    self._http.send_headers(http_event.stream_id, [(b":status", b"200")])
                    self._http.send_data(http_event.stream_id, b"hello", end_stream=True)
        elif isinstance(event, quic_events.StreamDataReceived) and event.end_stream:
            self._quic.send_stream_data(event.stream_id, b"0123456789", end_stream=True)


class ThreadedQuicServer:
    """An aioquic server on a loopback UDP port, run on its own event loop thread."""

    def __init__(self, certificate_files: tuple[Path, Path]) -> None:
        configuration = QuicConfiguration(is_client=False, alpn_protocols=["hq-interop", "h3"])
        configuration.load_cert_chain(*certificate_files)
        self.configuration = configuration
        self.port = _free_udp_port()
        self._loop = asyncio.new_event_loop()
        self._ready = threading.Event()
        self._error: BaseException | None = None
        self._server: QuicServer | None = None
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def peer(self, label: str = "local") -> Peer:
        return Peer(label=label, host="127.0.0.1", port=self.port)

    def start(self) -> None:
        self._thread.start()
        if not self._ready.wait(5.0):
            raise RuntimeError("QUIC server did not start")
        if self._error is not None:
            raise self._error

    def stop(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(5.0)

    def _serve(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._server = self._loop.run_until_complete(
                serve(
                    "127.0.0.1",
                    self.port,
                    configuration=self.configuration,
                    create_protocol=InteropServerProtocol,
                )
            )
        except Exception as exc:
            self._error = exc
            self._ready.set()
            return
        self._ready.set()
        try:
            self._loop.run_forever()
        finally:
            self._server.close()
            self._loop.close()


def _free_udp_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def quic_server(certificate_files: tuple[Path, Path]) -> Iterator[ThreadedQuicServer]:
    server = ThreadedQuicServer(certificate_files)
    server.start()
    yield server
    server.stop()
