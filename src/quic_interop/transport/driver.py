"""Driver loop: advances an engine and a probe together until a terminal condition.

Each iteration feeds the datagrams received since the previous iteration into
the engine, stops early if the engine has closed, lets the probe react to the
queued engine events, sends whatever the engine wants to send, and then
blocks on the channel until data arrives or the phase deadline passes.

One absolute deadline bounds the whole phase, so multi-round-trip exchanges
can finish while an unresponsive peer still cannot hold a worker past it.
The loop keeps no state between invocations.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from quic_interop.engine.base import Datagram, TransportEngine
from quic_interop.errors import ChannelIOError
from quic_interop.models.enums import ConnectionState
from quic_interop.observability import get_logger
from quic_interop.probes.base import Probe
from quic_interop.transport.channel import NetworkChannel, ReceiveStatus

logger = get_logger(__name__)


class LoopExit(str, Enum):
    """How a driver loop invocation ended."""

    STOPPED = "stopped"
    TIMED_OUT = "timed_out"
    ERROR = "error"


@dataclass(frozen=True)
class LoopResult:
    """Terminal result of one driver loop invocation.

    ``state`` is the engine state when the loop stopped (STOPPED only);
    ``reason`` describes an ERROR exit.
    """

    exit: LoopExit
    state: ConnectionState | None = None
    reason: str | None = None

    @classmethod
    def stopped(cls, state: ConnectionState) -> LoopResult:
        return cls(LoopExit.STOPPED, state=state)

    @classmethod
    def timed_out(cls) -> LoopResult:
        return cls(LoopExit.TIMED_OUT)

    @classmethod
    def error(cls, reason: str) -> LoopResult:
        return cls(LoopExit.ERROR, reason=reason)


@dataclass
class DriverSession:
    """Binds one engine to one channel and one absolute deadline.

    Lives only for a single driver loop call.
    """

    engine: TransportEngine
    channel: NetworkChannel
    deadline: float
    clock: Callable[[], float] = field(default=time.monotonic)

    @classmethod
    def with_timeout(
        cls,
        engine: TransportEngine,
        channel: NetworkChannel,
        timeout_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> DriverSession:
        """Start a session whose deadline is ``timeout_seconds`` from now."""
        return cls(engine=engine, channel=channel, deadline=clock() + timeout_seconds, clock=clock)


def drive(session: DriverSession, probe: Probe) -> LoopResult:
    """Run the poll/feed/step/send/wait cycle until the engine or probe ends it."""
    engine = session.engine
    channel = session.channel
    clock = session.clock
    held: list[Datagram] = []

    while True:
        engine.submit_inbound(held, clock())
        held = []

        state = engine.connection_state()
        if state.is_closed:
            logger.debug("interop.driver.closed", probe=probe.name)
            return LoopResult.stopped(state)

        keep_going = probe.step(engine.drain_events())

        try:
            channel.send(engine.poll_outbound(clock()))
        except ChannelIOError as exc:
            return LoopResult.error(exc.reason)

        if not keep_going:
            return LoopResult.stopped(engine.connection_state())

        now = clock()
        if session.deadline - now <= 0:
            logger.debug("interop.driver.timeout", probe=probe.name)
            return LoopResult.timed_out()

        # Wake early when the engine has a timer to run (retransmission,
        # idle or close timers); the phase deadline stays the hard limit.
        wait_until = session.deadline
        timer = engine.next_timer()
        if timer is not None and timer < wait_until:
            wait_until = max(timer, now)

        received = channel.receive(wait_until)
        if received.status is ReceiveStatus.TIMEOUT:
            if wait_until < session.deadline:
                continue
            logger.debug("interop.driver.timeout", probe=probe.name)
            return LoopResult.timed_out()
        if received.status is ReceiveStatus.ERROR:
            return LoopResult.error(received.reason or "Read error")
        if received.status is ReceiveStatus.DATA and received.datagram is not None:
            held.append(received.datagram)
