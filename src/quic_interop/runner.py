"""Concurrent scheduling of probes across peers.

Two levels of fan-out: one worker thread per selected peer and, inside it,
one worker thread per selected probe kind. Each probe worker owns its own
channel and engine for its whole life, so workers share nothing but the
read-only configuration.

Fan-in preserves submission order. An exception escaping a worker becomes a
crashed outcome for that worker alone; siblings are unaffected.

Example:
    >>> from quic_interop.config import LabelFilter, Selection, load_config
    >>> runner = InteropRunner(
    ...     load_config(),
    ...     Selection(peers=LabelFilter.of(include=["local"])),
    ... )
    >>> outcomes = runner.run()  # doctest: +SKIP
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor

from quic_interop.config import InteropConfig, Selection
from quic_interop.engine.base import TransportEngine
from quic_interop.engine.h3 import default_overlay_factory
from quic_interop.engine.quic import default_engine_factory
from quic_interop.errors import (
    ChannelIOError,
    EngineError,
    InteropError,
    PhaseTimeoutError,
    ScenarioFailedError,
)
from quic_interop.models.entities import Peer, ProbeOutcome
from quic_interop.models.enums import ConnectionState, Phase, ProbeKind
from quic_interop.observability import bind_context, clear_context, get_logger
from quic_interop.probes import ConnectivityProbe, OverlayFactory, build_scenario_probe
from quic_interop.transport.channel import NetworkChannel
from quic_interop.transport.driver import DriverSession, LoopExit, drive

logger = get_logger(__name__)

EngineFactory = Callable[[Peer, Sequence[str], NetworkChannel, InteropConfig], TransportEngine]
ChannelFactory = Callable[[Peer], NetworkChannel]


class InteropRunner:
    """Runs every selected probe against every selected peer.

    Attributes:
        config: Immutable peer table and run settings
        selection: Peer and probe filters applied before any worker starts
    """

    def __init__(
        self,
        config: InteropConfig,
        selection: Selection | None = None,
        *,
        engine_factory: EngineFactory = default_engine_factory,
        overlay_factory: OverlayFactory = default_overlay_factory,
        channel_factory: ChannelFactory = NetworkChannel.open,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.selection = selection or Selection()
        self._engine_factory = engine_factory
        self._overlay_factory = overlay_factory
        self._channel_factory = channel_factory
        self._clock = clock

    def run(self) -> list[ProbeOutcome]:
        """Run all selected peers concurrently and collect their outcomes in peer order."""
        peers = self.selection.select_peers(self.config)
        kinds = self.selection.select_probes()
        if not peers or not kinds:
            logger.warning(
                "interop.run.empty_selection",
                peers=len(peers),
                probes=len(kinds),
            )
            return []

        outcomes: list[ProbeOutcome] = []
        with ThreadPoolExecutor(
            max_workers=self._pool_size(len(peers)), thread_name_prefix="interop-peer"
        ) as pool:
            futures = [(peer, pool.submit(self.run_peer, peer, kinds)) for peer in peers]
            for peer, future in futures:
                outcomes.extend(self._join_peer(peer, kinds, future))
        return outcomes

    def run_peer(
        self, peer: Peer, kinds: Sequence[ProbeKind] | None = None
    ) -> list[ProbeOutcome]:
        """Run the probes for one peer concurrently; outcomes follow ``kinds`` order."""
        if kinds is None:
            kinds = self.selection.select_probes()
        if not kinds:
            return []

        logger.info("interop.peer.start", peer=peer.label, probes=[k.label for k in kinds])
        with ThreadPoolExecutor(
            max_workers=self._pool_size(len(kinds)),
            thread_name_prefix=f"interop-{peer.label}",
        ) as pool:
            futures = [(kind, pool.submit(self.run_probe, peer, kind)) for kind in kinds]
            results = [self._join_probe(peer, kind, future) for kind, future in futures]

        logger.info(
            "interop.peer.complete",
            peer=peer.label,
            results={outcome.probe.label: outcome.text for outcome in results},
        )
        return results

    def run_probe(self, peer: Peer, kind: ProbeKind) -> ProbeOutcome:
        """Run the connect phase and, if it succeeds, the scenario phase.

        Expected failures (bind, connect, I/O, timeouts, engine or scenario
        failures) become the outcome. Anything else propagates to the caller.
        """
        # Worker threads start with an empty context; probe and driver logs pick these up.
        bind_context(peer=peer.label, probe=kind.label)
        try:
            return self._run_probe(peer, kind)
        finally:
            clear_context()

    def _run_probe(self, peer: Peer, kind: ProbeKind) -> ProbeOutcome:
        started = self._clock()
        phase = Phase.CONNECT
        try:
            with self._channel_factory(peer) as channel:
                engine = self._engine_factory(peer, self.config.alpn_for(kind), channel, self.config)
                self._connect(engine, channel)
                logger.debug("interop.probe.connected")
                if kind is not ProbeKind.CONNECT:
                    phase = Phase.SCENARIO
                    self._scenario(kind, peer, engine, channel)
            outcome = ProbeOutcome.success(
                peer.label, kind, phase, elapsed_seconds=self._elapsed(started)
            )
        except PhaseTimeoutError:
            outcome = ProbeOutcome.timeout(
                peer.label, kind, phase, elapsed_seconds=self._elapsed(started)
            )
        except InteropError as exc:
            outcome = ProbeOutcome.failure(
                peer.label, kind, exc.message, phase, elapsed_seconds=self._elapsed(started)
            )

        logger.info(
            "interop.probe.complete",
            status=outcome.status.value,
            phase=phase.value,
            result=outcome.text,
            elapsed=round(outcome.elapsed_seconds, 3),
        )
        return outcome

    def _connect(self, engine: TransportEngine, channel: NetworkChannel) -> None:
        timeout = self.config.phase_timeout_seconds
        session = DriverSession.with_timeout(engine, channel, timeout, clock=self._clock)
        result = drive(session, ConnectivityProbe(engine))
        if result.exit is LoopExit.TIMED_OUT:
            raise PhaseTimeoutError(Phase.CONNECT.value, timeout)
        if result.exit is LoopExit.ERROR:
            raise ChannelIOError(result.reason or "Read error")
        if result.state is not ConnectionState.CONNECTED:
            state = result.state.value if result.state is not None else "unknown"
            raise EngineError(state)

    def _scenario(
        self,
        kind: ProbeKind,
        peer: Peer,
        engine: TransportEngine,
        channel: NetworkChannel,
    ) -> None:
        timeout = self.config.phase_timeout_seconds
        probe = build_scenario_probe(kind, engine, peer, self._overlay_factory)
        # The scenario phase gets a fresh budget; time spent connecting does not count.
        session = DriverSession.with_timeout(engine, channel, timeout, clock=self._clock)
        result = drive(session, probe)
        if result.exit is LoopExit.TIMED_OUT:
            raise PhaseTimeoutError(Phase.SCENARIO.value, timeout)
        if result.exit is LoopExit.ERROR:
            raise ChannelIOError(result.reason or "Read error")
        if probe.violation is not None:
            raise probe.violation
        reason = probe.verdict()
        if reason is not None:
            raise ScenarioFailedError(reason)

    def _join_probe(
        self, peer: Peer, kind: ProbeKind, future: Future[ProbeOutcome]
    ) -> ProbeOutcome:
        try:
            return future.result()
        except Exception as exc:
            logger.error(
                "interop.probe.crashed",
                peer=peer.label,
                probe=kind.label,
                error=_describe(exc),
                exc_info=exc,
            )
            return ProbeOutcome.crashed(peer.label, kind, _describe(exc))

    def _join_peer(
        self, peer: Peer, kinds: Sequence[ProbeKind], future: Future[list[ProbeOutcome]]
    ) -> list[ProbeOutcome]:
        try:
            return future.result()
        except Exception as exc:
            logger.error(
                "interop.peer.crashed",
                peer=peer.label,
                error=_describe(exc),
                exc_info=exc,
            )
            return [ProbeOutcome.crashed(peer.label, kind, _describe(exc)) for kind in kinds]

    def _pool_size(self, items: int) -> int:
        cap = self.config.max_workers_per_level
        return max(1, min(items, cap) if cap is not None else items)

    def _elapsed(self, started: float) -> float:
        return max(0.0, self._clock() - started)


def _describe(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"
