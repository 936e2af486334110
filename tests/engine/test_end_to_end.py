"""Full runs with the default aioquic factories against a real loopback QUIC server."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from quic_interop.models.enums import OutcomeStatus, Phase, ProbeKind
from quic_interop.runner import InteropRunner
from quic_interop.testing.fixtures import make_config

if TYPE_CHECKING:
    from tests.engine.conftest import ThreadedQuicServer

pytestmark = pytest.mark.network

HANDSHAKE_TIMEOUT = 5.0


class TestDefaultFactories:
    def test_every_probe_passes(self, quic_server: ThreadedQuicServer) -> None:
        config = make_config(quic_server.peer(), timeout=HANDSHAKE_TIMEOUT)

        outcomes = InteropRunner(config).run()

        assert [(o.probe, o.status, o.reason) for o in outcomes] == [
            (ProbeKind.CONNECT, OutcomeStatus.SUCCESS, None),
            (ProbeKind.H9, OutcomeStatus.SUCCESS, None),
            (ProbeKind.H3, OutcomeStatus.SUCCESS, None),
        ]
        assert [o.text for o in outcomes] == ["OK", "OK", "OK"]

    def test_h9_reaches_the_scenario_phase(self, quic_server: ThreadedQuicServer) -> None:
        runner = InteropRunner(make_config(quic_server.peer(), timeout=HANDSHAKE_TIMEOUT))

        outcome = runner.run_probe(quic_server.peer(), ProbeKind.H9)

        assert outcome.passed
        assert outcome.phase == Phase.SCENARIO
