"""Interop models.

Pydantic models and enums shared by the configuration, runner and reports.
"""

from quic_interop.models.base import InteropBaseModel
from quic_interop.models.constants import (
    DEFAULT_PHASE_TIMEOUT_SECONDS,
    MAX_DATAGRAM_SIZE,
)
from quic_interop.models.entities import Peer, ProbeOutcome
from quic_interop.models.enums import ConnectionState, OutcomeStatus, Phase, ProbeKind

__all__ = [
    "ConnectionState",
    "DEFAULT_PHASE_TIMEOUT_SECONDS",
    "InteropBaseModel",
    "MAX_DATAGRAM_SIZE",
    "OutcomeStatus",
    "Peer",
    "Phase",
    "ProbeKind",
    "ProbeOutcome",
]
