"""Core entities: peers and probe outcomes."""

from __future__ import annotations

from pydantic import Field

from quic_interop.models.base import InteropBaseModel
from quic_interop.models.enums import OutcomeStatus, Phase, ProbeKind

TIMEOUT_TEXT = "Timed out"
CRASHED_TEXT = "CRASHED"
SUCCESS_TEXT = "OK"


class Peer(InteropBaseModel):
    """A remote QUIC endpoint under test.

    Peers are read-only and shared by every worker that references them.

    Example:
        >>> peer = Peer(label="local", host="127.0.0.1", port=4433)
        >>> peer.authority
        '127.0.0.1:4433'
    """

    label: str = Field(..., min_length=1, description="Short name used by the filters")
    host: str = Field(..., min_length=1, description="Hostname or address literal")
    port: int = Field(..., ge=1, le=65535)

    @property
    def authority(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


class ProbeOutcome(InteropBaseModel):
    """Result of one (peer, probe) unit of work.

    Exactly one outcome is produced per pair; it is immutable once built.

    Attributes:
        peer: Label of the peer.
        probe: Probe kind that ran.
        status: Success, failure, timeout or crashed.
        reason: Failure reason (or crash description); None otherwise.
        phase: Phase that decided the outcome; None for crashes.
        elapsed_seconds: Wall time spent on the unit of work.
    """

    peer: str
    probe: ProbeKind
    status: OutcomeStatus
    reason: str | None = None
    phase: Phase | None = None
    elapsed_seconds: float = Field(default=0.0, ge=0.0)

    @classmethod
    def success(
        cls, peer: str, probe: ProbeKind, phase: Phase, elapsed_seconds: float = 0.0
    ) -> ProbeOutcome:
        return cls(
            peer=peer,
            probe=probe,
            status=OutcomeStatus.SUCCESS,
            phase=phase,
            elapsed_seconds=elapsed_seconds,
        )

    @classmethod
    def failure(
        cls,
        peer: str,
        probe: ProbeKind,
        reason: str,
        phase: Phase,
        elapsed_seconds: float = 0.0,
    ) -> ProbeOutcome:
        return cls(
            peer=peer,
            probe=probe,
            status=OutcomeStatus.FAILURE,
            reason=reason,
            phase=phase,
            elapsed_seconds=elapsed_seconds,
        )

    @classmethod
    def timeout(
        cls, peer: str, probe: ProbeKind, phase: Phase, elapsed_seconds: float = 0.0
    ) -> ProbeOutcome:
        return cls(
            peer=peer,
            probe=probe,
            status=OutcomeStatus.TIMEOUT,
            reason=TIMEOUT_TEXT,
            phase=phase,
            elapsed_seconds=elapsed_seconds,
        )

    @classmethod
    def crashed(cls, peer: str, probe: ProbeKind, reason: str | None = None) -> ProbeOutcome:
        return cls(peer=peer, probe=probe, status=OutcomeStatus.CRASHED, reason=reason)

    @property
    def passed(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    @property
    def text(self) -> str:
        """Short outcome text used in reports (OK, reason, Timed out, CRASHED)."""
        if self.status == OutcomeStatus.SUCCESS:
            return SUCCESS_TEXT
        if self.status == OutcomeStatus.TIMEOUT:
            return TIMEOUT_TEXT
        if self.status == OutcomeStatus.CRASHED:
            return CRASHED_TEXT
        return self.reason or "Failed"
