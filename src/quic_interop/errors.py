"""Interop Error Taxonomy.

This module defines the error hierarchy for the interop harness. Every
error carries a namespaced code, a human-readable message and optional
context. Errors raised inside a probe worker are turned into that worker's
outcome and never reach sibling workers.
"""

from __future__ import annotations

from typing import Any


class InteropError(Exception):
    """Base exception for all interop harness errors.

    Attributes:
        code: Error code following the interop:<area>/<kind> pattern
        message: Human-readable error message
        details: Optional additional error context
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class BindError(InteropError):
    """Raised when a local UDP endpoint cannot be allocated."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="interop:channel/bind",
            message=f"Unable to bind UDP socket: {reason}",
            details=details or {},
        )
        self.reason = reason


class ConnectError(InteropError):
    """Raised when the channel cannot be restricted to the peer's address.

    This includes failing to resolve the peer's hostname.
    """

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="interop:channel/connect",
            message=f"Unable to connect UDP socket: {reason}",
            details=details or {},
        )
        self.reason = reason


class ChannelIOError(InteropError):
    """Raised when sending or receiving on a channel fails."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="interop:channel/io", message=reason, details=details or {})
        self.reason = reason


class PhaseTimeoutError(InteropError):
    """Raised when a probe phase exceeds its deadline.

    Attributes:
        phase: Phase that ran out of time ("connect" or "scenario")
        timeout_seconds: Budget the phase was given
    """

    def __init__(
        self, phase: str, timeout_seconds: float, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            code="interop:probe/timeout",
            message="Timed out",
            details={"phase": phase, "timeout_seconds": timeout_seconds, **(details or {})},
        )
        self.phase = phase
        self.timeout_seconds = timeout_seconds


class ProtocolViolationError(InteropError):
    """Raised when the engine reports an event on a stream the probe did not open.

    Attributes:
        stream_id: The unexpected stream id
    """

    def __init__(self, stream_id: int, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="interop:probe/protocol_violation",
            message=f"Data on unexpected stream: {stream_id}",
            details={"stream_id": stream_id, **(details or {})},
        )
        self.stream_id = stream_id


class ScenarioFailedError(InteropError):
    """Raised when a scenario ran to completion but did not pass.

    The message is the probe's verdict, e.g. "Empty response" or "No FIN".
    """

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="interop:probe/failed", message=reason, details=details or {})
        self.reason = reason


class EngineError(InteropError):
    """Raised when the engine ends a phase in a state other than the one required.

    A rejected handshake, for example, leaves the engine closed instead of
    connected.

    Attributes:
        state: Terminal state reported by the engine
    """

    def __init__(self, state: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="interop:engine/state",
            message=f"Engine ended in state {state}",
            details={"state": state, **(details or {})},
        )
        self.state = state


class ConfigError(InteropError):
    """Raised when the peer table cannot be loaded or validated."""

    def __init__(self, source: str, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="interop:config/invalid",
            message=f"Invalid configuration in {source}: {reason}",
            details={"source": source, **(details or {})},
        )
        self.source = source
        self.reason = reason
