"""Configuration for the interop harness.

The peer table and run settings are loaded once at startup from a JSON
document and are immutable afterwards. When no document is given, the
table packaged with the harness (``peers.json``) is used.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from importlib import resources
from pathlib import Path
from typing import TypeVar

from pydantic import Field, ValidationError, field_validator

from quic_interop.errors import ConfigError
from quic_interop.models.base import InteropBaseModel
from quic_interop.models.constants import (
    DEFAULT_IDLE_TIMEOUT_SECONDS,
    DEFAULT_PHASE_TIMEOUT_SECONDS,
)
from quic_interop.models.entities import Peer
from quic_interop.models.enums import ProbeKind

DEFAULT_PEERS_RESOURCE = "peers.json"

T = TypeVar("T")


class InteropConfig(InteropBaseModel):
    peers: tuple[Peer, ...] = Field(..., description="Peer table, in scheduling order")
    phase_timeout_seconds: float = Field(
        default=DEFAULT_PHASE_TIMEOUT_SECONDS,
        gt=0,
        description="Budget for each probe phase (connect and scenario separately)",
    )
    idle_timeout_seconds: float = Field(
        default=DEFAULT_IDLE_TIMEOUT_SECONDS,
        gt=0,
        description="QUIC idle timeout offered to peers",
    )
    verify_certificates: bool = Field(
        default=False,
        description="Verify peer TLS certificates (interop endpoints are usually self-signed)",
    )
    alpn_overrides: dict[ProbeKind, list[str]] = Field(
        default_factory=dict,
        description="ALPN identifiers to offer instead of the probe kind's default",
    )
    max_workers_per_level: int | None = Field(
        default=None,
        ge=1,
        description="Cap on concurrent workers per fan-out level (default: one per item)",
    )

    @field_validator("peers")
    @classmethod
    def _unique_labels(cls, peers: tuple[Peer, ...]) -> tuple[Peer, ...]:
        seen: set[str] = set()
        for peer in peers:
            if peer.label in seen:
                raise ValueError(f"duplicate peer label: {peer.label}")
            seen.add(peer.label)
        return peers

    @field_validator("alpn_overrides")
    @classmethod
    def _non_empty_alpn(cls, overrides: dict[ProbeKind, list[str]]) -> dict[ProbeKind, list[str]]:
        for kind, alpn in overrides.items():
            if not alpn:
                raise ValueError(f"empty ALPN list for {kind.value}")
        return overrides

    def alpn_for(self, kind: ProbeKind) -> list[str]:
        return list(self.alpn_overrides.get(kind, kind.default_alpn))

    def peer(self, label: str) -> Peer:
        for peer in self.peers:
            if peer.label == label:
                return peer
        raise KeyError(label)

    @property
    def peer_labels(self) -> list[str]:
        return [peer.label for peer in self.peers]


class LabelFilter(InteropBaseModel):
    """Include/exclude selection by label.

    An empty include set means "everything". Exclusion always wins, even for
    labels that are also included.

    Example:
        >>> f = LabelFilter(include=frozenset({"local", "quant"}), exclude=frozenset({"quant"}))
        >>> f.allows("local"), f.allows("quant"), f.allows("google")
        (True, False, False)
    """

    include: frozenset[str] = Field(default_factory=frozenset)
    exclude: frozenset[str] = Field(default_factory=frozenset)

    @classmethod
    def of(
        cls, include: Iterable[str] | None = None, exclude: Iterable[str] | None = None
    ) -> LabelFilter:
        return cls(include=frozenset(include or ()), exclude=frozenset(exclude or ()))

    def allows(self, label: str) -> bool:
        if self.include and label not in self.include:
            return False
        return label not in self.exclude

    def select(self, items: Iterable[T], key: Callable[[T], str]) -> list[T]:
        """Keep the allowed items, preserving their order."""
        return [item for item in items if self.allows(key(item))]


class Selection(InteropBaseModel):
    """Which peers and which probe kinds a run schedules."""

    peers: LabelFilter = Field(default_factory=LabelFilter)
    probes: LabelFilter = Field(default_factory=LabelFilter)

    def select_peers(self, config: InteropConfig) -> list[Peer]:
        return self.peers.select(config.peers, key=lambda peer: peer.label)

    def select_probes(self) -> list[ProbeKind]:
        return self.probes.select(ProbeKind.ordered(), key=lambda kind: kind.label)


def parse_config(data: object, source: str = "<memory>") -> InteropConfig:
    """Validate an already-decoded configuration document.

    Raises:
        ConfigError: If the document does not describe a valid configuration
    """
    try:
        return InteropConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(source, str(exc)) from exc


def load_config(path: Path | None = None) -> InteropConfig:
    """Load the configuration from ``path``, or the packaged peer table.

    Raises:
        ConfigError: If the file is missing, is not JSON, or fails validation
    """
    if path is None:
        source = f"package:{DEFAULT_PEERS_RESOURCE}"
        text = resources.files("quic_interop").joinpath(DEFAULT_PEERS_RESOURCE).read_text(
            encoding="utf-8"
        )
    else:
        source = str(path)
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(source, f"cannot read file: {exc}") from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(source, f"invalid JSON: {exc}") from exc
    return parse_config(data, source=source)
