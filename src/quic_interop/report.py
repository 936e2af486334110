"""Rendering of run outcomes: one record per (peer, probe)."""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Sequence

from quic_interop.models.entities import ProbeOutcome
from quic_interop.models.enums import OutcomeStatus


def format_table(outcomes: Sequence[ProbeOutcome]) -> str:
    """Align outcomes into ``peer  probe  result`` lines.

    Example:
        >>> from quic_interop.models import Phase, ProbeKind
        >>> print(format_table([ProbeOutcome.success("local", ProbeKind.H9, Phase.SCENARIO)]))
        PEER   PROBE  RESULT
        local  h9     OK
    """
    rows = [("PEER", "PROBE", "RESULT")]
    rows.extend((o.peer, o.probe.label, o.text) for o in outcomes)
    peer_width = max(len(row[0]) for row in rows)
    probe_width = max(len(row[1]) for row in rows)
    return "\n".join(
        f"{peer:<{peer_width}}  {probe:<{probe_width}}  {text}".rstrip()
        for peer, probe, text in rows
    )


def to_json(outcomes: Sequence[ProbeOutcome]) -> str:
    return json.dumps([o.model_dump(mode="json") for o in outcomes], indent=2)


def summarize(outcomes: Sequence[ProbeOutcome]) -> dict[str, int]:
    """Count outcomes per status; every status is present, zero or not."""
    counts = Counter(o.status for o in outcomes)
    return {status.value: counts.get(status, 0) for status in OutcomeStatus}


def all_passed(outcomes: Sequence[ProbeOutcome]) -> bool:
    return all(o.passed for o in outcomes)
