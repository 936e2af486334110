"""Observability module for the interop harness.

Structured logging built on structlog.

Example:
    >>> from quic_interop.observability import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("interop.probe.complete", peer="local", probe="h9")
"""

from quic_interop.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
]
