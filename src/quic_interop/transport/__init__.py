"""UDP channel and the driver loop that runs engines over it."""

from quic_interop.transport.channel import NetworkChannel, Received, ReceiveStatus
from quic_interop.transport.driver import DriverSession, LoopExit, LoopResult, drive

__all__ = [
    "DriverSession",
    "LoopExit",
    "LoopResult",
    "NetworkChannel",
    "ReceiveStatus",
    "Received",
    "drive",
]
