"""QUIC interop harness.

Drives a QUIC engine against a table of remote peers, running independent
probe scenarios concurrently and reporting one outcome per (peer, probe).
"""

__version__ = "0.3.0"
