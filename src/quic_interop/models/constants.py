"""Constants for the interop harness."""

# Largest datagram a single receive will accept. A read that fills the whole
# buffer may have been truncated by the kernel and is dropped.
MAX_DATAGRAM_SIZE = 2048

# Each phase (connect, scenario) of a probe gets its own budget.
DEFAULT_PHASE_TIMEOUT_SECONDS = 5.0

# Idle timeout handed to the QUIC engine.
DEFAULT_IDLE_TIMEOUT_SECONDS = 30.0

# Chunk size used when draining a readable stream.
STREAM_READ_CHUNK = 4000

# HTTP/0.9 request sent by the request/response probe.
HQ_REQUEST_PATH = "/10"
HQ_REQUEST_LINE = f"GET {HQ_REQUEST_PATH}\r\n"

# Path fetched by the multiplexed (HTTP/3) probe.
H3_REQUEST_PATH = "/"

# Application close sent once a probe has what it needs.
CLOSE_ERROR_CODE = 0
# HTTP/3 applications close with H3_NO_ERROR instead.
H3_NO_ERROR = 0x100
CLOSE_REASON = "kthxbye!"

# ALPN identifiers offered during the handshake.
ALPN_HQ = "hq-interop"
ALPN_H3 = "h3"
