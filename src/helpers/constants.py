"""Common configuration constants used across the application."""

# HTTP and Network Constants
DEFAULT_TIMEOUT = 30.0
"""Default JSON-RPC request timeout in seconds"""

CONNECTION_TIMEOUT = 3.0
"""Timeout for establishing connections"""

# Retry Configuration
MAX_RETRIES = 3
"""Default number of attempts for transport-level RPC failures"""

RETRY_BASE_DELAY = 0.5
"""Base delay for exponential backoff in seconds"""

RETRY_MAX_DELAY = 10.0
"""Maximum delay between retries in seconds"""

# Concurrency Limits
DEFAULT_RPC_PARALLEL = 10
"""Default number of blocks analysed concurrently (chunk size)"""

# HTTP Connection Pooling
MAX_KEEPALIVE_CONNECTIONS = 20
"""Maximum number of keepalive connections in pool"""

MAX_CONNECTIONS = 100
"""Maximum total number of connections"""

# Ethereum
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
"""Coinbase used when a block does not report one"""

WEI_PER_ETH = 10**18
"""Number of wei in one ether"""


__all__ = [
    "CONNECTION_TIMEOUT",
    "DEFAULT_RPC_PARALLEL",
    "DEFAULT_TIMEOUT",
    "MAX_CONNECTIONS",
    "MAX_KEEPALIVE_CONNECTIONS",
    "MAX_RETRIES",
    "RETRY_BASE_DELAY",
    "RETRY_MAX_DELAY",
    "WEI_PER_ETH",
    "ZERO_ADDRESS",
]
