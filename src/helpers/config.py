"""Configuration management and environment variable utilities."""

import os

from dotenv import load_dotenv

from src.helpers.constants import DEFAULT_RPC_PARALLEL, DEFAULT_TIMEOUT
from src.helpers.logging import LOG_LEVELS


# Load environment variables from .env file
load_dotenv()

TRUTHY_VALUES = frozenset({"1", "true", "yes", "on"})


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    return os.getenv(key, default)


def get_eth_rpc_url(rpc_url: str | None = None) -> str:
    """Get Ethereum RPC URL from parameter or environment.

    Args:
        rpc_url: Optional RPC URL to use directly

    Returns:
        Ethereum RPC URL

    Raises:
        ValueError: If RPC URL is not provided and ETH_RPC_URL env var is not set

    Example:
        ```python
        from src.helpers.config import get_eth_rpc_url

        # Get from environment
        rpc_url = get_eth_rpc_url()

        # Or provide explicitly
        rpc_url = get_eth_rpc_url("http://localhost:8545")
        ```
    """
    if rpc_url:
        return rpc_url

    env_rpc_url = get_optional_env("ETH_RPC_URL")
    if not env_rpc_url:
        msg = "ETH_RPC_URL must be provided or set in environment variables"
        raise ValueError(msg)

    return env_rpc_url


def _parse_positive_int(key: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        msg = f"{key} must be a positive integer, got {raw!r}"
        raise ValueError(msg) from None
    if value < 1:
        msg = f"{key} must be a positive integer, got {raw!r}"
        raise ValueError(msg)
    return value


def get_rpc_parallel(rpc_parallel: int | None = None) -> int:
    """Get the number of blocks to analyse concurrently.

    Args:
        rpc_parallel: Optional explicit value (e.g. from a CLI flag)

    Returns:
        Parallelism, taken from the argument, then ETH_RPC_PAR, then the default

    Raises:
        ValueError: If the resolved value is not a positive integer
    """
    if rpc_parallel is not None:
        return _parse_positive_int("rpc_parallel", str(rpc_parallel))

    raw = get_optional_env("ETH_RPC_PAR")
    if not raw:
        return DEFAULT_RPC_PARALLEL
    return _parse_positive_int("ETH_RPC_PAR", raw)


def get_rpc_timeout() -> float:
    """Get the JSON-RPC request timeout in seconds from ETH_RPC_TIMEOUT."""
    raw = get_optional_env("ETH_RPC_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        msg = f"ETH_RPC_TIMEOUT must be a number of seconds, got {raw!r}"
        raise ValueError(msg) from None
    if timeout <= 0:
        msg = f"ETH_RPC_TIMEOUT must be positive, got {raw!r}"
        raise ValueError(msg)
    return timeout


def get_log_level(log_level: str | None = None) -> str:
    """Get log level name from parameter, LOG_LEVEL, or INFO.

    Raises:
        ValueError: If the level is not a known logging level name
    """
    level = (log_level or get_optional_env("LOG_LEVEL") or "INFO").upper()
    if level not in LOG_LEVELS:
        msg = f"Invalid log level: {level}"
        raise ValueError(msg)
    return level


def get_log_color() -> bool:
    """Whether LOG_COLOR asks for colored log output."""
    return (get_optional_env("LOG_COLOR") or "").strip().lower() in TRUTHY_VALUES


__all__ = [
    "get_eth_rpc_url",
    "get_log_color",
    "get_log_level",
    "get_optional_env",
    "get_rpc_parallel",
    "get_rpc_timeout",
]
