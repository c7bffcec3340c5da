"""Parsing utilities for common data transformations."""

import re
from decimal import Decimal, localcontext

from src.helpers.constants import WEI_PER_ETH


ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
DECIMAL_PATTERN = re.compile(r"^[0-9]+$")
UINT256_MAX = 2**256 - 1


def parse_hex_int(hex_value: str | int | None, default: int = 0) -> int:
    """Parse hex string to integer.

    Args:
        hex_value: Hex-encoded string, an already parsed integer, or None
        default: Default value if hex_value is None

    Returns:
        int: Parsed integer value

    Raises:
        ValueError: If hex_value is not a hex quantity

    Example:
        >>> parse_hex_int("0xff")
        255
        >>> parse_hex_int(None, 0)
        0
    """
    if hex_value is None:
        return default
    if isinstance(hex_value, bool):
        msg = f"Invalid hex quantity: {hex_value!r}"
        raise ValueError(msg)
    if isinstance(hex_value, int):
        return hex_value
    if not isinstance(hex_value, str) or not hex_value.startswith(("0x", "0X")):
        msg = f"Invalid hex quantity: {hex_value!r}"
        raise ValueError(msg)
    return int(hex_value, 16)


def parse_decimal_uint(value: str | int) -> int:
    """Parse an unsigned 256-bit integer from its decimal string form.

    Args:
        value: Decimal digits, e.g. "12345678901234567890"

    Returns:
        int: Parsed value

    Raises:
        ValueError: If value is not a plain decimal number in the uint256 range

    Example:
        >>> parse_decimal_uint("1000000000000000000")
        1000000000000000000
    """
    if isinstance(value, bool):
        msg = f"Invalid decimal value: {value!r}"
        raise ValueError(msg)
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not DECIMAL_PATTERN.match(text):
            msg = f"Invalid decimal value: {value!r}"
            raise ValueError(msg)
        parsed = int(text)
    else:
        msg = f"Invalid decimal value: {value!r}"
        raise ValueError(msg)
    if not 0 <= parsed <= UINT256_MAX:
        msg = f"Value out of uint256 range: {value!r}"
        raise ValueError(msg)
    return parsed


def normalize_address(address: str) -> str:
    """Validate an account address and return it lower-cased.

    Example:
        >>> normalize_address("0xAbC0000000000000000000000000000000000001")
        '0xabc0000000000000000000000000000000000001'
    """
    candidate = address.strip()
    if not ADDRESS_PATTERN.match(candidate):
        msg = f"Invalid address: {address!r}"
        raise ValueError(msg)
    return candidate.lower()


def wei_to_eth(wei: int | None) -> Decimal | None:
    """Convert Wei to ETH without losing precision.

    Example:
        >>> wei_to_eth(1500000000000000000)
        Decimal('1.5')
        >>> wei_to_eth(None)
    """
    if wei is None:
        return None
    with localcontext() as ctx:
        ctx.prec = 80
        return (Decimal(wei) / WEI_PER_ETH).normalize()


__all__ = [
    "UINT256_MAX",
    "normalize_address",
    "parse_decimal_uint",
    "parse_hex_int",
    "wei_to_eth",
]
