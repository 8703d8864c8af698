"""
Utility helper functions
"""
from typing import Any, Union
from datetime import datetime, timezone

from web3 import Web3

from mint_watch.config.constants import NOT_AVAILABLE


def format_token_amount(value: int, decimals: int = 18) -> str:
    """
    Render base units as a decimal token amount

    Examples:
        1000000000000000000, 18 -> '1.0'
        1500000, 6 -> '1.5'
        1, 18 -> '0.000000000000000001'
    """
    if decimals <= 0:
        return f"{value}.0"

    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10 ** decimals)
    fraction_text = str(fraction).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{fraction_text}"


def format_usd(volume: Union[int, float, str]) -> str:
    """Format a USD figure, passing sentinels through unchanged"""
    if isinstance(volume, bool) or not isinstance(volume, (int, float)):
        return str(volume) if volume not in (None, "") else NOT_AVAILABLE
    return f"${volume:,.2f}"


def to_hex(value: Any) -> str:
    """0x-prefixed lower-case hex for HexBytes, bytes or str"""
    if isinstance(value, str):
        text = value.lower()
        return text if text.startswith("0x") else "0x" + text
    return Web3.to_hex(value).lower()


def get_utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def is_valid_address(address: str) -> bool:
    """Check if string is valid Ethereum address"""
    if not isinstance(address, str) or not address.startswith('0x'):
        return False
    if len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False
