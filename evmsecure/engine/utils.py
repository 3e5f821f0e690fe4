"""
Engine utilities.

Provides logging setup and display helpers shared by the chain client,
the risk components and the command-line interface.

File: evmsecure/engine/utils.py
"""

import logging
from typing import Union

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """
    Set up basic logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='[%(levelname)s] %(asctime)s %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def format_units(amount: Union[int, str], decimals: int) -> str:
    """
    Render a raw integer amount in whole-token units.

    Works on the digit string so no precision is lost for 256-bit values.
    The fractional part keeps at least one digit ("1.0", "0.5").

    Args:
        amount: Non-negative integer amount in the smallest unit
        decimals: Token decimals

    Returns:
        Decimal string representation
    """
    value = int(amount)
    if value < 0:
        raise ValueError(f"Amount must be non-negative: {amount}")
    if decimals <= 0:
        return f"{value}.0"

    digits = str(value).rjust(decimals + 1, '0')
    whole = digits[:-decimals]
    fraction = digits[-decimals:].rstrip('0') or '0'
    return f"{whole}.{fraction}"
