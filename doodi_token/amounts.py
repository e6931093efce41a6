"""
Conversion between human-readable (UI) amounts and ledger base units
"""

import math
from typing import Optional, Union

from .errors import ValidationError

ALL = "all"


def parse_amount(raw: Optional[str]) -> Optional[float]:
    """
    Parse a CLI amount argument.

    Returns None for the literal `all` (or a missing argument), a float otherwise.
    Raises ValueError for anything that is not a finite number.
    """
    if raw is None or raw.strip().lower() == ALL:
        return None
    value = float(raw.replace("_", "").replace(",", ""))
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"not a finite number: {raw}")
    return value


def to_base_units(amount: float, decimals: int) -> int:
    """
    Scale a UI amount to integer base units.

    round(amount * 10**decimals): fractions of a base unit do not exist on the
    ledger, so this step is lossy by at most half a unit.
    """
    return int(round(amount * 10 ** decimals))


def to_ui_amount(raw: int, decimals: int) -> Union[int, float]:
    """Base units to UI units; whole amounts stay ints so receipts read 1000000, not 1000000.0"""
    whole, fraction = divmod(raw, 10 ** decimals)
    if fraction == 0:
        return whole
    return raw / 10 ** decimals


def validate_positive_amount(amount: float, decimals: int) -> int:
    """Check that a requested amount is positive and representable, return it in base units"""
    if amount <= 0:
        raise ValidationError("Amount must be greater than 0")
    raw = to_base_units(amount, decimals)
    if raw == 0:
        raise ValidationError(
            f"Amount {amount} is smaller than one base unit ({10 ** -decimals:.{decimals}f})"
        )
    return raw


def format_amount(value: Union[int, float], decimals: int = 6) -> str:
    """1234567.5 -> '1,234,567.5'"""
    text = f"{value:,.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
