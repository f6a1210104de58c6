"""
Central parsing of optional numeric inputs.

Every nullable numeric report field is fed through parse_optional_number, so
an empty or unparseable input is stored as None and never as 0 or NaN.
"""

import math
from typing import Any, Optional, Union

Number = Union[int, float]

# Inputs that explicitly mean "no data for this month"
_NULL_MARKERS = {"", "n/a", "na", "none", "null", "-"}


def parse_optional_number(value: Any, integer: bool = False) -> Optional[Number]:
    """
    Parse a caller-supplied value into a finite number or None.

    Strings may carry surrounding whitespace, thousands separators, a leading
    currency sign or a trailing percent sign. Booleans, non-finite floats and
    anything else that is not a number are rejected as None.

    Args:
        value: Raw input (str, int, float or None)
        integer: Truncate toward zero and return an int

    Returns:
        The parsed number, or None when the input carries no usable value
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value) if isinstance(value, float) else value
    elif isinstance(value, str):
        text = value.strip()
        if text.lower() in _NULL_MARKERS:
            return None
        text = text.replace(",", "").lstrip("$").rstrip("%").strip()
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    if isinstance(number, float) and not math.isfinite(number):
        return None

    if integer:
        return int(number)
    return number
