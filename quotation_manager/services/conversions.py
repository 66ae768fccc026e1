"""
Millimeter to inch helpers used when displaying plate thickness.
"""

import math
from typing import Union

Number = Union[int, float]

MM_PER_INCH = 25.4


def mm_to_inches(mm: Number) -> str:
    """
    Convert millimeters to the nearest sixteenth of an inch.

    Returns '' when the value rounds to zero sixteenths, otherwise
    '1"', '3/8"' or '1 1/4"' style strings.
    """
    # floor(x + 0.5): halves round up, never to even
    sixteenths = math.floor(float(mm) / MM_PER_INCH * 16 + 0.5)
    if sixteenths == 0:
        return ""

    whole_inches = sixteenths // 16
    remaining = sixteenths % 16

    if remaining == 0:
        return f'{whole_inches}"'

    numerator = remaining
    denominator = 16
    while numerator % 2 == 0 and denominator % 2 == 0:
        numerator //= 2
        denominator //= 2

    fraction = f'{numerator}/{denominator}"'
    return f"{whole_inches} {fraction}" if whole_inches > 0 else fraction


def _format_mm(mm: Number) -> str:
    value = float(mm)
    if value.is_integer():
        return str(int(value))
    return str(value)


def format_thickness(mm: Number) -> str:
    """Format a thickness as '3.2 mm (1/8")', or '' for a falsy value."""
    if not mm:
        return ""
    inches = mm_to_inches(mm)
    if not inches:
        return f"{_format_mm(mm)} mm"
    return f"{_format_mm(mm)} mm ({inches})"
