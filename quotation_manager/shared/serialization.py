"""
Decimal <-> native conversions for quotation and catalog records.
"""

from decimal import Decimal
from typing import Any


def convert_decimals_to_native(obj: Any) -> Any:
    """
    Recursively convert Decimal values returned by DynamoDB into JSON-safe
    native Python types.
    """
    if isinstance(obj, list):
        return [convert_decimals_to_native(item) for item in obj]
    if isinstance(obj, dict):
        return {key: convert_decimals_to_native(value) for key, value in obj.items()}
    if isinstance(obj, Decimal):
        # Preserve integers when there is no fractional part
        if obj == obj.to_integral_value():
            return int(obj)
        return float(obj)
    return obj


def convert_floats_to_decimal(obj: Any) -> Any:
    """
    Recursively convert floats into Decimal so the payload can be written
    to the remote store (DynamoDB rejects float attributes).
    """
    if isinstance(obj, list):
        return [convert_floats_to_decimal(item) for item in obj]
    if isinstance(obj, dict):
        return {key: convert_floats_to_decimal(value) for key, value in obj.items()}
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, float):
        return Decimal(str(obj))
    return obj


def to_decimal(value: Any, default: Any = None) -> Any:
    """
    Money and dimension input as Decimal.

    Returns ``default`` if conversion fails or value is None.
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, Decimal):
        return value

    try:
        # Convert to string first to handle various numeric types
        return Decimal(str(float(value)))
    except (ValueError, TypeError, ArithmeticError):
        return default
