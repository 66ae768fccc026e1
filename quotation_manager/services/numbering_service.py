"""
Quotation number generation.

Format: InventuAgroYYMMDD-NN, where NN restarts at 01 every calendar day.

The next number is derived from a snapshot of the existing quotations. Two
quotations created concurrently from the same stale snapshot will get the
same number; nothing here prevents that. Uniqueness has to be enforced by
the persistence layer (conditional write / retry on conflict).
"""

import logging
import os
import re
from datetime import date
from typing import Any, Dict, Iterable, Optional

from quotation_manager.shared.dates import DateLike, as_date

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

QUOTATION_PREFIX = "InventuAgro"

QUOTATION_NUMBER_PATTERN = re.compile(rf"{QUOTATION_PREFIX}(\d{{2}})(\d{{2}})(\d{{2}})-\d{{2}}$")


def generate_quotation_prefix(quotation_date: DateLike) -> str:
    """Date prefix, e.g. 'InventuAgro260210' for 2026-02-10."""
    d = as_date(quotation_date)
    return f"{QUOTATION_PREFIX}{d.year % 100:02d}{d.month:02d}{d.day:02d}"


def get_next_sequential_number(existing_quotations: Iterable[Dict[str, Any]], quotation_date: DateLike) -> int:
    """Highest sequence already used on that date + 1 (1 when none)."""
    prefix = generate_quotation_prefix(quotation_date)
    highest = 0

    for quotation in existing_quotations or []:
        number = quotation.get("quotation_number")
        if not number or not number.startswith(prefix):
            continue
        suffix = number.split("-")[-1]
        try:
            sequence = int(suffix)
        except ValueError:
            continue
        if sequence > highest:
            highest = sequence

    return highest + 1


def generate_quotation_number(existing_quotations: Iterable[Dict[str, Any]], quotation_date: DateLike) -> str:
    """
    Next quotation number for the given date.

    Args:
        existing_quotations: Snapshot of all known quotations
        quotation_date: Date the quotation is issued

    Returns:
        Quotation number like 'InventuAgro260210-01'
    """
    existing = list(existing_quotations or [])
    prefix = generate_quotation_prefix(quotation_date)
    sequence = get_next_sequential_number(existing, quotation_date)
    number = f"{prefix}-{sequence:02d}"
    logger.debug(f"[NUMBERING] Next number {number} from {len(existing)} existing quotations")
    return number


def parse_date_from_quotation_number(quotation_number: Optional[str]) -> Optional[date]:
    """
    Extract the issue date from a quotation number.

    Returns:
        The date (YY read as 20YY), or None if the text does not match or
        holds an impossible date
    """
    if not isinstance(quotation_number, str):
        return None

    match = QUOTATION_NUMBER_PATTERN.search(quotation_number)
    if not match:
        return None

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(2000 + year, month, day)
    except ValueError:
        return None
