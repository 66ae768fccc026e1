"""
Read-only projections of quotations: list summaries, dashboard figures and
the monthly rollup.
"""

import logging
import os
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from quotation_manager.schemas.quotation_model import (
    EMPTY_ITEMS_LABEL,
    ItemType,
    QuotationStatus,
    QuotationSummary,
)
from quotation_manager.shared.dates import try_as_date
from quotation_manager.shared.serialization import to_decimal

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

ZERO = Decimal('0')

PRODUCT_NAME_MAX_LENGTH = 50
PRODUCT_NAME_TRUNCATE_AT = 47

MONTH_LABELS = ("ene", "feb", "mar", "abr", "may", "jun", "jul", "ago", "sep", "oct", "nov", "dic")


def get_status(quotation: Dict[str, Any]) -> QuotationStatus:
    """Status of a quotation; missing or unknown values read as pending."""
    try:
        return QuotationStatus(quotation.get("status") or QuotationStatus.PENDING)
    except ValueError:
        logger.warning(f"[SUMMARY] Unknown status {quotation.get('status')!r} on {quotation.get('id')}, using pending")
        return QuotationStatus.PENDING


def _product_name(items: List[Dict[str, Any]]) -> str:
    if not items:
        return EMPTY_ITEMS_LABEL
    name = ", ".join(item.get("description") or "" for item in items)
    if len(name) > PRODUCT_NAME_MAX_LENGTH:
        return name[:PRODUCT_NAME_TRUNCATE_AT] + "..."
    return name


def summarize(quotation: Dict[str, Any]) -> QuotationSummary:
    """
    Project a quotation onto its summary row.

    total_cost is the sum of base_cost × quantity over the items (an item
    without base_cost counts 0) and profit is final_price − total_cost.
    """
    items = quotation.get("items") or []

    quantity = 0
    total_cost = ZERO
    for item in items:
        item_quantity = int(to_decimal(item.get("quantity"), ZERO))
        quantity += item_quantity
        total_cost += to_decimal(item.get("base_cost"), ZERO) * item_quantity

    final_price = to_decimal(quotation.get("total_price"), ZERO)

    return {
        "id": quotation.get("id"),
        "quotation_number": quotation.get("quotation_number"),
        "date": quotation.get("date"),
        "client_name": quotation.get("client_name") or "",
        "product_name": _product_name(items),
        "quantity": quantity,
        "final_price": final_price,
        "status": get_status(quotation).value,
        "total_cost": total_cost,
        "profit": final_price - total_cost,
    }


def conversion_rate(won_count: int, lost_count: int) -> float:
    """Share of closed quotations that were won (0..1); 0 when nothing is closed."""
    closed = won_count + lost_count
    if closed == 0:
        return 0.0
    return won_count / closed


def _month_window(month_count: int, today: date) -> List[date]:
    months = []
    year, month = today.year, today.month
    for _ in range(month_count):
        months.append(date(year, month, 1))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    return list(reversed(months))


def _empty_row(month_start: date) -> Dict[str, Any]:
    return {
        "month": f"{month_start.year:04d}-{month_start.month:02d}",
        "label": MONTH_LABELS[month_start.month - 1],
        "quoted_amount": ZERO,
        "won_amount": ZERO,
        "lost_amount": ZERO,
        "won_profit": ZERO,
        "quoted_count": 0,
        "won_count": 0,
        "lost_count": 0,
    }


def rollup_by_month(
    quotations: Iterable[Dict[str, Any]],
    month_count: int = 6,
    today: Optional[date] = None
) -> List[Dict[str, Any]]:
    """
    Bucket quotations by calendar month of their date.

    The window holds ``month_count`` months ending with the month of
    ``today`` (default: the current date), oldest first. Every quotation in a
    month counts as quoted; won and lost ones are additionally counted in
    their own bucket. Quotations outside the window or without a readable
    date are ignored.
    """
    window = _month_window(month_count, today or date.today())
    rows = {(m.year, m.month): _empty_row(m) for m in window}

    for quotation in quotations or []:
        quotation_date = try_as_date(quotation.get("date"))
        if quotation_date is None:
            logger.debug(f"[SUMMARY] Skipping quotation {quotation.get('id')} without a readable date")
            continue
        row = rows.get((quotation_date.year, quotation_date.month))
        if row is None:
            continue

        summary = summarize(quotation)
        amount = summary["final_price"]
        row["quoted_amount"] += amount
        row["quoted_count"] += 1

        status = summary["status"]
        if status == QuotationStatus.WON:
            row["won_amount"] += amount
            row["won_profit"] += summary["profit"]
            row["won_count"] += 1
        elif status == QuotationStatus.LOST:
            row["lost_amount"] += amount
            row["lost_count"] += 1

    return [rows[(m.year, m.month)] for m in window]


def dashboard_stats(
    quotations: Iterable[Dict[str, Any]],
    product_count: int = 0,
    client_count: int = 0
) -> Dict[str, Any]:
    """Headline figures for the dashboard."""
    stats = {
        "total_quotations": 0,
        "pending_count": 0,
        "won_count": 0,
        "lost_count": 0,
        "quoted_amount": ZERO,
        "won_amount": ZERO,
        "won_profit": ZERO,
        "product_count": product_count,
        "client_count": client_count,
    }

    for quotation in quotations or []:
        summary = summarize(quotation)
        stats["total_quotations"] += 1
        stats["quoted_amount"] += summary["final_price"]
        status = summary["status"]
        if status == QuotationStatus.WON:
            stats["won_count"] += 1
            stats["won_amount"] += summary["final_price"]
            stats["won_profit"] += summary["profit"]
        elif status == QuotationStatus.LOST:
            stats["lost_count"] += 1
        else:
            stats["pending_count"] += 1

    stats["conversion_rate"] = conversion_rate(stats["won_count"], stats["lost_count"])
    return stats


def filter_by_status(summaries: Iterable[QuotationSummary], status: Optional[str]) -> List[QuotationSummary]:
    """Keep the summaries with the given status; no status keeps all."""
    if not status:
        return list(summaries or [])
    return [summary for summary in summaries or [] if summary.get("status") == status]


def oldest_pending(summaries: Iterable[QuotationSummary], limit: int = 5) -> List[QuotationSummary]:
    """Pending quotations, oldest date first."""
    pending = [summary for summary in summaries or [] if summary.get("status") == QuotationStatus.PENDING]
    pending.sort(key=lambda summary: try_as_date(summary.get("date")) or date.max)
    return pending[:limit]


def is_monoproducto(quotation: Dict[str, Any]) -> bool:
    """True when the quotation is exactly one catalog item with its product snapshot."""
    items = quotation.get("items") or []
    if len(items) != 1:
        return False
    item = items[0]
    return item.get("type") == ItemType.CATALOG and bool(item.get("catalog_product"))
