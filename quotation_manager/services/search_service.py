"""
Text filters, column sorting and the global search over products and quotations.

Every match is a case-insensitive substring match.
"""

import os
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from quotation_manager.schemas.quotation_model import ItemType, QuotationSummary

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

LOG_PREFIX = "[SEARCH]"

SUMMARY_TEXT_FILTERS = ('quotation_number', 'id', 'client_name', 'product_name')

SUMMARY_SORT_FIELDS = (
    'quotation_number', 'date', 'client_name', 'product_name', 'quantity',
    'final_price', 'status', 'total_cost', 'profit',
)

PRODUCT_SEARCH_FIELDS = ('competitor_code', 'brand', 'machine_type', 'material')

PRODUCT_SORT_FIELDS = (
    'competitor_code', 'brand', 'machine_type', 'material', 'length', 'width',
    'thickness', 'weight', 'unit_cost', 'min_lot',
)

SORT_DIRECTIONS = ('asc', 'desc')


def _contains(value: Any, term: str) -> bool:
    return term.lower() in str(value or '').lower()


def search_summaries(
    summaries: Iterable[QuotationSummary],
    status: Optional[str] = None,
    **filters: Optional[str]
) -> List[QuotationSummary]:
    """
    Filter list rows by status and by text on the number, id, client and
    product columns.

    Empty filters are ignored. A row without a quotation number never
    matches a quotation_number filter.

    Raises:
        ValueError: for a filter on any other column
    """
    unknown = set(filters) - set(SUMMARY_TEXT_FILTERS)
    if unknown:
        raise ValueError(f"Unknown filter: {', '.join(sorted(unknown))}")

    active = {field: term for field, term in filters.items() if term}
    rows = []
    for summary in summaries or []:
        if status and summary.get('status') != status:
            continue
        if all(_contains(summary.get(field), term) for field, term in active.items()):
            rows.append(summary)
    return rows


def search_products(products: Iterable[Dict[str, Any]], term: Optional[str]) -> List[Dict[str, Any]]:
    """Products whose code, brand, machine or material contains ``term``."""
    if not term:
        return list(products or [])
    return [
        product for product in products or []
        if any(_contains(product.get(field), term) for field in PRODUCT_SEARCH_FIELDS)
    ]


def sort_records(
    records: Iterable[Dict[str, Any]],
    field: Optional[str],
    direction: str = 'asc',
    allowed_fields: Sequence[str] = (),
) -> List[Dict[str, Any]]:
    """
    Sort rows on one column. Rows missing the column keep their order and
    go last in both directions; no ``field`` keeps the input order.

    Raises:
        ValueError: for a column outside ``allowed_fields`` or an unknown direction
    """
    rows = list(records or [])
    if not field:
        return rows
    if allowed_fields and field not in allowed_fields:
        raise ValueError(f"Cannot sort by {field}")
    if direction not in SORT_DIRECTIONS:
        raise ValueError("direction must be 'asc' or 'desc'")

    present = [row for row in rows if row.get(field) is not None]
    missing = [row for row in rows if row.get(field) is None]
    present.sort(key=lambda row: row[field], reverse=direction == 'desc')
    return present + missing


def _quotation_matches(quotation: Dict[str, Any], term: str) -> bool:
    if _contains(quotation.get('client_name'), term) or _contains(quotation.get('notes'), term):
        return True
    return any(
        item.get('type') == ItemType.CATALOG and _contains(item.get('description'), term)
        for item in quotation.get('items') or []
    )


def global_search(
    term: Optional[str],
    products: Iterable[Dict[str, Any]],
    quotations: Iterable[Dict[str, Any]]
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Search products (code, brand, machine) and quotations (client, notes,
    catalog item descriptions) at once. A blank term finds nothing.
    """
    if not term or not term.strip():
        return {'products': [], 'quotations': []}

    matched_products = [
        product for product in products or []
        if any(_contains(product.get(field), term) for field in ('competitor_code', 'brand', 'machine_type'))
    ]
    matched_quotations = [quotation for quotation in quotations or [] if _quotation_matches(quotation, term)]

    logger.info(f"{LOG_PREFIX} Term: {term!r} | Products: {len(matched_products)} | Quotations: {len(matched_quotations)}")
    return {'products': matched_products, 'quotations': matched_quotations}
