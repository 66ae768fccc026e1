"""
Data models for quotations and quotation items.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, TypedDict


class QuotationStatus(str, Enum):
    """Quotation status enumeration. A missing status means PENDING."""
    PENDING = "pending"
    WON = "won"
    LOST = "lost"


class ItemType(str, Enum):
    """Kind of quotation item."""
    CATALOG = "catalog"
    CUSTOM = "custom"


# Display label only; no tax is computed.
TAX_LABEL = "+ IVA"

EMPTY_ITEMS_LABEL = "Sin ítems"


class QuotationAttachment(TypedDict, total=False):
    """File attached to a quotation (base64 payload)."""

    name: str
    type: str
    data: str


class QuotationSummary(TypedDict):
    """Read-only projection of a quotation for list and report views."""

    id: str
    quotation_number: Optional[str]
    date: str
    client_name: str
    product_name: str
    quantity: int
    final_price: Decimal
    status: str
    total_cost: Decimal
    profit: Decimal


def create_quotation_item(
    item_type: str,
    description: str,
    quantity: int,
    base_cost: Decimal,
    markup: Decimal,
    unit_price: Decimal,
    total_price: Decimal,
    catalog_product_id: Optional[str] = None,
    catalog_product: Optional[Dict[str, Any]] = None,
    item_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create a quotation item dictionary.

    Pricing is done by services.price_service; this only assembles the record.

    Args:
        item_type: 'catalog' or 'custom'
        description: Text shown to the client
        quantity: Units quoted (>= 1)
        base_cost: Pre-markup unit cost
        markup: Markup percentage (e.g. 30 for 30%)
        unit_price: base_cost * (1 + markup / 100)
        total_price: unit_price * quantity
        catalog_product_id: Originating catalog product (catalog items only)
        catalog_product: Snapshot of the catalog product at quoting time
        item_id: Item ID (auto-generated if not provided)

    Returns:
        Quotation item dictionary
    """
    item = {
        "id": item_id or str(uuid.uuid4()),
        "type": ItemType(item_type).value,
        "description": description,
        "quantity": quantity,
        "base_cost": base_cost,
        "markup": markup,
        "unit_price": unit_price,
        "total_price": total_price,
    }
    if catalog_product_id is not None:
        item["catalog_product_id"] = catalog_product_id
    if catalog_product is not None:
        item["catalog_product"] = catalog_product
    return item


def create_quotation(
    quotation_number: str,
    client_name: str,
    items: List[Dict[str, Any]],
    total_price: Decimal,
    payment_terms: str = "",
    quotation_date: Optional[str] = None,
    status: str = QuotationStatus.PENDING,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    attachments: Optional[List[QuotationAttachment]] = None,
    quotation_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create a quotation dictionary.

    Args:
        quotation_number: Generated InventuAgroYYMMDD-NN number
        client_name: Client the quotation is addressed to
        items: Priced quotation items
        total_price: Sum of item totals
        payment_terms: Free-form payment terms
        quotation_date: ISO date (default: today)
        status: pending / won / lost
        reason: Why the quotation was won or lost
        notes: Quotation notes
        attachments: Attached files
        quotation_id: Quotation ID (auto-generated if not provided)

    Returns:
        Quotation dictionary
    """
    return {
        "id": quotation_id or str(uuid.uuid4()),
        "quotation_number": quotation_number,
        "date": quotation_date or date.today().isoformat(),
        "client_name": client_name or "",
        "items": items,
        "total_price": total_price,
        "payment_terms": payment_terms or "",
        "status": QuotationStatus(status).value,
        "reason": reason,
        "notes": notes or "",
        "attachments": attachments or [],
        "created_at": datetime.utcnow().isoformat() + "Z",
    }
