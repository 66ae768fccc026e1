"""
Quotation item pricing.

unit_price = base_cost * (1 + markup / 100)
total_price = unit_price * quantity
"""

import copy
import logging
import os
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from quotation_manager.schemas.quotation_model import ItemType, create_quotation_item
from quotation_manager.shared.serialization import to_decimal

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

ZERO = Decimal('0')
HUNDRED = Decimal('100')


def _markup_factor(markup_percent: Any) -> Decimal:
    return Decimal('1') + to_decimal(markup_percent, ZERO) / HUNDRED


def _valid_quantity(quantity: Any) -> Optional[int]:
    """Return quantity as int when it is a whole number >= 1, else None."""
    try:
        value = Decimal(str(quantity))
    except (ArithmeticError, ValueError, TypeError):
        return None
    if value < 1 or value != value.to_integral_value():
        return None
    return int(value)


def price_item(base_cost: Any, markup_percent: Any, quantity: Any) -> Dict[str, Decimal]:
    """
    Apply a markup to a base cost.

    Args:
        base_cost: Pre-markup unit cost
        markup_percent: Markup percentage (30 means +30%)
        quantity: Units

    Returns:
        {"unit_price", "total_price"}
    """
    unit_price = to_decimal(base_cost, ZERO) * _markup_factor(markup_percent)
    total_price = unit_price * to_decimal(quantity, ZERO)
    return {"unit_price": unit_price, "total_price": total_price}


def create_catalog_item(
    product: Optional[Dict[str, Any]],
    quantity: Any,
    markup: Any = 0
) -> Optional[Dict[str, Any]]:
    """
    Build a quotation item from a catalog product.

    The product's current unit cost becomes the base cost and a deep copy of
    the product is embedded, so later catalog edits do not change the item.

    Returns:
        Quotation item, or None if the product is missing or quantity < 1
    """
    if not product:
        logger.warning("[PRICE] Catalog item rejected: no product selected")
        return None

    units = _valid_quantity(quantity)
    if units is None:
        logger.warning(f"[PRICE] Catalog item rejected: invalid quantity {quantity!r}")
        return None

    snapshot = copy.deepcopy(product)
    base_cost = to_decimal(snapshot.get("unit_cost"), ZERO)
    markup_value = to_decimal(markup, ZERO)
    prices = price_item(base_cost, markup_value, units)

    description = " - ".join(
        part for part in (snapshot.get("competitor_code"), snapshot.get("brand"), snapshot.get("machine_type")) if part
    ) or "Producto"

    return create_quotation_item(
        item_type=ItemType.CATALOG,
        description=description,
        quantity=units,
        base_cost=base_cost,
        markup=markup_value,
        unit_price=prices["unit_price"],
        total_price=prices["total_price"],
        catalog_product_id=snapshot.get("id"),
        catalog_product=snapshot,
    )


def create_custom_item(
    description: Optional[str],
    base_cost: Any,
    quantity: Any,
    markup: Any = 0
) -> Optional[Dict[str, Any]]:
    """
    Build an ad-hoc quotation item.

    Returns:
        Quotation item, or None if description is empty, base_cost <= 0 or quantity < 1
    """
    text = (description or "").strip()
    cost = to_decimal(base_cost, ZERO)
    units = _valid_quantity(quantity)

    if not text or cost <= 0 or units is None:
        logger.warning(f"[PRICE] Custom item rejected | description: {text!r} | base_cost: {base_cost!r} | quantity: {quantity!r}")
        return None

    markup_value = to_decimal(markup, ZERO)
    prices = price_item(cost, markup_value, units)

    return create_quotation_item(
        item_type=ItemType.CUSTOM,
        description=text,
        quantity=units,
        base_cost=cost,
        markup=markup_value,
        unit_price=prices["unit_price"],
        total_price=prices["total_price"],
    )


def backfill_base_cost(item: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fill in base_cost for items stored without one (legacy data).

    Order: snapshot unit cost for catalog items, then unit_price / (1 + markup/100)
    when a markup is set, then unit_price. Items that already have a non-zero
    base_cost are returned unchanged.
    """
    base_cost = to_decimal(item.get("base_cost"))
    if base_cost is not None and base_cost != 0:
        return item

    unit_price = to_decimal(item.get("unit_price"), ZERO)
    markup = to_decimal(item.get("markup"), ZERO)
    snapshot = item.get("catalog_product")

    if item.get("type") == ItemType.CATALOG and snapshot:
        base_cost = to_decimal(snapshot.get("unit_cost"), ZERO)
    elif markup > 0:
        base_cost = unit_price / _markup_factor(markup)
    else:
        base_cost = unit_price

    return {**item, "base_cost": base_cost}


def calculate_quotation_total(items: Iterable[Dict[str, Any]]) -> Decimal:
    """Sum of item totals."""
    total = ZERO
    for item in items or []:
        total += to_decimal(item.get("total_price"), ZERO)
    return total


def reprice_item(item: Dict[str, Any], markup: Any = None, quantity: Any = None) -> Optional[Dict[str, Any]]:
    """
    Change markup and/or quantity of an existing item, keeping its base cost.

    Returns:
        Updated item, or None if the new quantity is invalid
    """
    units = _valid_quantity(item.get("quantity") if quantity is None else quantity)
    if units is None:
        return None

    markup_value = to_decimal(item.get("markup") if markup is None else markup, ZERO)
    prices = price_item(item.get("base_cost"), markup_value, units)
    return {
        **item,
        "quantity": units,
        "markup": markup_value,
        "unit_price": prices["unit_price"],
        "total_price": prices["total_price"],
    }
