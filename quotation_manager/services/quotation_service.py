"""
Quotation business logic service.
"""

import os
import json
import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, Any, List, Optional

from quotation_manager.schemas.quotation_model import ItemType, QuotationStatus, create_quotation as build_quotation
from quotation_manager.services import remote_store
from quotation_manager.services.catalog_service import get_catalog_product, normalize_product
from quotation_manager.services.local_cache import get_local_cache
from quotation_manager.services.merge_service import merge_by_id_local_wins
from quotation_manager.services.numbering_service import generate_quotation_number
from quotation_manager.services.price_service import (
    backfill_base_cost,
    calculate_quotation_total,
    create_catalog_item,
    create_custom_item,
)
from quotation_manager.services.summary_service import summarize
from quotation_manager.shared.error_handling import QuotationNotFoundError
from quotation_manager.shared.serialization import to_decimal

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

# Configure log format
LOG_PREFIX = "[QUOTATION-SERVICE]"

COLLECTION = 'quotations'

ZERO = Decimal('0')

CLOSED_STATUSES = (QuotationStatus.WON.value, QuotationStatus.LOST.value)

LEGACY_ITEM_KEYS = {
    'baseCost': 'base_cost',
    'unitPrice': 'unit_price',
    'totalPrice': 'total_price',
    'catalogProductId': 'catalog_product_id',
    'catalogProduct': 'catalog_product',
}


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _load_json_list(value: Any, what: str, quotation_id: Any) -> List[Any]:
    if not value:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as e:
            logger.error(f"{LOG_PREFIX} NORMALIZE | ID: {quotation_id} | Unreadable {what}: {str(e)}")
            return []
        return parsed if isinstance(parsed, list) else []
    return []


def _normalize_item(raw: Dict[str, Any]) -> Dict[str, Any]:
    item = {LEGACY_ITEM_KEYS.get(key, key): value for key, value in raw.items()}
    item.setdefault('id', str(uuid.uuid4()))
    item['type'] = item.get('type') or ItemType.CATALOG.value
    item['quantity'] = int(to_decimal(item.get('quantity'), ZERO))
    for field in ('base_cost', 'markup', 'unit_price', 'total_price'):
        if field in item:
            item[field] = to_decimal(item[field], ZERO)
    if item.get('catalog_product'):
        item['catalog_product'] = normalize_product(item['catalog_product'])
    return item


def _legacy_remote_item(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Single catalog item of a pre multi-item remote row."""
    quantity = int(to_decimal(raw.get('quantity'), ZERO))
    final_price = to_decimal(_first(raw, 'final_price', 'total_price'), ZERO)
    unit_price = final_price / (quantity or 1)

    snapshot = normalize_product(raw['catalog_product']) if raw.get('catalog_product') else None
    if snapshot:
        description = f"{snapshot.get('competitor_code')} - {snapshot.get('brand')}"
    else:
        description = 'Producto'

    base_cost = to_decimal((snapshot or {}).get('unit_cost'), ZERO) or to_decimal(raw.get('base_cost'), ZERO) or unit_price

    item = {
        'id': str(uuid.uuid4()),
        'type': ItemType.CATALOG.value,
        'description': description,
        'quantity': quantity,
        'base_cost': base_cost,
        'markup': to_decimal(raw.get('markup'), ZERO),
        'unit_price': unit_price,
        'total_price': final_price,
        'catalog_product_id': raw.get('catalog_product_id'),
    }
    if snapshot:
        item['catalog_product'] = snapshot
    return item


def _legacy_local_item(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Single item of a pre multi-item local record."""
    quantity = int(to_decimal(raw.get('quantity'), ZERO)) or 1
    final_price = to_decimal(_first(raw, 'final_price', 'finalPrice'), ZERO)
    unit_price = final_price / quantity
    base_cost = to_decimal(_first(raw, 'base_price', 'basePrice', 'base_cost', 'baseCost'), ZERO) or unit_price

    return {
        'id': str(uuid.uuid4()),
        'type': ItemType.CATALOG.value,
        'description': _first(raw, 'product_name', 'productName') or 'Producto',
        'quantity': quantity,
        'base_cost': base_cost,
        'markup': to_decimal(raw.get('markup'), ZERO),
        'unit_price': unit_price,
        'total_price': final_price,
        'catalog_product_id': _first(raw, 'product_id', 'productId'),
    }


def normalize_quotation(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map a stored quotation (current or legacy shape) to the canonical dict.

    Shapes accepted:
    - multi-item, with ``items`` as a list or a JSON string
    - legacy single-product remote row (``catalog_product_id`` + ``final_price``)
    - legacy single-product local record (``product_name`` / ``final_price``)

    Every item gets a base_cost via backfill_base_cost.
    """
    quotation_id = raw.get('id')

    if raw.get('items'):
        items = [_normalize_item(item) for item in _load_json_list(raw.get('items'), 'items', quotation_id)]
    elif raw.get('catalog_product') or raw.get('catalog_product_id'):
        items = [_legacy_remote_item(raw)]
    elif _first(raw, 'product_name', 'productName', 'final_price', 'finalPrice') is not None:
        items = [_legacy_local_item(raw)]
    else:
        items = []

    items = [backfill_base_cost(item) for item in items]

    return {
        'id': quotation_id,
        'quotation_number': _first(raw, 'quotation_number', 'quotationNumber'),
        'date': raw.get('date'),
        'client_name': _first(raw, 'client_name', 'clientName') or '',
        'items': items,
        'total_price': to_decimal(_first(raw, 'total_price', 'totalPrice', 'final_price', 'finalPrice'), ZERO),
        'payment_terms': _first(raw, 'payment_terms', 'paymentTerms') or '',
        'status': raw.get('status') or QuotationStatus.PENDING.value,
        'reason': raw.get('reason'),
        'notes': raw.get('notes') or '',
        'attachments': _load_json_list(raw.get('attachments'), 'attachments', quotation_id),
        'created_at': raw.get('created_at'),
        'updated_at': raw.get('updated_at'),
    }


def get_local_quotations() -> List[Dict[str, Any]]:
    """Quotations held in the local cache only."""
    return [normalize_quotation(q) for q in get_local_cache().get_collection(COLLECTION)]


def get_quotations() -> List[Dict[str, Any]]:
    """
    All quotations, remote merged with local (local wins on id), normalized.
    """
    remote = remote_store.fetch_collection(COLLECTION)
    local = get_local_cache().get_collection(COLLECTION)
    merged = merge_by_id_local_wins(remote, local)
    logger.info(f"{LOG_PREFIX} LIST | Remote: {len(remote)} | Local: {len(local)} | Merged: {len(merged)}")
    return [normalize_quotation(q) for q in merged]


def get_quotation(quotation_id: str) -> Optional[Dict[str, Any]]:
    """
    Get quotation by ID.

    Returns:
        Quotation or None if not found
    """
    for quotation in get_quotations():
        if quotation.get('id') == quotation_id:
            logger.debug(f"{LOG_PREFIX} GET | ID: {quotation_id[:8]}... | Found")
            return quotation
    logger.warning(f"{LOG_PREFIX} GET | ID: {quotation_id[:8]}... | Not found")
    return None


def build_items(raw_items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Price the items of a quotation request.

    Catalog items reference ``catalog_product_id`` (or carry ``catalog_product``);
    custom items carry ``description`` and ``base_cost``.

    Raises:
        ValueError: if an item is rejected (unknown product, bad quantity,
            empty description, non-positive base cost)
    """
    items = []
    for index, raw in enumerate(raw_items or []):
        item_type = raw.get('type') or ItemType.CATALOG.value
        quantity = raw.get('quantity')
        markup = raw.get('markup', 0)

        if item_type == ItemType.CATALOG:
            product = raw.get('catalog_product')
            if not product and raw.get('catalog_product_id'):
                product = get_catalog_product(raw['catalog_product_id'])
            item = create_catalog_item(product, quantity, markup)
        else:
            item = create_custom_item(raw.get('description'), raw.get('base_cost'), quantity, markup)

        if item is None:
            raise ValueError(f"Item {index + 1} is not valid")
        items.append(item)
    return items


def save_quotation(quotation: Dict[str, Any]) -> Dict[str, Any]:
    """
    Save a quotation: best-effort to the remote store, always to the local cache.
    """
    remote_store.put_if_enabled(COLLECTION, quotation)
    get_local_cache().upsert(COLLECTION, quotation)
    logger.info(f"{LOG_PREFIX} SAVE | ID: {quotation['id'][:8]}... | Number: {quotation.get('quotation_number')}")
    return quotation


def create_quotation(data: Dict[str, Any], existing: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    """
    Create a new quotation.

    The quotation number is derived from ``existing`` (default: every stored
    quotation). Two creations racing on the same snapshot get the same number.

    Args:
        data: Quotation data from request
        existing: Snapshot of existing quotations

    Returns:
        Created quotation

    Raises:
        ValueError: if an item is rejected
    """
    if existing is None:
        existing = get_quotations()

    quotation_date = data.get('date') or datetime.utcnow().date().isoformat()
    items = build_items(data.get('items') or [])

    quotation = build_quotation(
        quotation_number=generate_quotation_number(existing, quotation_date),
        client_name=data.get('client_name'),
        items=items,
        total_price=calculate_quotation_total(items),
        payment_terms=data.get('payment_terms'),
        quotation_date=quotation_date,
        status=data.get('status') or QuotationStatus.PENDING,
        reason=data.get('reason'),
        notes=data.get('notes'),
        attachments=data.get('attachments'),
    )

    save_quotation(quotation)
    logger.info(f"{LOG_PREFIX} CREATE | ID: {quotation['id'][:8]}... | Number: {quotation['quotation_number']} | Items: {len(items)}")
    return quotation


def update_quotation(quotation_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Update quotation fields; new ``items`` are re-priced and the total recomputed.

    Returns:
        Updated quotation or None if not found
    """
    quotation = get_quotation(quotation_id)
    if not quotation:
        return None

    updatable_fields = ['client_name', 'date', 'payment_terms', 'status', 'reason', 'notes', 'attachments']
    for field in updatable_fields:
        if field in data:
            quotation[field] = data[field]

    if 'items' in data:
        quotation['items'] = build_items(data['items'])
        quotation['total_price'] = calculate_quotation_total(quotation['items'])

    quotation['updated_at'] = datetime.utcnow().isoformat() + "Z"
    save_quotation(quotation)
    logger.info(f"{LOG_PREFIX} UPDATE | ID: {quotation_id[:8]}... | Fields: {', '.join(data.keys())}")
    return quotation


def update_quotation_status(quotation_id: str, status: str, reason: Optional[str] = None) -> Dict[str, Any]:
    """
    Close a quotation as won or lost.

    Raises:
        ValueError: if status is not 'won' or 'lost'
        QuotationNotFoundError: if the quotation does not exist
    """
    if status not in CLOSED_STATUSES:
        raise ValueError(f"Status must be one of: {', '.join(CLOSED_STATUSES)}")

    quotation = get_quotation(quotation_id)
    if not quotation:
        raise QuotationNotFoundError(quotation_id)

    quotation['status'] = status
    quotation['reason'] = reason
    quotation['updated_at'] = datetime.utcnow().isoformat() + "Z"
    save_quotation(quotation)
    logger.info(f"{LOG_PREFIX} STATUS | ID: {quotation_id[:8]}... | Status: {status}")
    return quotation


def delete_quotation(quotation_id: str) -> bool:
    """
    Delete quotation.

    Returns:
        True if deleted from at least one store, False otherwise
    """
    removed_remotely = remote_store.delete_if_enabled(COLLECTION, quotation_id)
    removed_locally = get_local_cache().remove(COLLECTION, quotation_id)
    logger.info(f"{LOG_PREFIX} DELETE | ID: {quotation_id[:8]}... | Local: {removed_locally} | Remote: {removed_remotely}")
    return removed_locally or removed_remotely


def get_quotation_summaries() -> List[Dict[str, Any]]:
    """Summary rows of every quotation."""
    return [summarize(q) for q in get_quotations()]


def preview_quotation_number(quotation_date: Optional[str] = None) -> str:
    """Number the next quotation on ``quotation_date`` (default today) would get."""
    return generate_quotation_number(get_quotations(), quotation_date or datetime.utcnow().date().isoformat())
