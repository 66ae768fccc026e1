"""
Catalog product business logic service.
"""

import os
import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Any, List, Optional

from quotation_manager.schemas.catalog_model import create_catalog_product, create_sale_record
from quotation_manager.services import remote_store
from quotation_manager.services.config_service import get_materials, get_services
from quotation_manager.services.cost_service import calculate_product_costs
from quotation_manager.services.local_cache import get_local_cache
from quotation_manager.services.merge_service import merge_by_id_local_wins
from quotation_manager.shared.serialization import to_decimal

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

LOG_PREFIX = "[CATALOG-SERVICE]"

COLLECTION = 'catalog_products'

# Field names used by older stored products (camelCase UI records and the
# first remote schema) mapped to the current ones
LEGACY_PRODUCT_KEYS = {
    'codigoCompetencia': 'competitor_code',
    'codigo_competencia': 'competitor_code',
    'marca': 'brand',
    'maquina': 'machine_type',
    'largo': 'length',
    'ancho': 'width',
    'espesor': 'thickness',
    'peso': 'weight',
    'dureza': 'hardness',
    'tratamientoTermico': 'heat_treatment',
    'tratamiento_termico': 'heat_treatment',
    'loteMinimo': 'min_lot',
    'lote_minimo': 'min_lot',
    'precioUnitario': 'unit_cost',
    'precio_unitario': 'unit_cost',
    'photo_url': 'photo',
    'planoCompetenciaFile': 'competitor_drawing',
    'plano_competencia_url': 'competitor_drawing',
    'planoInventuAgroFile': 'own_drawing',
    'plano_inventu_url': 'own_drawing',
    'selectedServices': 'selected_services',
    'historialVentas': 'sales_history',
    'createdDate': 'created_date',
    'created_at': 'created_date',
    'lastModified': 'last_modified',
}

LEGACY_SALE_KEYS = {
    'clientName': 'client_name',
    'unitPrice': 'unit_price',
    'totalPrice': 'total_price',
}


def _rename_keys(raw: Dict[str, Any], mapping: Dict[str, str]) -> Dict[str, Any]:
    renamed = {}
    for key, value in raw.items():
        target = mapping.get(key, key)
        # Current names win over legacy ones when both are present
        if target in renamed and key in mapping:
            continue
        renamed[target] = value
    return renamed


def normalize_selected_services(raw: Any) -> List[Dict[str, Any]]:
    """
    Normalize stored selected services to [{service_id, value}].

    Older products store bare service ids; those get value 1.
    """
    normalized = []
    for entry in raw or []:
        if isinstance(entry, str):
            normalized.append({'service_id': entry, 'value': 1})
        elif isinstance(entry, dict):
            service_id = entry.get('service_id') or entry.get('serviceId')
            if not service_id:
                continue
            normalized.append({'service_id': service_id, 'value': entry.get('value')})
    return normalized


def normalize_sale_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    return create_sale_record(_rename_keys(raw, LEGACY_SALE_KEYS))


def normalize_product(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Map a stored product (any known shape) to the canonical product dict."""
    data = _rename_keys(raw, LEGACY_PRODUCT_KEYS)
    data['selected_services'] = normalize_selected_services(data.get('selected_services'))
    data['sales_history'] = [normalize_sale_record(sale) for sale in data.get('sales_history') or []]
    product = create_catalog_product(data)
    if data.get('last_modified'):
        product['last_modified'] = data['last_modified']
    return product


def get_local_products() -> List[Dict[str, Any]]:
    """Products held in the local cache only."""
    return [normalize_product(p) for p in get_local_cache().get_collection(COLLECTION)]


def get_catalog_products() -> List[Dict[str, Any]]:
    """
    All catalog products, remote merged with local (local wins on id).
    """
    remote = remote_store.fetch_collection(COLLECTION)
    local = get_local_cache().get_collection(COLLECTION)
    merged = merge_by_id_local_wins(remote, local)
    logger.info(f"{LOG_PREFIX} LIST | Remote: {len(remote)} | Local: {len(local)} | Merged: {len(merged)}")
    return [normalize_product(p) for p in merged]


def get_catalog_product(product_id: str) -> Optional[Dict[str, Any]]:
    """
    Get catalog product by ID.

    Returns:
        Product or None if not found
    """
    for product in get_catalog_products():
        if product.get('id') == product_id:
            return product
    logger.warning(f"{LOG_PREFIX} GET | ID: {product_id[:8]}... | Not found")
    return None


def save_catalog_product(product: Dict[str, Any]) -> Dict[str, Any]:
    """
    Save a product: best-effort to the remote store, always to the local cache.

    Returns:
        Saved product (with a fresh last_modified)
    """
    updated = {**product, 'last_modified': datetime.utcnow().isoformat() + "Z"}
    remote_store.put_if_enabled(COLLECTION, updated)
    get_local_cache().upsert(COLLECTION, updated)
    logger.info(f"{LOG_PREFIX} SAVE | ID: {updated['id'][:8]}... | Code: {updated.get('competitor_code')}")
    return updated


def delete_catalog_product(product_id: str) -> bool:
    """Delete a product from both stores; False when it was in neither."""
    removed_remotely = remote_store.delete_if_enabled(COLLECTION, product_id)
    removed_locally = get_local_cache().remove(COLLECTION, product_id)
    logger.info(f"{LOG_PREFIX} DELETE | ID: {product_id[:8]}... | Local: {removed_locally} | Remote: {removed_remotely}")
    return removed_locally or removed_remotely


def add_sale_record(product_id: str, sale: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Append a sale to a product's history.

    Returns:
        Updated product or None if the product does not exist
    """
    product = get_catalog_product(product_id)
    if not product:
        return None

    record = create_sale_record(sale)
    product['sales_history'] = list(product.get('sales_history') or []) + [record]
    logger.info(f"{LOG_PREFIX} ADD-SALE | Product: {product_id[:8]}... | Sale: {record['id'][:8]}...")
    return save_catalog_product(product)


def update_sale_record(product_id: str, sale_id: str, sale: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Replace one sale in a product's history.

    Returns:
        Updated product, or None if the product or the sale does not exist
    """
    product = get_catalog_product(product_id)
    if not product:
        return None

    history = list(product.get('sales_history') or [])
    for index, existing in enumerate(history):
        if existing.get('id') == sale_id:
            history[index] = create_sale_record(sale, sale_id=sale_id)
            break
    else:
        logger.warning(f"{LOG_PREFIX} UPDATE-SALE | Product: {product_id[:8]}... | Sale {sale_id[:8]}... not found")
        return None

    product['sales_history'] = history
    return save_catalog_product(product)


def delete_sale_record(product_id: str, sale_id: str) -> Optional[Dict[str, Any]]:
    """Remove a sale from a product's history; None if the product does not exist."""
    product = get_catalog_product(product_id)
    if not product:
        return None

    product['sales_history'] = [s for s in product.get('sales_history') or [] if s.get('id') != sale_id]
    return save_catalog_product(product)


def get_products_using_material(material_name: str) -> List[Dict[str, Any]]:
    """Products whose material is exactly ``material_name``."""
    return [p for p in get_catalog_products() if p.get('material') == material_name]


def calculate_price_updates_for_material(
    material_name: str,
    new_price_per_kg: Any,
    services: Optional[List[Dict[str, Any]]] = None
) -> List[Dict[str, Any]]:
    """
    Preview the unit cost of every product using a material after a price change.

    Each product is re-costed with the full engine (its saved weight, the new
    material price and its selected services).

    Returns:
        [{"product", "old_price", "new_price"}] for products whose cost changes
    """
    materials = get_materials()
    if services is None:
        services = get_services()

    repriced = []
    found = False
    for material in materials:
        if material.get('name') == material_name:
            material = {**material, 'price_per_kg': to_decimal(new_price_per_kg)}
            found = True
        repriced.append(material)
    if not found:
        repriced.append({'name': material_name, 'price_per_kg': to_decimal(new_price_per_kg)})

    updates = []
    for product in get_products_using_material(material_name):
        old_price = to_decimal(product.get('unit_cost'), Decimal('0'))
        new_price = calculate_product_costs(product, repriced, services).total_cost
        if old_price != new_price:
            updates.append({'product': product, 'old_price': old_price, 'new_price': new_price})

    logger.info(f"{LOG_PREFIX} PRICE-PREVIEW | Material: {material_name} | Affected: {len(updates)}")
    return updates


def apply_price_updates(updates: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Store the new unit cost of every product in ``updates``."""
    saved = []
    for update in updates:
        product = {**update['product'], 'unit_cost': update['new_price']}
        saved.append(save_catalog_product(product))
    logger.info(f"{LOG_PREFIX} PRICE-APPLY | Products: {len(saved)}")
    return saved
