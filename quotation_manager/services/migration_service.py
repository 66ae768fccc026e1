"""
One-shot migration of local cache data to the remote store.

Older local records use readable ids ('brand-3', 'cat-1700000000000', ...)
that the remote tables do not accept; those are replaced by uuid4 values and
every reference to a migrated product or service id is rewritten. The local
cache is rewritten with the new ids so later merges line up with the remote
copies.
"""

import os
import logging
import re
import uuid
from typing import Dict, Any, List, Tuple

from quotation_manager.services import remote_store
from quotation_manager.services.catalog_service import (
    COLLECTION as CATALOG_COLLECTION,
    normalize_product,
    normalize_selected_services,
)
from quotation_manager.services.config_service import CONFIG_COLLECTIONS
from quotation_manager.services.local_cache import get_local_cache
from quotation_manager.services.quotation_service import COLLECTION as QUOTATIONS_COLLECTION, normalize_quotation
from quotation_manager.shared.error_handling import RemoteStoreError

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

LOG_PREFIX = "[MIGRATION]"

MIGRATION_FLAG = 'migration_done'

UUID_PATTERN = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$', re.IGNORECASE)


def is_legacy_id(entity_id: Any) -> bool:
    """True for ids that must be replaced before a remote write (anything but a uuid4)."""
    return not (isinstance(entity_id, str) and UUID_PATTERN.match(entity_id))


def ensure_uuid(entity_id: Any) -> str:
    return str(uuid.uuid4()) if is_legacy_id(entity_id) else entity_id


def has_pending_local_data() -> bool:
    """Local data exists and has not been migrated yet."""
    cache = get_local_cache()
    if cache.get_flag(MIGRATION_FLAG):
        return False
    collections = CONFIG_COLLECTIONS + (CATALOG_COLLECTION, QUOTATIONS_COLLECTION)
    return any(cache.has_data(collection) for collection in collections)


def _migrate_config(cache) -> Tuple[Dict[str, int], Dict[str, Dict[str, str]]]:
    """
    Returns:
        (entries migrated per collection, {collection: {old_id: new_id}})
    """
    report = {}
    id_maps: Dict[str, Dict[str, str]] = {}
    for collection in CONFIG_COLLECTIONS:
        id_map: Dict[str, str] = {}
        entries = []
        for entry in cache.get_collection(collection):
            new_id = ensure_uuid(entry.get('id'))
            if entry.get('id') is not None:
                id_map[entry['id']] = new_id
            entries.append({**entry, 'id': new_id})
        if entries:
            remote_store.put_many(collection, entries)
            cache.set_collection(collection, entries)
        report[collection] = len(entries)
        id_maps[collection] = id_map
    return report, id_maps


def _remap_selected_services(selected: Any, service_id_map: Dict[str, str]) -> List[Dict[str, Any]]:
    return [
        {**entry, 'service_id': service_id_map.get(entry['service_id'], entry['service_id'])}
        for entry in normalize_selected_services(selected)
    ]


def _migrate_products(
    cache,
    service_id_map: Dict[str, str]
) -> Tuple[Dict[str, str], List[Dict[str, Any]]]:
    product_id_map: Dict[str, str] = {}
    products = []
    for raw in cache.get_collection(CATALOG_COLLECTION):
        product = normalize_product(raw)
        new_id = ensure_uuid(product['id'])
        product_id_map[product['id']] = new_id
        product['id'] = new_id
        product['selected_services'] = _remap_selected_services(product['selected_services'], service_id_map)
        product['sales_history'] = [
            {**sale, 'id': ensure_uuid(sale.get('id'))} for sale in product.get('sales_history') or []
        ]
        products.append(product)
    return product_id_map, products


def _remap_quotation(
    quotation: Dict[str, Any],
    product_id_map: Dict[str, str],
    service_id_map: Dict[str, str]
) -> Dict[str, Any]:
    items = []
    for item in quotation.get('items') or []:
        item = dict(item)
        old_id = item.get('catalog_product_id')
        if old_id in product_id_map:
            item['catalog_product_id'] = product_id_map[old_id]
        snapshot = item.get('catalog_product')
        if snapshot:
            snapshot = dict(snapshot)
            if snapshot.get('id') in product_id_map:
                snapshot['id'] = product_id_map[snapshot['id']]
            snapshot['selected_services'] = _remap_selected_services(snapshot.get('selected_services'), service_id_map)
            item['catalog_product'] = snapshot
        items.append(item)
    return {**quotation, 'id': ensure_uuid(quotation.get('id')), 'items': items}


def migrate_local_to_remote() -> Dict[str, int]:
    """
    Push configuration, catalog products and quotations from the local cache
    to the remote store.

    Returns:
        Number of migrated entities per collection

    Raises:
        RemoteStoreError: if the remote store is disabled or a write fails
    """
    if not remote_store.is_remote_enabled():
        raise RemoteStoreError("Remote store is not enabled")

    cache = get_local_cache()
    logger.info(f"{LOG_PREFIX} START | Cache: {cache.path}")

    report, config_id_maps = _migrate_config(cache)
    service_id_map = config_id_maps.get('services', {})

    product_id_map, products = _migrate_products(cache, service_id_map)
    if products:
        remote_store.put_many(CATALOG_COLLECTION, products)
        cache.set_collection(CATALOG_COLLECTION, products)
    report[CATALOG_COLLECTION] = len(products)

    quotations = [
        _remap_quotation(normalize_quotation(raw), product_id_map, service_id_map)
        for raw in cache.get_collection(QUOTATIONS_COLLECTION)
    ]
    if quotations:
        remote_store.put_many(QUOTATIONS_COLLECTION, quotations)
        cache.set_collection(QUOTATIONS_COLLECTION, quotations)
    report[QUOTATIONS_COLLECTION] = len(quotations)

    cache.set_flag(MIGRATION_FLAG, True)
    logger.info(f"{LOG_PREFIX} DONE | {', '.join(f'{k}: {v}' for k, v in report.items())}")
    return report
