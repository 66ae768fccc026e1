"""
Configuration collections: clients, brands, machine types, thicknesses,
materials and services.

Every collection is read as remote merged with local (local wins on id).
Writes always land in the local cache and are mirrored to the remote store
when it is enabled.
"""

import os
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from quotation_manager.schemas.catalog_model import MaterialRecord, ServiceRecord, ServiceProvider, ServiceUnit
from quotation_manager.services import remote_store
from quotation_manager.services.local_cache import get_local_cache
from quotation_manager.services.merge_service import merge_by_id_local_wins
from quotation_manager.shared.serialization import to_decimal

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

LOG_PREFIX = "[CONFIG-SERVICE]"

CONFIG_VERSION = '1.0.1'
CONFIG_VERSION_FLAG = 'config_version'

CONFIG_COLLECTIONS = ('clients', 'brands', 'machine_types', 'thicknesses', 'materials', 'services')

# Collections whose entries carry an updated_at stamp
TIMESTAMPED_COLLECTIONS = ('materials', 'services')

DEFAULT_BRANDS = ['Metalbert', 'Mainero', 'Vaima', 'Grass Cutter', 'Varias', 'Georgi', 'Oncativo']

DEFAULT_MACHINE_TYPES = [
    'Cuchilla Desmalezadora',
    'Cuchilla Picadora',
    'Cuchilla Rolo Trituradora',
    'Cuchilla Mixer / Roto Cutter',
    'Reja Cultivadora 11"',
    'Reja Cultivadora 11" (Acorazada)',
    'Conjunto Reja Carpidora',
]

DEFAULT_THICKNESSES = [6.35, 7.94, 9.53, 12.7]


def _now() -> str:
    return datetime.utcnow().isoformat() + "Z"


def _check_collection(collection: str) -> None:
    if collection not in CONFIG_COLLECTIONS:
        raise ValueError(f"Unknown configuration collection: {collection}")


def normalize_material(raw: Dict[str, Any]) -> MaterialRecord:
    """Canonical material record; accepts the legacy camelCase price key."""
    price = raw.get('price_per_kg')
    if price is None:
        price = raw.get('pricePerKg')
    return {
        **raw,
        'name': raw.get('name') or '',
        'price_per_kg': to_decimal(price, None),
        'density': to_decimal(raw.get('density'), None),
    }


def normalize_service(raw: Dict[str, Any]) -> ServiceRecord:
    """Canonical service record; accepts the legacy 'price' key."""
    price = raw.get('unit_price')
    if price is None:
        price = raw.get('price')
    record = {k: v for k, v in raw.items() if k != 'price'}
    record.update({
        'name': raw.get('name') or '',
        'unit_price': to_decimal(price, None),
        'unit': raw.get('unit') or ServiceUnit.PER_PIECE.value,
        'provider': raw.get('provider') or ServiceProvider.IN_HOUSE.value,
    })
    return record


def get_collection(collection: str) -> List[Dict[str, Any]]:
    """One configuration collection, remote merged with local."""
    _check_collection(collection)
    remote = remote_store.fetch_collection(collection)
    local = get_local_cache().get_collection(collection)
    return merge_by_id_local_wins(remote, local)


def _default_entries(collection: str) -> List[Dict[str, Any]]:
    now = _now()
    if collection == 'brands':
        return [{'id': str(uuid.uuid4()), 'name': name, 'created_at': now} for name in DEFAULT_BRANDS]
    if collection == 'machine_types':
        return [{'id': str(uuid.uuid4()), 'name': name, 'created_at': now} for name in DEFAULT_MACHINE_TYPES]
    if collection == 'thicknesses':
        return [{'id': str(uuid.uuid4()), 'value': value, 'created_at': now} for value in DEFAULT_THICKNESSES]
    return []


def _missing_defaults(collection: str, entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Default entries not yet present (by case-insensitive name, or by value for thicknesses)."""
    if collection == 'thicknesses':
        present = {float(entry.get('value') or 0) for entry in entries}
        return [entry for entry in _default_entries(collection) if float(entry['value']) not in present]

    present = {(entry.get('name') or '').lower() for entry in entries}
    return [entry for entry in _default_entries(collection) if entry['name'].lower() not in present]


def _persist_entry(collection: str, entry: Dict[str, Any]) -> Dict[str, Any]:
    get_local_cache().upsert(collection, entry)
    remote_store.put_if_enabled(collection, entry)
    return entry


def get_configuration() -> Dict[str, Any]:
    """
    Complete configuration.

    Default brands, machine types and thicknesses are merged in when the
    stored configuration version differs from CONFIG_VERSION (which includes
    a first run with nothing stored).
    """
    cache = get_local_cache()
    config: Dict[str, Any] = {collection: get_collection(collection) for collection in CONFIG_COLLECTIONS}

    stored_version = cache.get_flag(CONFIG_VERSION_FLAG)
    if stored_version != CONFIG_VERSION:
        added = 0
        for collection in ('brands', 'machine_types', 'thicknesses'):
            for entry in _missing_defaults(collection, config[collection]):
                config[collection].append(_persist_entry(collection, entry))
                added += 1
        cache.set_flag(CONFIG_VERSION_FLAG, CONFIG_VERSION)
        logger.info(f"{LOG_PREFIX} DEFAULTS | Version: {stored_version} -> {CONFIG_VERSION} | Added: {added}")

    config['materials'] = [normalize_material(m) for m in config['materials']]
    config['services'] = [normalize_service(s) for s in config['services']]
    config['version'] = CONFIG_VERSION
    return config


def get_materials() -> List[MaterialRecord]:
    """Material reference data for the cost engine."""
    return [normalize_material(m) for m in get_collection('materials')]


def get_services() -> List[ServiceRecord]:
    """Service reference data for the cost engine."""
    return [normalize_service(s) for s in get_collection('services')]


def get_config_entry(collection: str, entry_id: str) -> Optional[Dict[str, Any]]:
    for entry in get_collection(collection):
        if entry.get('id') == entry_id:
            return entry
    return None


def add_config_entry(collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Add an entry to a configuration collection.

    Args:
        collection: One of CONFIG_COLLECTIONS
        data: Entry fields (id and timestamps are assigned here)

    Returns:
        The stored entry
    """
    _check_collection(collection)
    now = _now()
    entry = {k: v for k, v in data.items() if k not in ('id', 'created_at', 'updated_at')}
    entry['id'] = str(uuid.uuid4())
    entry['created_at'] = now
    if collection in TIMESTAMPED_COLLECTIONS:
        entry['updated_at'] = now

    _persist_entry(collection, entry)
    logger.info(f"{LOG_PREFIX} ADD | {collection} | ID: {entry['id'][:8]}...")
    return entry


def update_config_entry(collection: str, entry_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Update an entry in place.

    Returns:
        Updated entry or None if not found
    """
    _check_collection(collection)
    existing = get_config_entry(collection, entry_id)
    if not existing:
        logger.warning(f"{LOG_PREFIX} UPDATE | {collection} | ID: {entry_id[:8]}... | Not found")
        return None

    updated = {**existing, **{k: v for k, v in updates.items() if k not in ('id', 'created_at')}}
    if collection in TIMESTAMPED_COLLECTIONS:
        updated['updated_at'] = _now()

    _persist_entry(collection, updated)
    logger.info(f"{LOG_PREFIX} UPDATE | {collection} | ID: {entry_id[:8]}... | Fields: {', '.join(updates.keys())}")
    return updated


def delete_config_entry(collection: str, entry_id: str) -> bool:
    """Delete an entry from the local cache and, when enabled, the remote store."""
    _check_collection(collection)
    removed_locally = get_local_cache().remove(collection, entry_id)
    removed_remotely = remote_store.delete_if_enabled(collection, entry_id)
    logger.info(f"{LOG_PREFIX} DELETE | {collection} | ID: {entry_id[:8]}...")
    return removed_locally or removed_remotely
