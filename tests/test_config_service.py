"""
Tests for configuration collections and default seeding.
"""

from decimal import Decimal

import pytest

from quotation_manager.services import config_service
from quotation_manager.services.config_service import (
    CONFIG_VERSION,
    CONFIG_VERSION_FLAG,
    DEFAULT_BRANDS,
    DEFAULT_MACHINE_TYPES,
    DEFAULT_THICKNESSES,
)


def test_first_run_seeds_defaults(cache):
    config = config_service.get_configuration()

    assert [b['name'] for b in config['brands']] == DEFAULT_BRANDS
    assert [m['name'] for m in config['machine_types']] == DEFAULT_MACHINE_TYPES
    assert [t['value'] for t in config['thicknesses']] == DEFAULT_THICKNESSES
    assert config['materials'] == []
    assert config['version'] == CONFIG_VERSION
    assert cache.get_flag(CONFIG_VERSION_FLAG) == CONFIG_VERSION
    assert len(cache.get_collection('brands')) == len(DEFAULT_BRANDS)


def test_defaults_are_seeded_once():
    config_service.get_configuration()
    config = config_service.get_configuration()
    assert len(config['brands']) == len(DEFAULT_BRANDS)


def test_version_change_only_adds_missing_defaults(cache):
    cache.set_collection('brands', [{'id': 'b-own', 'name': 'metalbert'}, {'id': 'b-x', 'name': 'Propia'}])
    cache.set_collection('thicknesses', [{'id': 't-1', 'value': 12.7}])
    cache.set_flag(CONFIG_VERSION_FLAG, '1.0.0')

    config = config_service.get_configuration()

    names = [b['name'] for b in config['brands']]
    assert names.count('metalbert') == 1
    assert 'Metalbert' not in names
    assert 'Propia' in names
    assert len(names) == len(DEFAULT_BRANDS) + 1
    assert sorted(t['value'] for t in config['thicknesses']) == sorted(DEFAULT_THICKNESSES)


def test_seeded_defaults_are_mirrored_remotely(dynamodb):
    config_service.get_configuration()
    assert len(dynamodb.collection('brands').items) == len(DEFAULT_BRANDS)


def test_add_entry_assigns_id_and_timestamps():
    material = config_service.add_config_entry('materials', {'id': 'ignored', 'name': 'SAE 1045', 'price_per_kg': 2.5})
    brand = config_service.add_config_entry('brands', {'name': 'Nueva'})

    assert material['id'] != 'ignored'
    assert material['created_at'] == material['updated_at']
    assert 'updated_at' not in brand
    assert config_service.get_config_entry('brands', brand['id'])['name'] == 'Nueva'


def test_update_entry():
    service = config_service.add_config_entry('services', {'name': 'Temple', 'unit_price': 2, 'unit': 'kg'})

    updated = config_service.update_config_entry('services', service['id'], {'unit_price': 3, 'id': 'other'})

    assert updated['id'] == service['id']
    assert updated['unit_price'] == 3
    assert updated['created_at'] == service['created_at']
    assert config_service.update_config_entry('services', 'missing', {'unit_price': 1}) is None


def test_delete_entry():
    client = config_service.add_config_entry('clients', {'name': 'Agro Sur'})
    assert config_service.delete_config_entry('clients', client['id']) is True
    assert config_service.delete_config_entry('clients', client['id']) is False
    assert config_service.get_collection('clients') == []


def test_unknown_collection_is_rejected():
    with pytest.raises(ValueError):
        config_service.get_collection('catalog_products')
    with pytest.raises(ValueError):
        config_service.add_config_entry('invoices', {'name': 'x'})


def test_legacy_material_and_service_keys():
    material = config_service.normalize_material({'id': 'm', 'name': 'Boro', 'pricePerKg': 4, 'density': 7850})
    service = config_service.normalize_service({'id': 's', 'name': 'Corte', 'price': 12})

    assert material['price_per_kg'] == Decimal('4')
    assert material['density'] == Decimal('7850')
    assert service['unit_price'] == Decimal('12')
    assert 'price' not in service
    assert service['unit'] == 'pza'
    assert service['provider'] == 'inventu_lab'


def test_reference_data_for_the_cost_engine(cache):
    cache.set_collection('materials', [{'id': 'm', 'name': 'Boro', 'pricePerKg': 4}])
    cache.set_collection('services', [{'id': 's', 'name': 'Flete', 'price': 15, 'unit': 'fijo'}])

    assert config_service.get_materials()[0]['price_per_kg'] == Decimal('4')
    assert config_service.get_materials()[0]['density'] is None
    assert config_service.get_services()[0]['unit_price'] == Decimal('15')
