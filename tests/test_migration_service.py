"""
Tests for the local cache to remote store migration.
"""

import pytest

from quotation_manager.services import migration_service
from quotation_manager.services.catalog_service import get_local_products
from quotation_manager.services.config_service import get_services
from quotation_manager.services.cost_service import calculate_product_costs
from quotation_manager.shared.error_handling import RemoteStoreError


def _seed_legacy_cache(cache, product):
    cache.set_collection('brands', [{'id': 'brand-1', 'name': 'Metalbert'}])
    cache.set_collection('thicknesses', [{'id': 'thick-1', 'value': 6.35}])
    cache.set_collection('catalog_products', [{
        **product,
        'id': 'cat-1700000000000',
        'sales_history': [{'id': 'sale-1', 'client_name': 'Agro Sur', 'quantity': 3}],
    }])
    cache.set_collection('quotations', [{
        'id': 'q-legacy',
        'quotation_number': 'InventuAgro240501-01',
        'date': '2024-05-01',
        'client_name': 'Agro Sur',
        'total_price': 19.5,
        'items': [{
            'id': 'item-1',
            'type': 'catalog',
            'description': 'ABC-1 - Metalbert',
            'quantity': 1,
            'base_cost': 9.75,
            'markup': 100,
            'unit_price': 19.5,
            'total_price': 19.5,
            'catalog_product_id': 'cat-1700000000000',
            'catalog_product': {**product, 'id': 'cat-1700000000000'},
        }],
    }])


def test_legacy_ids():
    assert migration_service.is_legacy_id('brand-3') is True
    assert migration_service.is_legacy_id(None) is True
    assert migration_service.is_legacy_id('0b3f5c1e-6a1d-4c8e-9f2a-7d4e5b6c7a8f') is False
    assert migration_service.ensure_uuid('0b3f5c1e-6a1d-4c8e-9f2a-7d4e5b6c7a8f') == '0b3f5c1e-6a1d-4c8e-9f2a-7d4e5b6c7a8f'
    assert not migration_service.is_legacy_id(migration_service.ensure_uuid('cat-1'))


def test_pending_local_data(cache):
    assert migration_service.has_pending_local_data() is False
    cache.upsert('clients', {'id': 'c1', 'name': 'Agro Sur'})
    assert migration_service.has_pending_local_data() is True
    cache.set_flag(migration_service.MIGRATION_FLAG, True)
    assert migration_service.has_pending_local_data() is False


def test_migration_requires_remote_store():
    with pytest.raises(RemoteStoreError):
        migration_service.migrate_local_to_remote()


def test_migration_pushes_everything_and_rewrites_ids(cache, dynamodb, product):
    _seed_legacy_cache(cache, product)

    report = migration_service.migrate_local_to_remote()

    assert report['brands'] == 1
    assert report['thicknesses'] == 1
    assert report['clients'] == 0
    assert report['catalog_products'] == 1
    assert report['quotations'] == 1

    remote_products = list(dynamodb.collection('catalog_products').items.values())
    remote_quotations = list(dynamodb.collection('quotations').items.values())
    product_id = remote_products[0]['id']

    assert not migration_service.is_legacy_id(product_id)
    assert not migration_service.is_legacy_id(remote_products[0]['sales_history'][0]['id'])
    assert not migration_service.is_legacy_id(remote_quotations[0]['id'])

    item = remote_quotations[0]['items'][0]
    assert item['catalog_product_id'] == product_id
    assert item['catalog_product']['id'] == product_id

    assert [p['id'] for p in cache.get_collection('catalog_products')] == [product_id]
    assert cache.get_collection('quotations')[0]['id'] == remote_quotations[0]['id']
    assert migration_service.has_pending_local_data() is False


def test_migration_keeps_existing_uuids(cache, dynamodb):
    client_id = '0b3f5c1e-6a1d-4c8e-9f2a-7d4e5b6c7a8f'
    cache.set_collection('clients', [{'id': client_id, 'name': 'Agro Sur'}])

    migration_service.migrate_local_to_remote()

    assert list(dynamodb.collection('clients').items) == [client_id]


def test_migration_rewrites_service_references(cache, dynamodb, product, materials):
    cache.set_collection('services', [{'id': 'service-1', 'name': 'Temple', 'unit_price': 2, 'unit': 'kg'}])
    legacy_product = {**product, 'id': 'cat-1', 'selected_services': [{'service_id': 'service-1', 'value': 4}]}
    cache.set_collection('catalog_products', [legacy_product])
    cache.set_collection('quotations', [{
        'id': 'q-legacy',
        'client_name': 'Agro Sur',
        'items': [{
            'type': 'catalog',
            'quantity': 1,
            'base_cost': 17.75,
            'catalog_product_id': 'cat-1',
            'catalog_product': {**legacy_product, 'selected_services': ['service-1']},
        }],
    }])
    services_before = calculate_product_costs(legacy_product, materials, cache.get_collection('services')).services_cost

    migration_service.migrate_local_to_remote()

    service_id = list(dynamodb.collection('services').items)[0]
    assert not migration_service.is_legacy_id(service_id)

    migrated = get_local_products()[0]
    assert migrated['selected_services'] == [{'service_id': service_id, 'value': 4}]
    assert calculate_product_costs(migrated, materials, get_services()).services_cost == services_before
    assert services_before > 0

    remote_product = list(dynamodb.collection('catalog_products').items.values())[0]
    assert remote_product['selected_services'][0]['service_id'] == service_id

    snapshot = cache.get_collection('quotations')[0]['items'][0]['catalog_product']
    assert snapshot['selected_services'] == [{'service_id': service_id, 'value': 1}]
