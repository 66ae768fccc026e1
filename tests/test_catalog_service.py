"""
Tests for catalog persistence, legacy product shapes, sales history and
material price propagation.
"""

from decimal import Decimal

from quotation_manager.services import catalog_service
from quotation_manager.services.config_service import add_config_entry


def test_save_and_read_back(product):
    saved = catalog_service.save_catalog_product(product)

    assert saved['last_modified']
    fetched = catalog_service.get_catalog_product('p-1')
    assert fetched['brand'] == 'Metalbert'
    assert fetched['unit_cost'] == 9.75
    assert catalog_service.get_catalog_product('nope') is None


def test_local_product_wins_over_remote(product, dynamodb, cache):
    dynamodb.collection('catalog_products').items['p-1'] = {'id': 'p-1', 'brand': 'Remota'}
    dynamodb.collection('catalog_products').items['p-2'] = {'id': 'p-2', 'brand': 'Solo remota'}
    cache.upsert('catalog_products', {**product, 'brand': 'Local'})

    products = {p['id']: p for p in catalog_service.get_catalog_products()}

    assert products['p-1']['brand'] == 'Local'
    assert products['p-2']['brand'] == 'Solo remota'


def test_save_mirrors_to_remote_when_enabled(product, dynamodb):
    catalog_service.save_catalog_product(product)
    stored = dynamodb.collection('catalog_products').items['p-1']
    assert stored['unit_cost'] == Decimal('9.75')


def test_save_survives_remote_failure(product, broken_dynamodb, cache):
    catalog_service.save_catalog_product(product)
    assert [p['id'] for p in cache.get_collection('catalog_products')] == ['p-1']


def test_legacy_product_shape_is_normalized(cache):
    cache.set_collection('catalog_products', [{
        'id': 'old-1',
        'codigoCompetencia': 'MB-22',
        'marca': 'Mainero',
        'maquina': 'Cuchilla Picadora',
        'largo': 400,
        'ancho': 80,
        'espesor': 9.53,
        'peso': 2.4,
        'precioUnitario': 31.5,
        'selectedServices': ['s-kg', {'serviceId': 's-m2', 'value': 0.08}, {'value': 3}],
        'historialVentas': [{'id': 'v1', 'clientName': 'Agro Sur', 'unitPrice': 40, 'quantity': 5}],
        'lastModified': '2024-05-01T10:00:00Z',
    }])

    product = catalog_service.get_catalog_product('old-1')

    assert product['competitor_code'] == 'MB-22'
    assert product['brand'] == 'Mainero'
    assert product['thickness'] == 9.53
    assert product['unit_cost'] == 31.5
    assert product['min_lot'] == 1
    assert product['selected_services'] == [
        {'service_id': 's-kg', 'value': 1},
        {'service_id': 's-m2', 'value': 0.08},
    ]
    assert product['sales_history'][0]['client_name'] == 'Agro Sur'
    assert product['sales_history'][0]['unit_price'] == 40
    assert product['last_modified'] == '2024-05-01T10:00:00Z'


def test_current_keys_win_over_legacy_ones(cache):
    cache.set_collection('catalog_products', [{'id': 'x', 'marca': 'Vieja', 'brand': 'Nueva'}])
    assert catalog_service.get_catalog_product('x')['brand'] == 'Nueva'


def test_delete_product(product):
    catalog_service.save_catalog_product(product)
    assert catalog_service.delete_catalog_product('p-1') is True
    assert catalog_service.delete_catalog_product('p-1') is False
    assert catalog_service.get_catalog_products() == []


def test_sales_history(product):
    catalog_service.save_catalog_product(product)

    updated = catalog_service.add_sale_record('p-1', {'client_name': 'Agro Sur', 'quantity': 10, 'unit_price': 40})
    sale_id = updated['sales_history'][0]['id']
    assert updated['sales_history'][0]['status'] == 'pending'

    updated = catalog_service.update_sale_record('p-1', sale_id, {'client_name': 'Agro Sur', 'quantity': 12, 'status': 'won'})
    assert updated['sales_history'][0]['quantity'] == 12
    assert updated['sales_history'][0]['id'] == sale_id

    assert catalog_service.update_sale_record('p-1', 'missing', {}) is None
    assert catalog_service.add_sale_record('nope', {}) is None

    updated = catalog_service.delete_sale_record('p-1', sale_id)
    assert updated['sales_history'] == []


def test_products_using_material(product):
    catalog_service.save_catalog_product(product)
    catalog_service.save_catalog_product({**product, 'id': 'p-2', 'material': 'Boro'})

    assert [p['id'] for p in catalog_service.get_products_using_material('SAE 1045')] == ['p-1']


def test_material_price_update_preview_and_apply(product):
    add_config_entry('materials', {'name': 'SAE 1045', 'price_per_kg': 2.5, 'density': 7.85})
    add_config_entry('services', {'name': 'Flete', 'unit_price': 15, 'unit': 'fijo'})
    catalog_service.save_catalog_product(product)
    catalog_service.save_catalog_product({**product, 'id': 'p-2', 'material': 'Boro'})

    updates = catalog_service.calculate_price_updates_for_material('SAE 1045', 3)

    assert len(updates) == 1
    assert updates[0]['product']['id'] == 'p-1'
    assert updates[0]['old_price'] == Decimal('9.75')
    # 3.9 kg × 3
    assert updates[0]['new_price'] == Decimal('11.70')

    catalog_service.apply_price_updates(updates)
    assert Decimal(str(catalog_service.get_catalog_product('p-1')['unit_cost'])) == Decimal('11.7')


def test_price_update_includes_selected_services(product):
    add_config_entry('materials', {'name': 'SAE 1045', 'price_per_kg': 2.5, 'density': 7.85})
    flete = add_config_entry('services', {'name': 'Flete', 'unit_price': 15, 'unit': 'fijo'})
    catalog_service.save_catalog_product({
        **product,
        'unit_cost': 24.75,
        'selected_services': [{'service_id': flete['id'], 'value': 1}],
    })

    updates = catalog_service.calculate_price_updates_for_material('SAE 1045', 3)

    assert updates[0]['new_price'] == Decimal('26.70')


def test_unchanged_price_produces_no_update(product):
    add_config_entry('materials', {'name': 'SAE 1045', 'price_per_kg': 2.5, 'density': 7.85})
    catalog_service.save_catalog_product(product)

    assert catalog_service.calculate_price_updates_for_material('SAE 1045', 2.5) == []
