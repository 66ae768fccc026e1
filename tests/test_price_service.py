"""
Tests for quotation item pricing.
"""

from decimal import Decimal

from quotation_manager.services.price_service import (
    backfill_base_cost,
    calculate_quotation_total,
    create_catalog_item,
    create_custom_item,
    price_item,
    reprice_item,
)


def test_price_item_applies_markup():
    prices = price_item(100, 30, 2)
    assert prices['unit_price'] == Decimal('130')
    assert prices['total_price'] == Decimal('260')


def test_price_item_without_markup():
    assert price_item(Decimal('12.5'), 0, 4)['total_price'] == Decimal('50')


def test_catalog_item_uses_unit_cost_and_snapshots_product(product):
    product['unit_cost'] = 50

    item = create_catalog_item(product, 3, 20)

    assert item['type'] == 'catalog'
    assert item['base_cost'] == Decimal('50')
    assert item['unit_price'] == Decimal('60')
    assert item['total_price'] == Decimal('180')
    assert item['catalog_product_id'] == 'p-1'
    assert item['description'] == 'ABC-1 - Metalbert - Cuchilla Picadora'

    product['unit_cost'] = 500
    product['brand'] = 'Otra'
    assert item['catalog_product']['unit_cost'] == 50
    assert item['catalog_product']['brand'] == 'Metalbert'


def test_catalog_item_rejects_bad_input(product):
    assert create_catalog_item(None, 1) is None
    assert create_catalog_item(product, 0) is None
    assert create_catalog_item(product, 1.5) is None
    assert create_catalog_item(product, 'many') is None


def test_custom_item():
    item = create_custom_item('  Corte especial ', 10, 2, 50)

    assert item['type'] == 'custom'
    assert item['description'] == 'Corte especial'
    assert item['unit_price'] == Decimal('15')
    assert item['total_price'] == Decimal('30')
    assert 'catalog_product' not in item


def test_custom_item_rejects_bad_input():
    assert create_custom_item('', 10, 1) is None
    assert create_custom_item('   ', 10, 1) is None
    assert create_custom_item('Corte', 0, 1) is None
    assert create_custom_item('Corte', -3, 1) is None
    assert create_custom_item('Corte', 10, 0) is None


def test_backfill_from_catalog_snapshot():
    item = {'type': 'catalog', 'base_cost': 0, 'unit_price': 52, 'markup': 30,
            'catalog_product': {'unit_cost': 40}}
    assert backfill_base_cost(item)['base_cost'] == Decimal('40')


def test_backfill_by_removing_markup():
    item = {'type': 'custom', 'unit_price': 125, 'markup': 25}
    assert backfill_base_cost(item)['base_cost'] == Decimal('100')


def test_backfill_without_markup_uses_unit_price():
    item = {'type': 'custom', 'unit_price': 80}
    assert backfill_base_cost(item)['base_cost'] == Decimal('80')


def test_backfill_keeps_existing_base_cost_and_is_idempotent():
    item = {'type': 'custom', 'base_cost': 70, 'unit_price': 125, 'markup': 25}
    assert backfill_base_cost(item) is item

    legacy = {'type': 'custom', 'unit_price': 125, 'markup': 25}
    once = backfill_base_cost(legacy)
    assert backfill_base_cost(once) == once


def test_quotation_total():
    items = [{'total_price': Decimal('10.50')}, {'total_price': 4}, {}]
    assert calculate_quotation_total(items) == Decimal('14.50')
    assert calculate_quotation_total([]) == 0


def test_reprice_item_keeps_base_cost():
    item = create_custom_item('Corte', 10, 2, 0)

    repriced = reprice_item(item, markup=100, quantity=3)

    assert repriced['base_cost'] == Decimal('10')
    assert repriced['unit_price'] == Decimal('20')
    assert repriced['total_price'] == Decimal('60')
    assert repriced['quantity'] == 3


def test_reprice_item_rejects_invalid_quantity():
    item = create_custom_item('Corte', 10, 2, 0)
    assert reprice_item(item, quantity=0) is None
