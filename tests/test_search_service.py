"""
Tests for text filters, sorting and the global search.
"""

import pytest

from quotation_manager.services.search_service import (
    PRODUCT_SORT_FIELDS,
    SUMMARY_SORT_FIELDS,
    global_search,
    search_products,
    search_summaries,
    sort_records,
)


@pytest.fixture
def summaries():
    return [
        {'id': 'a1', 'quotation_number': 'InventuAgro260210-01', 'date': '2026-02-10',
         'client_name': 'Agro Sur', 'product_name': 'ABC-1 - Metalbert', 'final_price': 78, 'status': 'won'},
        {'id': 'b2', 'quotation_number': None, 'date': '2026-01-05',
         'client_name': 'El Ombú SRL', 'product_name': 'Flete', 'final_price': 15, 'status': 'pending'},
        {'id': 'c3', 'quotation_number': 'InventuAgro260301-01', 'date': None,
         'client_name': 'agro norte', 'product_name': 'Cuchilla', 'final_price': 120, 'status': 'pending'},
    ]


def test_text_filters_are_case_insensitive(summaries):
    assert [s['id'] for s in search_summaries(summaries, client_name='AGRO')] == ['a1', 'c3']
    assert [s['id'] for s in search_summaries(summaries, product_name='metal')] == ['a1']
    assert [s['id'] for s in search_summaries(summaries, id='B')] == ['b2']


def test_filters_combine_with_status(summaries):
    assert [s['id'] for s in search_summaries(summaries, status='pending', client_name='agro')] == ['c3']
    assert search_summaries(summaries, status='lost') == []
    assert len(search_summaries(summaries, client_name='', status=None)) == 3


def test_number_filter_skips_rows_without_number(summaries):
    assert [s['id'] for s in search_summaries(summaries, quotation_number='inventuagro26')] == ['a1', 'c3']


def test_unknown_filter_is_rejected(summaries):
    with pytest.raises(ValueError):
        search_summaries(summaries, notes='x')


def test_sort_both_directions_missing_last(summaries):
    ascending = sort_records(summaries, 'date', 'asc', SUMMARY_SORT_FIELDS)
    descending = sort_records(summaries, 'date', 'desc', SUMMARY_SORT_FIELDS)

    assert [s['id'] for s in ascending] == ['b2', 'a1', 'c3']
    assert [s['id'] for s in descending] == ['a1', 'b2', 'c3']
    assert [s['id'] for s in sort_records(summaries, 'final_price', 'desc')] == ['c3', 'a1', 'b2']


def test_sort_without_field_keeps_order(summaries):
    assert sort_records(summaries, None) == summaries


def test_sort_rejects_bad_input(summaries):
    with pytest.raises(ValueError):
        sort_records(summaries, 'secret', 'asc', SUMMARY_SORT_FIELDS)
    with pytest.raises(ValueError):
        sort_records(summaries, 'date', 'sideways')


def test_product_search_and_sort(product):
    other = {**product, 'id': 'p-2', 'competitor_code': None, 'brand': 'Agrometal',
             'machine_type': 'Sembradora', 'material': 'Boro', 'unit_cost': 5}
    products = [product, other]

    assert [p['id'] for p in search_products(products, 'boro')] == ['p-2']
    assert [p['id'] for p in search_products(products, 'abc')] == ['p-1']
    assert [p['id'] for p in search_products(products, 'METAL')] == ['p-1', 'p-2']
    assert search_products(products, '') == products
    assert [p['id'] for p in sort_records(products, 'unit_cost', 'asc', PRODUCT_SORT_FIELDS)] == ['p-2', 'p-1']


def test_global_search(product):
    quotations = [
        {'id': 'q1', 'client_name': 'Agro Sur', 'notes': '', 'items': []},
        {'id': 'q2', 'client_name': 'El Ombú', 'notes': 'Entrega urgente', 'items': []},
        {'id': 'q3', 'client_name': 'Campo', 'notes': '',
         'items': [{'type': 'catalog', 'description': 'ABC-1 - Metalbert'}]},
        {'id': 'q4', 'client_name': 'Campo', 'notes': '',
         'items': [{'type': 'custom', 'description': 'Metalbert a medida'}]},
    ]

    results = global_search('metalbert', [product], quotations)
    assert [p['id'] for p in results['products']] == ['p-1']
    assert [q['id'] for q in results['quotations']] == ['q3']

    assert [q['id'] for q in global_search('URGENTE', [product], quotations)['quotations']] == ['q2']
    assert global_search('SAE', [product], quotations)['products'] == []
    assert global_search('  ', [product], quotations) == {'products': [], 'quotations': []}
