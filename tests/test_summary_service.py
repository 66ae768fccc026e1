"""
Tests for quotation summaries, dashboard figures and the monthly rollup.
"""

from datetime import date
from decimal import Decimal

from quotation_manager.schemas.quotation_model import EMPTY_ITEMS_LABEL, QuotationStatus
from quotation_manager.services.summary_service import (
    conversion_rate,
    dashboard_stats,
    filter_by_status,
    get_status,
    is_monoproducto,
    oldest_pending,
    rollup_by_month,
    summarize,
)


def _quotation(quotation_id, when, total, status=None, items=None):
    quotation = {
        'id': quotation_id,
        'quotation_number': f'Q-{quotation_id}',
        'date': when,
        'client_name': 'Agro Sur',
        'items': items if items is not None else [],
        'total_price': total,
    }
    if status is not None:
        quotation['status'] = status
    return quotation


def test_summarize_costs_and_profit():
    items = [
        {'description': 'Cuchilla', 'quantity': 2, 'base_cost': 10},
        {'description': 'Flete', 'quantity': 1},
    ]
    summary = summarize(_quotation('q1', '2026-03-02', 50, items=items))

    assert summary['quantity'] == 3
    assert summary['total_cost'] == Decimal('20')
    assert summary['final_price'] == Decimal('50')
    assert summary['profit'] == Decimal('30')
    assert summary['product_name'] == 'Cuchilla, Flete'
    assert summary['status'] == 'pending'


def test_long_product_names_are_truncated():
    items = [{'description': 'A' * 30, 'quantity': 1}, {'description': 'B' * 28, 'quantity': 1}]

    name = summarize(_quotation('q1', '2026-03-02', 0, items=items))['product_name']

    assert len(name) == 50
    assert name.endswith('...')
    assert name[:47] == ('A' * 30 + ', ' + 'B' * 28)[:47]


def test_names_at_the_limit_are_kept():
    items = [{'description': 'C' * 50, 'quantity': 1}]
    assert summarize(_quotation('q1', '2026-03-02', 0, items=items))['product_name'] == 'C' * 50


def test_empty_quotation_summary():
    summary = summarize(_quotation('q1', '2026-03-02', 0))
    assert summary['product_name'] == EMPTY_ITEMS_LABEL
    assert summary['quantity'] == 0
    assert summary['profit'] == 0


def test_unknown_status_reads_as_pending():
    assert get_status({'status': 'archived'}) == QuotationStatus.PENDING
    assert get_status({}) == QuotationStatus.PENDING
    assert get_status({'status': 'won'}) == QuotationStatus.WON


def test_conversion_rate():
    assert conversion_rate(3, 1) == 0.75
    assert conversion_rate(0, 4) == 0.0
    assert conversion_rate(0, 0) == 0.0


def test_dashboard_with_only_pending_quotations():
    quotations = [_quotation(f'q{i}', '2026-03-02', 10) for i in range(5)]

    stats = dashboard_stats(quotations, product_count=12, client_count=3)

    assert stats['pending_count'] == 5
    assert stats['conversion_rate'] == 0.0
    assert stats['quoted_amount'] == Decimal('50')
    assert stats['product_count'] == 12
    assert stats['client_count'] == 3


def test_dashboard_counts_and_amounts():
    won_items = [{'description': 'X', 'quantity': 1, 'base_cost': 60}]
    quotations = [
        _quotation('q1', '2026-03-02', 100, 'won', won_items),
        _quotation('q2', '2026-03-03', 40, 'lost'),
        _quotation('q3', '2026-03-04', 30, 'pending'),
        _quotation('q4', '2026-03-05', 20),
    ]

    stats = dashboard_stats(quotations)

    assert stats['total_quotations'] == 4
    assert (stats['won_count'], stats['lost_count'], stats['pending_count']) == (1, 1, 2)
    assert stats['won_amount'] == Decimal('100')
    assert stats['won_profit'] == Decimal('40')
    assert stats['conversion_rate'] == 0.5


def test_rollup_by_month():
    won_items = [{'description': 'X', 'quantity': 1, 'base_cost': 60}]
    quotations = [
        _quotation('q1', '2026-03-02', 100, 'won', won_items),
        _quotation('q2', '2026-03-20T10:00:00Z', 50, 'lost'),
        _quotation('q3', '2026-01-05', 30),
        _quotation('q4', '2025-09-30', 70, 'won'),
        _quotation('q5', 'sin fecha', 10),
        _quotation('q6', None, 10),
    ]

    rows = rollup_by_month(quotations, 6, today=date(2026, 3, 15))

    assert [row['month'] for row in rows] == ['2025-10', '2025-11', '2025-12', '2026-01', '2026-02', '2026-03']
    march = rows[-1]
    assert march['label'] == 'mar'
    assert march['quoted_amount'] == Decimal('150')
    assert march['quoted_count'] == 2
    assert march['won_amount'] == Decimal('100')
    assert march['won_count'] == 1
    assert march['won_profit'] == Decimal('40')
    assert march['lost_amount'] == Decimal('50')
    assert march['lost_count'] == 1
    assert rows[3]['quoted_amount'] == Decimal('30')
    assert rows[4]['quoted_count'] == 0


def test_rollup_window_crosses_year_boundary():
    rows = rollup_by_month([], 3, today=date(2026, 1, 10))
    assert [row['month'] for row in rows] == ['2025-11', '2025-12', '2026-01']
    assert [row['label'] for row in rows] == ['nov', 'dic', 'ene']


def test_filter_by_status():
    summaries = [summarize(_quotation('q1', '2026-03-02', 1, 'won')),
                 summarize(_quotation('q2', '2026-03-02', 1))]
    assert [s['id'] for s in filter_by_status(summaries, 'won')] == ['q1']
    assert len(filter_by_status(summaries, None)) == 2


def test_oldest_pending_first():
    summaries = [summarize(q) for q in (
        _quotation('late', '2026-03-10', 1),
        _quotation('closed', '2025-01-01', 1, 'lost'),
        _quotation('undated', None, 1),
        _quotation('early', '2026-01-02', 1),
    )]
    assert [s['id'] for s in oldest_pending(summaries)] == ['early', 'late', 'undated']
    assert [s['id'] for s in oldest_pending(summaries, limit=1)] == ['early']


def test_is_monoproducto():
    catalog_item = {'type': 'catalog', 'catalog_product': {'id': 'p-1'}}
    custom_item = {'type': 'custom', 'description': 'Corte'}

    assert is_monoproducto({'items': [catalog_item]}) is True
    assert is_monoproducto({'items': [custom_item]}) is False
    assert is_monoproducto({'items': [catalog_item, catalog_item]}) is False
    assert is_monoproducto({'items': [{'type': 'catalog'}]}) is False
    assert is_monoproducto({'items': []}) is False
