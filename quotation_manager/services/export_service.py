"""
Export service for generating Excel files.
"""

import os
import logging
from typing import Optional, Dict, Any, List
from io import BytesIO
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment

from quotation_manager.schemas.catalog_model import UNIT_LABELS, UNKNOWN_SERVICE_NAME
from quotation_manager.schemas.quotation_model import TAX_LABEL
from quotation_manager.services.catalog_service import normalize_selected_services
from quotation_manager.services.config_service import get_services
from quotation_manager.services.conversions import format_thickness
from quotation_manager.services.quotation_service import get_quotation, get_quotation_summaries, get_quotations
from quotation_manager.services.summary_service import filter_by_status, is_monoproducto, rollup_by_month
from quotation_manager.shared.dates import try_as_date

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

COMPANY_NAME = "INVENTU AGRO"
CURRENCY_NOTE = "Valores expresados en USD (Dólar Oficial Banco Nación)"

STATUS_LABELS = {
    'pending': 'Pendiente',
    'won': 'Ganada',
    'lost': 'Perdida',
}


def _money(value: Any) -> float:
    return round(float(value or 0), 2)


def _bold_row(ws, row: int) -> None:
    for cell in ws[row]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal='center')


def _autofit(ws) -> None:
    for column in ws.columns:
        max_length = 0
        column_letter = column[0].column_letter
        for cell in column:
            if cell.value is not None and len(str(cell.value)) > max_length:
                max_length = len(str(cell.value))
        ws.column_dimensions[column_letter].width = min(max_length + 2, 50)


def _to_bytes(wb: Workbook) -> BytesIO:
    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output


def _format_date(value: Any) -> str:
    parsed = try_as_date(value)
    return parsed.strftime('%d/%m/%Y') if parsed else (value or '')


def _product_detail_rows(product: Dict[str, Any]) -> List[List[Any]]:
    return [
        ['Marca', product.get('brand') or ''],
        ['Máquina', product.get('machine_type') or ''],
        ['Código / Ref', product.get('competitor_code') or ''],
        ['Material', product.get('material') or ''],
        ['Espesor', format_thickness(product.get('thickness') or 0) or '0 mm'],
        ['Peso Unitario', f"{product.get('weight') or 0} kg"],
        ['Dimensiones', f"{product.get('length') or 0} x {product.get('width') or 0} mm"],
        ['Tratamiento Térmico', product.get('heat_treatment') or 'No especificado'],
        ['Dureza', product.get('hardness') or 'No especificada'],
    ]


def generate_quotation_excel(quotation: Dict[str, Any], services: Optional[List[Dict[str, Any]]] = None) -> BytesIO:
    """
    Generate the client-facing quotation workbook.

    A quotation of a single catalog product gets the product detail and its
    processes instead of the item table.

    Args:
        quotation: Normalized quotation
        services: Service records used to name the processes (monoproducto only)

    Returns:
        BytesIO object containing Excel file
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Cotización"

    ws.append([COMPANY_NAME])
    ws['A1'].font = Font(bold=True, size=14)
    ws.append(['Fecha', _format_date(quotation.get('date'))])
    ws.append(['Cotización', quotation.get('quotation_number') or quotation.get('id')])
    ws.append(['Cliente', quotation.get('client_name') or ''])
    ws.append([])

    items = quotation.get('items') or []

    if is_monoproducto(quotation):
        product = items[0]['catalog_product']
        ws.append(['DETALLES DEL PRODUCTO'])
        ws.append(['Especificación', 'Detalle'])
        _bold_row(ws, ws.max_row)
        for row in _product_detail_rows(product):
            ws.append(row)

        selected = normalize_selected_services(product.get('selected_services'))
        if selected:
            index = {s.get('id'): s for s in services or []}
            ws.append([])
            ws.append(['PROCESOS REQUERIDOS'])
            ws.append(['Proceso', 'Cantidad'])
            _bold_row(ws, ws.max_row)
            for entry in selected:
                service = index.get(entry.get('service_id')) or {}
                unit = UNIT_LABELS.get(service.get('unit'), service.get('unit') or '')
                ws.append([service.get('name') or UNKNOWN_SERVICE_NAME, f"{entry.get('value')} {unit}".strip()])

        item = items[0]
        ws.append([])
        ws.append(['Precio Unitario', _money(item.get('unit_price')), f"USD {TAX_LABEL}"])
        ws.append(['Cantidad', item.get('quantity'), 'unidades'])
        ws.append(['Precio Final', _money(quotation.get('total_price')), f"USD {TAX_LABEL}"])
    else:
        ws.append(['Detalle', 'Cantidad', 'P. Unitario', 'Subtotal'])
        _bold_row(ws, ws.max_row)
        for item in items:
            ws.append([
                item.get('description') or '',
                item.get('quantity'),
                _money(item.get('unit_price')),
                _money(item.get('total_price')),
            ])
        ws.append([])
        ws.append(['PRECIO TOTAL FINAL', _money(quotation.get('total_price')), f"USD {TAX_LABEL}"])

    ws.append(['Condición de Pago', quotation.get('payment_terms') or 'No especificada'])

    attachments = quotation.get('attachments') or []
    if attachments:
        ws.append(['Documentos Adjuntos', ', '.join(a.get('name', '') for a in attachments)])
    if quotation.get('notes'):
        ws.append(['Notas adicionales', quotation['notes']])

    ws.append([])
    ws.append([CURRENCY_NOTE])

    _autofit(ws)
    return _to_bytes(wb)


def generate_summaries_excel(summaries: List[Dict[str, Any]]) -> BytesIO:
    """
    Generate the quotation list report.

    Args:
        summaries: QuotationSummary rows

    Returns:
        BytesIO object containing Excel file
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Cotizaciones"

    ws.append(['Número', 'Fecha', 'Cliente', 'Producto', 'Cantidad', 'Precio Final', 'Costo Total', 'Ganancia', 'Estado'])
    _bold_row(ws, 1)

    for summary in summaries:
        ws.append([
            summary.get('quotation_number') or '',
            _format_date(summary.get('date')),
            summary.get('client_name') or '',
            summary.get('product_name') or '',
            summary.get('quantity'),
            _money(summary.get('final_price')),
            _money(summary.get('total_cost')),
            _money(summary.get('profit')),
            STATUS_LABELS.get(summary.get('status'), summary.get('status')),
        ])

    _autofit(ws)
    return _to_bytes(wb)


def generate_monthly_rollup_excel(rows: List[Dict[str, Any]]) -> BytesIO:
    """Generate the monthly dashboard rollup report."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Resumen Mensual"

    ws.append(['Mes', 'Cotizado', 'Ganado', 'Perdido', 'Ganancia', 'Cotizaciones', 'Ganadas', 'Perdidas'])
    _bold_row(ws, 1)

    for row in rows:
        ws.append([
            row['month'],
            _money(row['quoted_amount']),
            _money(row['won_amount']),
            _money(row['lost_amount']),
            _money(row['won_profit']),
            row['quoted_count'],
            row['won_count'],
            row['lost_count'],
        ])

    _autofit(ws)
    return _to_bytes(wb)


def export_quotation(quotation_id: str) -> Optional[BytesIO]:
    """
    Quotation workbook for direct download.

    Returns:
        BytesIO object containing Excel file, or None if the quotation does not exist
    """
    quotation = get_quotation(quotation_id)
    if not quotation:
        return None

    services = get_services() if is_monoproducto(quotation) else None
    logger.info(f"[EXPORT] QUOTATION | ID: {quotation_id[:8]}... | Monoproducto: {services is not None}")
    return generate_quotation_excel(quotation, services)


def export_summaries(status: Optional[str] = None) -> BytesIO:
    """Quotation list report, optionally limited to one status."""
    summaries = get_quotation_summaries()
    summaries = filter_by_status(summaries, status)
    logger.info(f"[EXPORT] SUMMARIES | Rows: {len(summaries)} | Status: {status or 'all'}")
    return generate_summaries_excel(summaries)


def export_monthly_rollup(month_count: int = 6) -> BytesIO:
    """Monthly rollup report for the last ``month_count`` months."""
    rows = rollup_by_month(get_quotations(), month_count)
    return generate_monthly_rollup_excel(rows)
