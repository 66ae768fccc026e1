"""
Export endpoint handlers.
"""

import os
import logging
from typing import Dict, Any

from quotation_manager.api.utils import get_query_params, get_path_parameter, create_file_response, error_response
from quotation_manager.services.export_service import export_monthly_rollup, export_quotation, export_summaries

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))


def handle_export_quotation(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /quotations/{quotationId}/export - Quotation workbook.
    Returns Excel file as base64-encoded string for direct download.
    """
    try:
        quotation_id = get_path_parameter(event, 'quotationId')

        if not quotation_id:
            return error_response(400, 'Missing quotationId')

        excel_data = export_quotation(quotation_id)

        if not excel_data:
            return error_response(404, 'Quotation not found')

        return create_file_response(f'cotizacion_{quotation_id}.xlsx', excel_data, 'quotation')

    except Exception as e:
        logger.error(f"Error exporting quotation: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Export operation failed')


def handle_export_summaries(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /exports/summaries - Quotation list report.
    """
    try:
        status = get_query_params(event).get('status')
        return create_file_response('cotizaciones.xlsx', export_summaries(status), 'summaries')

    except Exception as e:
        logger.error(f"Error exporting summaries: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Export operation failed')


def handle_export_monthly(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /exports/monthly - Monthly rollup report.
    """
    try:
        params = get_query_params(event)
        try:
            months = int(params.get('months', 6))
        except (ValueError, TypeError):
            return error_response(400, 'Validation error', 'months must be an integer')

        return create_file_response('resumen_mensual.xlsx', export_monthly_rollup(months), 'monthly')

    except Exception as e:
        logger.error(f"Error exporting monthly rollup: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Export operation failed')
