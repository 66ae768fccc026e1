"""
Dashboard endpoint handlers.
"""

import os
import logging
from typing import Dict, Any

from quotation_manager.api.utils import get_query_params, create_response, error_response
from quotation_manager.services.catalog_service import get_catalog_products
from quotation_manager.services.config_service import get_collection
from quotation_manager.services.quotation_service import get_quotations
from quotation_manager.services.summary_service import dashboard_stats, rollup_by_month

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))


def handle_get_stats(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /dashboard/stats - Headline figures.
    """
    try:
        stats = dashboard_stats(
            get_quotations(),
            product_count=len(get_catalog_products()),
            client_count=len(get_collection('clients')),
        )
        return create_response(200, stats)

    except Exception as e:
        logger.error(f"[DASHBOARD] Error computing stats: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to compute stats')


def handle_get_monthly(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /dashboard/monthly - Rollup by calendar month.

    Query parameters:
    - months: Window size (default 6)
    """
    try:
        params = get_query_params(event)
        try:
            months = int(params.get('months', 6))
        except (ValueError, TypeError):
            return error_response(400, 'Validation error', 'months must be an integer')
        if months < 1:
            return error_response(400, 'Validation error', 'months must be >= 1')

        rows = rollup_by_month(get_quotations(), months)
        return create_response(200, {'months': rows})

    except Exception as e:
        logger.error(f"[DASHBOARD] Error computing monthly rollup: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to compute monthly rollup')
