"""
Global search endpoint handler.
"""

import os
import logging
from typing import Dict, Any

from quotation_manager.api.utils import get_query_params, create_response, error_response
from quotation_manager.services.catalog_service import get_catalog_products
from quotation_manager.services.quotation_service import get_quotations
from quotation_manager.services.search_service import global_search

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))


def handle_global_search(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /search - Products and quotations matching a term.

    Query parameters:
    - q: Search term; a blank term returns no results
    """
    try:
        term = get_query_params(event).get('q') or ''
        if not term.strip():
            return create_response(200, {'term': term, 'products': [], 'quotations': []})

        results = global_search(term, get_catalog_products(), get_quotations())
        return create_response(200, {'term': term, **results})

    except Exception as e:
        logger.error(f"[GLOBAL-SEARCH] Error searching: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Search failed')
