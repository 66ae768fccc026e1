"""
Main API handler - routes requests to appropriate endpoint handlers.
"""

import os
import logging
from typing import Dict, Any, List

from quotation_manager.api.utils import handle_cors_preflight, create_response, get_method
from quotation_manager.api.quotations import (
    handle_create_quotation,
    handle_get_quotations,
    handle_get_summaries,
    handle_next_number,
    handle_get_quotation,
    handle_update_quotation,
    handle_update_status,
    handle_delete_quotation
)
from quotation_manager.api.catalog import (
    handle_get_products,
    handle_get_product,
    handle_create_product,
    handle_update_product,
    handle_delete_product,
    handle_cost_preview,
    handle_price_updates,
    handle_add_sale,
    handle_update_sale,
    handle_delete_sale
)
from quotation_manager.api.configuration import (
    handle_get_configuration,
    handle_add_entry,
    handle_update_entry,
    handle_delete_entry
)
from quotation_manager.api.dashboard import handle_get_stats, handle_get_monthly
from quotation_manager.api.exports import handle_export_quotation, handle_export_summaries, handle_export_monthly
from quotation_manager.api.migration import handle_migration_status, handle_run_migration
from quotation_manager.api.search import handle_global_search

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

# Path segment position -> parameter name, per resource
PATH_PARAMETERS = {
    'quotations': ((1, 'quotationId'),),
    'catalog': ((1, 'productId'), (3, 'saleId')),
    'configuration': ((1, 'collection'), (2, 'entryId')),
}


def _path_segments(event: Dict[str, Any]) -> List[str]:
    path = event.get('rawPath') or event.get('path') or ''
    return [segment for segment in path.strip('/').split('/') if segment]


def _fill_path_parameters(event: Dict[str, Any], segments: List[str]) -> None:
    """Derive pathParameters from the raw path when the gateway did not provide them."""
    if event.get('pathParameters') or not segments:
        return
    positions = PATH_PARAMETERS.get(segments[0].lower(), ())
    event['pathParameters'] = {name: segments[i] for i, name in positions if i < len(segments)}


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler for the quotation manager API.

    Routes requests to appropriate handlers based on path and method.

    Args:
        event: API Gateway event
        context: Lambda context

    Returns:
        API Gateway response
    """
    method = get_method(event)
    segments = _path_segments(event)
    logger.info(f"Request method: {method}")
    logger.info(f"Request path: /{'/'.join(segments)}")

    # Handle CORS preflight
    cors_response = handle_cors_preflight(event)
    if cors_response:
        return cors_response

    _fill_path_parameters(event, segments)

    resource = segments[0].lower() if segments else ''
    count = len(segments)
    tail = segments[1].lower() if count > 1 else ''
    sub = segments[2].lower() if count > 2 else ''

    # Quotations
    if resource == 'quotations' and count == 1 and method == 'POST':
        return handle_create_quotation(event)

    elif resource == 'quotations' and count == 1 and method == 'GET':
        return handle_get_quotations(event)

    elif resource == 'quotations' and tail == 'summaries' and count == 2 and method == 'GET':
        return handle_get_summaries(event)

    elif resource == 'quotations' and tail == 'next-number' and count == 2 and method == 'GET':
        return handle_next_number(event)

    elif resource == 'quotations' and count == 2 and method == 'GET':
        return handle_get_quotation(event)

    elif resource == 'quotations' and count == 2 and method == 'PUT':
        return handle_update_quotation(event)

    elif resource == 'quotations' and count == 2 and method == 'DELETE':
        return handle_delete_quotation(event)

    elif resource == 'quotations' and count == 3 and sub == 'status' and method == 'PATCH':
        return handle_update_status(event)

    elif resource == 'quotations' and count == 3 and sub == 'export' and method == 'GET':
        return handle_export_quotation(event)

    # Catalog
    elif resource == 'catalog' and count == 1 and method == 'GET':
        return handle_get_products(event)

    elif resource == 'catalog' and count == 1 and method == 'POST':
        return handle_create_product(event)

    elif resource == 'catalog' and tail == 'cost-preview' and count == 2 and method == 'POST':
        return handle_cost_preview(event)

    elif resource == 'catalog' and tail == 'price-updates' and count == 2 and method == 'POST':
        return handle_price_updates(event)

    elif resource == 'catalog' and count == 2 and method == 'GET':
        return handle_get_product(event)

    elif resource == 'catalog' and count == 2 and method == 'PUT':
        return handle_update_product(event)

    elif resource == 'catalog' and count == 2 and method == 'DELETE':
        return handle_delete_product(event)

    elif resource == 'catalog' and count == 3 and sub == 'sales' and method == 'POST':
        return handle_add_sale(event)

    elif resource == 'catalog' and count == 4 and sub == 'sales' and method == 'PUT':
        return handle_update_sale(event)

    elif resource == 'catalog' and count == 4 and sub == 'sales' and method == 'DELETE':
        return handle_delete_sale(event)

    # Configuration
    elif resource == 'configuration' and count == 1 and method == 'GET':
        return handle_get_configuration(event)

    elif resource == 'configuration' and count == 2 and method == 'POST':
        return handle_add_entry(event)

    elif resource == 'configuration' and count == 3 and method == 'PUT':
        return handle_update_entry(event)

    elif resource == 'configuration' and count == 3 and method == 'DELETE':
        return handle_delete_entry(event)

    # Dashboard
    elif resource == 'dashboard' and tail == 'stats' and method == 'GET':
        return handle_get_stats(event)

    elif resource == 'dashboard' and tail == 'monthly' and method == 'GET':
        return handle_get_monthly(event)

    # Exports
    elif resource == 'exports' and tail == 'summaries' and method == 'GET':
        return handle_export_summaries(event)

    elif resource == 'exports' and tail == 'monthly' and method == 'GET':
        return handle_export_monthly(event)

    # Search
    elif resource == 'search' and count == 1 and method == 'GET':
        return handle_global_search(event)

    # Migration
    elif resource == 'migration' and tail == 'status' and method == 'GET':
        return handle_migration_status(event)

    elif resource == 'migration' and tail == 'run' and method == 'POST':
        return handle_run_migration(event)

    else:
        return create_response(404, {
            'error': 'Not found',
            'message': 'Invalid endpoint or method',
            'path': '/' + '/'.join(segments),
            'method': method
        })
