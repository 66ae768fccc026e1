"""
Quotation endpoint handlers.
"""

import os
import logging
from typing import Dict, Any

from quotation_manager.api.utils import get_query_params, get_path_parameter, get_request_body, create_response, error_response
from quotation_manager.schemas.validation import (
    validate_create_quotation,
    validate_status_update,
    validate_update_quotation,
)
from quotation_manager.services.quotation_service import (
    create_quotation,
    delete_quotation,
    get_quotation,
    get_quotation_summaries,
    get_quotations,
    preview_quotation_number,
    update_quotation,
    update_quotation_status,
)
from quotation_manager.services.search_service import SUMMARY_SORT_FIELDS, SUMMARY_TEXT_FILTERS, search_summaries, sort_records
from quotation_manager.services.summary_service import get_status, is_monoproducto, oldest_pending
from quotation_manager.shared.error_handling import QuotationNotFoundError, sanitize_error_message

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))


def handle_create_quotation(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle POST /quotations - Create quotation.
    """
    logger.info("[CREATE-QUOTATION] Handling create quotation request")
    try:
        body = get_request_body(event)

        # Validate request
        is_valid, error = validate_create_quotation(body)
        if not is_valid:
            return error_response(400, 'Validation error', error)

        quotation = create_quotation(body)
        logger.info(f"[CREATE-QUOTATION] Created quotation {quotation['quotation_number']}, ID: {quotation['id'][:8]}")
        return create_response(201, quotation)

    except ValueError as e:
        return error_response(400, 'Validation error', str(e))
    except Exception as e:
        logger.error(f"[CREATE-QUOTATION] Error creating quotation: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', sanitize_error_message(e))


def handle_get_quotations(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /quotations - List quotations.

    Query parameters:
    - status: Filter by status (pending / won / lost)
    """
    try:
        params = get_query_params(event)
        status = params.get('status')

        quotations = get_quotations()
        if status:
            quotations = [q for q in quotations if get_status(q) == status]

        logger.info(f"[GET-QUOTATIONS] Listed {len(quotations)} quotations | Status: {status or 'all'}")
        return create_response(200, {
            'quotations': quotations,
            'count': len(quotations)
        })

    except Exception as e:
        logger.error(f"[GET-QUOTATIONS] Error listing quotations: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to list quotations')


def _parse_limit(value: Any) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        raise ValueError("limit must be an integer")
    if limit < 1:
        raise ValueError("limit must be >= 1")
    return limit


def handle_get_summaries(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /quotations/summaries - List view rows.

    Query parameters:
    - status: Filter by status
    - quotation_number, id, client_name, product_name: Case-insensitive
      substring filters on those columns
    - sort: Column to sort by; direction: asc (default) / desc
    - oldest_pending: 'true' to get the oldest pending quotations only
    - limit: Rows for oldest_pending (default 5)
    """
    try:
        params = get_query_params(event)
        summaries = get_quotation_summaries()

        if params.get('oldest_pending', '').lower() == 'true':
            summaries = oldest_pending(summaries, _parse_limit(params.get('limit', 5)))
        else:
            filters = {field: params.get(field) for field in SUMMARY_TEXT_FILTERS}
            summaries = search_summaries(summaries, status=params.get('status'), **filters)
            summaries = sort_records(
                summaries,
                params.get('sort'),
                (params.get('direction') or 'asc').lower(),
                allowed_fields=SUMMARY_SORT_FIELDS,
            )

        return create_response(200, {'summaries': summaries, 'count': len(summaries)})

    except ValueError as e:
        return error_response(400, 'Validation error', str(e))
    except Exception as e:
        logger.error(f"[GET-SUMMARIES] Error listing summaries: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to list summaries')


def handle_next_number(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /quotations/next-number - Preview the next quotation number.

    Query parameters:
    - date: ISO date (default today)
    """
    try:
        params = get_query_params(event)
        number = preview_quotation_number(params.get('date'))
        return create_response(200, {'quotation_number': number})

    except ValueError:
        return error_response(400, 'Validation error', 'date must be an ISO date')
    except Exception as e:
        logger.error(f"[NEXT-NUMBER] Error generating number: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to generate quotation number')


def handle_get_quotation(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /quotations/{quotationId} - Get quotation.
    """
    try:
        quotation_id = get_path_parameter(event, 'quotationId')

        if not quotation_id:
            return error_response(400, 'Missing quotationId')

        quotation = get_quotation(quotation_id)

        if not quotation:
            return error_response(404, 'Quotation not found')

        return create_response(200, {**quotation, 'is_monoproducto': is_monoproducto(quotation)})

    except Exception as e:
        logger.error(f"[GET-QUOTATION] Error getting quotation: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to get quotation')


def handle_update_quotation(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle PUT /quotations/{quotationId} - Update quotation.
    """
    try:
        quotation_id = get_path_parameter(event, 'quotationId')

        if not quotation_id:
            return error_response(400, 'Missing quotationId')

        body = get_request_body(event)

        is_valid, error = validate_update_quotation(body)
        if not is_valid:
            return error_response(400, 'Validation error', error)

        quotation = update_quotation(quotation_id, body)

        if not quotation:
            return error_response(404, 'Quotation not found')

        return create_response(200, quotation)

    except ValueError as e:
        return error_response(400, 'Validation error', str(e))
    except Exception as e:
        logger.error(f"[UPDATE-QUOTATION] Error updating quotation: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to update quotation')


def handle_update_status(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle PATCH /quotations/{quotationId}/status - Close as won or lost.
    """
    try:
        quotation_id = get_path_parameter(event, 'quotationId')

        if not quotation_id:
            return error_response(400, 'Missing quotationId')

        body = get_request_body(event)

        is_valid, error = validate_status_update(body)
        if not is_valid:
            return error_response(400, 'Validation error', error)

        quotation = update_quotation_status(quotation_id, body['status'], body.get('reason'))
        return create_response(200, quotation)

    except QuotationNotFoundError:
        return error_response(404, 'Quotation not found')
    except Exception as e:
        logger.error(f"[UPDATE-STATUS] Error updating status: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to update status')


def handle_delete_quotation(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle DELETE /quotations/{quotationId} - Delete quotation.
    """
    try:
        quotation_id = get_path_parameter(event, 'quotationId')

        if not quotation_id:
            return error_response(400, 'Missing quotationId')

        success = delete_quotation(quotation_id)

        if not success:
            return error_response(404, 'Quotation not found')

        return create_response(200, {'message': 'Quotation deleted successfully'})

    except Exception as e:
        logger.error(f"[DELETE-QUOTATION] Error deleting quotation: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to delete quotation')
