"""
Configuration endpoint handlers.
"""

import os
import logging
from typing import Dict, Any

from quotation_manager.api.utils import get_path_parameter, get_request_body, create_response, error_response
from quotation_manager.schemas.validation import validate_config_entry
from quotation_manager.services.config_service import (
    CONFIG_COLLECTIONS,
    add_config_entry,
    delete_config_entry,
    get_config_entry,
    get_configuration,
    update_config_entry,
)

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))


def _collection_or_error(event: Dict[str, Any]):
    collection = get_path_parameter(event, 'collection')
    if collection not in CONFIG_COLLECTIONS:
        return None, create_response(404, {
            'error': 'Unknown configuration collection',
            'collections': list(CONFIG_COLLECTIONS)
        })
    return collection, None


def handle_get_configuration(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /configuration - All configuration collections.
    """
    try:
        return create_response(200, get_configuration())

    except Exception as e:
        logger.error(f"[GET-CONFIG] Error loading configuration: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to load configuration')


def handle_add_entry(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle POST /configuration/{collection} - Add an entry.
    """
    try:
        collection, collection_error = _collection_or_error(event)
        if collection_error:
            return collection_error

        body = get_request_body(event)
        is_valid, error = validate_config_entry(collection, body)
        if not is_valid:
            return error_response(400, 'Validation error', error)

        entry = add_config_entry(collection, body)
        return create_response(201, entry)

    except Exception as e:
        logger.error(f"[ADD-CONFIG] Error adding entry: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to add entry')


def handle_update_entry(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle PUT /configuration/{collection}/{entryId} - Update an entry.
    """
    try:
        collection, collection_error = _collection_or_error(event)
        if collection_error:
            return collection_error

        entry_id = get_path_parameter(event, 'entryId')
        if not entry_id:
            return error_response(400, 'Missing entryId')

        existing = get_config_entry(collection, entry_id)
        if not existing:
            return error_response(404, 'Entry not found')

        body = get_request_body(event)
        is_valid, error = validate_config_entry(collection, {**existing, **body})
        if not is_valid:
            return error_response(400, 'Validation error', error)

        entry = update_config_entry(collection, entry_id, body)
        if not entry:
            return error_response(404, 'Entry not found')

        return create_response(200, entry)

    except Exception as e:
        logger.error(f"[UPDATE-CONFIG] Error updating entry: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to update entry')


def handle_delete_entry(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle DELETE /configuration/{collection}/{entryId} - Delete an entry.
    """
    try:
        collection, collection_error = _collection_or_error(event)
        if collection_error:
            return collection_error

        entry_id = get_path_parameter(event, 'entryId')
        if not entry_id:
            return error_response(400, 'Missing entryId')

        if not delete_config_entry(collection, entry_id):
            return error_response(404, 'Entry not found')

        return create_response(200, {'message': 'Entry deleted successfully'})

    except Exception as e:
        logger.error(f"[DELETE-CONFIG] Error deleting entry: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to delete entry')
