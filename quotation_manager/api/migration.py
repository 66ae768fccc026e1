"""
Local-to-remote migration endpoint handlers.
"""

import os
import logging
from typing import Dict, Any

from quotation_manager.api.utils import create_response, error_response
from quotation_manager.services.migration_service import has_pending_local_data, migrate_local_to_remote
from quotation_manager.services.remote_store import is_remote_enabled
from quotation_manager.shared.error_handling import RemoteStoreError, sanitize_error_message

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))


def handle_migration_status(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle GET /migration/status.
    """
    try:
        return create_response(200, {
            'pending': has_pending_local_data(),
            'remote_enabled': is_remote_enabled()
        })

    except Exception as e:
        logger.error(f"[MIGRATION] Error reading status: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Failed to read migration status')


def handle_run_migration(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle POST /migration/run - Push local data to the remote store.
    """
    try:
        report = migrate_local_to_remote()
        return create_response(200, {'migrated': report})

    except RemoteStoreError as e:
        logger.error(f"[MIGRATION] Remote store failure: {str(e)}")
        return error_response(503, 'Service unavailable', sanitize_error_message(e))
    except Exception as e:
        logger.error(f"[MIGRATION] Error migrating: {str(e)}", exc_info=True)
        return error_response(500, 'Internal server error', 'Migration failed')
