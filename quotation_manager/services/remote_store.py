"""
Remote store backed by DynamoDB, one table per collection.
"""

import os
import logging
from typing import Dict, Any, List, Optional

import boto3

from quotation_manager.shared.error_handling import RemoteStoreError
from quotation_manager.shared.serialization import convert_decimals_to_native, convert_floats_to_decimal

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

LOG_PREFIX = "[REMOTE-STORE]"

TABLE_PREFIX = os.getenv('TABLE_PREFIX', 'inventu-')

COLLECTIONS = (
    'catalog_products',
    'quotations',
    'clients',
    'brands',
    'machine_types',
    'thicknesses',
    'materials',
    'services',
)

_dynamodb = None


def is_remote_enabled() -> bool:
    """Remote persistence is on when REMOTE_STORE_ENABLED is 'true'."""
    return os.getenv('REMOTE_STORE_ENABLED', 'false').lower() == 'true'


def get_dynamodb():
    """Create the DynamoDB resource on first use."""
    global _dynamodb
    if _dynamodb is not None:
        return _dynamodb

    # Configure DynamoDB for local development
    dynamodb_endpoint = os.getenv('DYNAMODB_ENDPOINT')
    aws_profile = os.getenv('AWS_PROFILE', os.getenv('AWS_DEFAULT_PROFILE'))
    region = os.getenv('AWS_REGION', os.getenv('AWS_DEFAULT_REGION', 'us-east-1'))

    if dynamodb_endpoint:
        logger.info(f"Using DynamoDB Local endpoint: {dynamodb_endpoint}")
        _dynamodb = boto3.resource('dynamodb', endpoint_url=dynamodb_endpoint, region_name=region)
    elif aws_profile:
        logger.info(f"Using AWS profile: {aws_profile} in region: {region}")
        session = boto3.Session(profile_name=aws_profile, region_name=region)
        _dynamodb = session.resource('dynamodb')
    else:
        logger.info(f"Using default AWS credentials in region: {region}")
        _dynamodb = boto3.resource('dynamodb', region_name=region)

    return _dynamodb


def set_dynamodb(resource) -> None:
    """Swap the DynamoDB resource (tests, alternate sessions). None resets it."""
    global _dynamodb
    _dynamodb = resource


def get_table(collection: str):
    """Get the DynamoDB table of a collection."""
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection: {collection}")
    return get_dynamodb().Table(f"{TABLE_PREFIX}{collection}")


def scan_all(collection: str) -> List[Dict[str, Any]]:
    """
    Read a whole collection, following pagination.

    Raises:
        RemoteStoreError: if the table cannot be read
    """
    table = get_table(collection)
    items: List[Dict[str, Any]] = []

    try:
        response = table.scan()
        items.extend(response.get('Items', []))
        while 'LastEvaluatedKey' in response:
            response = table.scan(ExclusiveStartKey=response['LastEvaluatedKey'])
            items.extend(response.get('Items', []))
    except Exception as e:
        logger.error(f"{LOG_PREFIX} SCAN | Collection: {collection} | Error: {str(e)}")
        raise RemoteStoreError(f"Failed to read {collection}") from e

    logger.debug(f"{LOG_PREFIX} SCAN | Collection: {collection} | Count: {len(items)}")
    return convert_decimals_to_native(items)


def fetch_collection(collection: str) -> List[Dict[str, Any]]:
    """
    Read a collection for merging with the local cache.

    A disabled store or a failed read gives an empty list; an absent remote
    collection is treated the same as an empty one.
    """
    if not is_remote_enabled():
        return []
    try:
        return scan_all(collection)
    except RemoteStoreError:
        logger.warning(f"{LOG_PREFIX} FETCH | Collection: {collection} | Falling back to local data only")
        return []


def get(collection: str, entity_id: str) -> Optional[Dict[str, Any]]:
    """Get one entity by id, or None."""
    table = get_table(collection)
    try:
        response = table.get_item(Key={'id': entity_id})
    except Exception as e:
        logger.error(f"{LOG_PREFIX} GET | {collection} | ID: {entity_id[:8]}... | Error: {str(e)}")
        raise RemoteStoreError(f"Failed to read {collection}/{entity_id}") from e

    item = response.get('Item')
    if not item:
        logger.debug(f"{LOG_PREFIX} GET | {collection} | ID: {entity_id[:8]}... | Not found")
        return None
    return convert_decimals_to_native(item)


def put(collection: str, entity: Dict[str, Any]) -> Dict[str, Any]:
    """
    Write one entity (full replace).

    Raises:
        RemoteStoreError: if the write fails
    """
    table = get_table(collection)
    entity_id = str(entity.get('id', ''))
    try:
        table.put_item(Item=convert_floats_to_decimal(entity))
    except Exception as e:
        logger.error(f"{LOG_PREFIX} PUT | {collection} | ID: {entity_id[:8]}... | Error: {str(e)}")
        raise RemoteStoreError(f"Failed to write {collection}/{entity_id}") from e

    logger.info(f"{LOG_PREFIX} PUT | {collection} | ID: {entity_id[:8]}...")
    return entity


def put_many(collection: str, entities: List[Dict[str, Any]]) -> int:
    """Batch-write entities; returns how many were written."""
    table = get_table(collection)
    try:
        with table.batch_writer() as batch:
            for entity in entities:
                batch.put_item(Item=convert_floats_to_decimal(entity))
    except Exception as e:
        logger.error(f"{LOG_PREFIX} BATCH-PUT | {collection} | Count: {len(entities)} | Error: {str(e)}")
        raise RemoteStoreError(f"Failed to write {collection}") from e

    logger.info(f"{LOG_PREFIX} BATCH-PUT | {collection} | Count: {len(entities)}")
    return len(entities)


def delete(collection: str, entity_id: str) -> bool:
    """Delete one entity by id."""
    table = get_table(collection)
    try:
        table.delete_item(Key={'id': entity_id})
    except Exception as e:
        logger.error(f"{LOG_PREFIX} DELETE | {collection} | ID: {entity_id[:8]}... | Error: {str(e)}")
        raise RemoteStoreError(f"Failed to delete {collection}/{entity_id}") from e

    logger.info(f"{LOG_PREFIX} DELETE | {collection} | ID: {entity_id[:8]}...")
    return True


def put_if_enabled(collection: str, entity: Dict[str, Any]) -> bool:
    """
    Best-effort remote write used next to the authoritative local write.

    Returns True when the entity reached the remote store.
    """
    if not is_remote_enabled():
        return False
    try:
        put(collection, entity)
        return True
    except RemoteStoreError:
        logger.warning(f"{LOG_PREFIX} PUT | {collection} | Kept locally only")
        return False


def delete_if_enabled(collection: str, entity_id: str) -> bool:
    """Best-effort remote delete; True when the remote delete succeeded."""
    if not is_remote_enabled():
        return False
    try:
        return delete(collection, entity_id)
    except RemoteStoreError:
        logger.warning(f"{LOG_PREFIX} DELETE | {collection} | Remote copy may remain")
        return False
