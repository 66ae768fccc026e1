"""
Reconciliation of a remote collection with the local cache.

Remote entities go in first and local entities overwrite them on the same id,
so a local edit is never discarded. There is no timestamp comparison: the
local copy wins even when the remote one is newer.
"""

import logging
import os
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))


def merge_by_id_local_wins(
    remote_entities: Optional[Iterable[Dict[str, Any]]],
    local_entities: Optional[Iterable[Dict[str, Any]]]
) -> List[Dict[str, Any]]:
    """
    Merge two collections keyed by ``id``.

    Args:
        remote_entities: Entities from the remote store (None = empty)
        local_entities: Entities from the local cache (None = empty)

    Returns:
        Merged list in remote order, followed by local-only entities in local order
    """
    merged: Dict[Any, Dict[str, Any]] = {}

    for entity in remote_entities or []:
        merged[entity.get("id")] = entity

    overridden = 0
    for entity in local_entities or []:
        if entity.get("id") in merged:
            overridden += 1
        merged[entity.get("id")] = entity

    if overridden:
        logger.debug(f"[MERGE] {overridden} remote entities replaced by local copies")

    return list(merged.values())
