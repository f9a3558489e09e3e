"""
Cache key construction for entity lists and entity items.
"""

from typing import Union

LIST_SUFFIX = "list"


def list_key(entity_type: str) -> str:
    """Key for the cached list of every ``entity_type`` row."""
    return f"{entity_type}:{LIST_SUFFIX}"


def item_key(entity_type: str, entity_id: Union[int, str]) -> str:
    """Key for a single cached ``entity_type`` row."""
    entity_id = str(entity_id)
    if entity_id == LIST_SUFFIX:
        raise ValueError(f"'{LIST_SUFFIX}' is reserved and cannot be used as an entity id")
    return f"{entity_type}:{entity_id}"
