"""
Context Merger

Deep merge of a partial update document into the current context document.

Rules:
- Both values are mappings: merge recursively, key by key
- Anything else (arrays included): the update replaces the current value
- Keys only in the current document are kept, keys only in the update are added

Domain-specific list handling (transaction cap, set unions) lives in
hearth.context.rules and is applied before the update reaches the merger.
"""

from collections.abc import Mapping
from copy import deepcopy
from typing import Any


def deep_merge(current: Mapping[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``update`` into ``current`` and return a new document.

    Neither input is mutated; values taken from either side are deep-copied,
    so the result shares no mutable state with the inputs.

    Args:
        current: The existing document
        update: A partial document

    Returns:
        The merged document
    """
    return _merge_into(deepcopy(dict(current)), update)


def _merge_into(target: dict[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    """Merge in place; ``target`` is already a private copy."""
    for key, value in update.items():
        existing = target.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            target[key] = _merge_into(dict(existing), value)
        else:
            target[key] = deepcopy(value)
    return target


def touches(update: Mapping[str, Any], *path: str) -> bool:
    """Check whether an update document sets the given key path.

    Example:
        touches({"finance": {"totalBalance": 10}}, "finance", "totalBalance")  # True
    """
    node: Any = update
    for key in path:
        if not isinstance(node, Mapping) or key not in node:
            return False
        node = node[key]
    return True
