"""
Store key generation

Logical keys are flattened into a single Redis key:

    {partition}:{segment}:{id}

The partition is optional and used verbatim. Segment and id are escaped so a
":" inside either one can never make two logical keys share a store key:
"%" becomes "%25" and ":" becomes "%3A". Components that contain neither
character are used unchanged.
"""

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .base import CacheKey

KEY_SEPARATOR = ":"


def escape_key_part(part: str) -> str:
    """Escape the separator (and the escape character itself) inside a key part."""
    return part.replace("%", "%25").replace(KEY_SEPARATOR, "%3A")


def generate_key(key: "CacheKey", partition: Optional[str] = None) -> str:
    """
    Build the store key for a logical key

    Args:
        key: Logical key with ``segment`` and ``id``
        partition: Optional global prefix; ignored when empty

    Returns:
        Store key string
    """
    parts: List[str] = []

    if partition:
        parts.append(partition)

    parts.append(escape_key_part(key.segment))
    parts.append(escape_key_part(key.id))

    return KEY_SEPARATOR.join(parts)
