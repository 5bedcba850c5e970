"""Key normalization and strict-finder helpers.

Shared by the cache and the bundled store adapters so that a strict
finder answers identically whether it is served from the snapshot or
from the store.
"""

from collections.abc import Callable
from typing import Any

from enumcache.core.entities.config import PRIMARY_KEY
from enumcache.core.exceptions import NotFoundError


def normalize_key(attribute: str, key: Any) -> Any:
    """Normalize a lookup key for ``attribute``.

    Identifiers are coerced to int because callers often pass them as
    strings (e.g. from URLs). A key that cannot be coerced becomes None,
    which never matches.

    Args:
        attribute: The attribute being looked up.
        key: The raw key.

    Returns:
        The normalized key.
    """
    if attribute != PRIMARY_KEY or key is None or isinstance(key, bool):
        return key
    if isinstance(key, int):
        return key
    try:
        return int(key)
    except (TypeError, ValueError):
        return None


def is_key_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def find_strict(
    lookup: Callable[[Any], Any | None],
    attribute: str,
    keys: Any,
    entity_name: str,
) -> Any:
    """Run a strict finder over a single key or a list of keys.

    None keys in a list are skipped and repeated keys collapse to their
    first occurrence.

    Args:
        lookup: Returns the entity for a normalized key, or None.
        attribute: The attribute the keys refer to.
        keys: A scalar key or a list/tuple of keys.
        entity_name: Entity type name used in error messages.

    Returns:
        The entity for a scalar key; a list of entities in argument order
        for a list of keys (empty for an empty list).

    Raises:
        NotFoundError: On the first missing key, or when no usable key was
            given.
    """
    if not is_key_list(keys):
        if keys is None:
            raise NotFoundError.without_key(entity_name, attribute)
        entity = _lookup(lookup, normalize_key(attribute, keys))
        if entity is None:
            raise NotFoundError.for_key(entity_name, attribute, keys)
        return entity

    if len(keys) == 0:
        return []

    seen: set[Any] = set()
    found: list[Any] = []
    for raw in keys:
        if raw is None:
            continue
        key = normalize_key(attribute, raw)
        marker = key if _is_hashable(key) else id(raw)
        if marker in seen:
            continue
        seen.add(marker)
        entity = _lookup(lookup, key)
        if entity is None:
            raise NotFoundError.for_key(entity_name, attribute, raw)
        found.append(entity)

    if not seen:
        raise NotFoundError.without_key(entity_name, attribute)
    return found


def _lookup(lookup: Callable[[Any], Any | None], key: Any) -> Any | None:
    if key is None:
        return None
    return lookup(key)


def _is_hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True
