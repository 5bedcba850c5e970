"""Immutable multi-index snapshot of an enumeration table."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from enumcache.core.entities.record import freeze_entity, get_attribute
from enumcache.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CacheStatus(Enum):
    """Population state of a cache store."""

    UNCACHED = "uncached"
    CACHING = "caching"
    CACHED = "cached"


@dataclass(frozen=True)
class Snapshot:
    """Ordered entities plus one equality index per hashed attribute.

    Built in one go by ``Snapshot.build`` and published as a unit, so no
    partially built index is ever visible.

    Attributes:
        entities: Entities in the configured order.
        indices: attribute -> (value -> entity), read-only views.
        unique: Hashed attributes whose non-null values were all distinct.
        key_types: attribute -> types of its indexed values.
    """

    entities: tuple[Any, ...] = ()
    indices: Mapping[str, Mapping[Any, Any]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    unique: frozenset[str] = frozenset()
    key_types: Mapping[str, frozenset[type]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(
        cls,
        rows: Iterable[Any],
        hashed: Iterable[str],
        entity_name: str = "entity",
    ) -> "Snapshot":
        """Freeze fetched rows and index them.

        Later entities overwrite earlier ones on duplicate index values.
        Null values are not indexed.

        Args:
            rows: Entities in snapshot order.
            hashed: Attributes to index.
            entity_name: Entity type name used in messages.

        Returns:
            The new snapshot.

        Raises:
            ConfigurationError: If a hashed attribute is missing from an
                entity or holds an unhashable value.
        """
        entities = tuple(freeze_entity(row) for row in rows)
        attributes = tuple(hashed)

        indices: dict[str, dict[Any, Any]] = {att: {} for att in attributes}
        duplicated: set[str] = set()
        types: dict[str, set[type]] = {att: set() for att in attributes}

        for entity in entities:
            for att in attributes:
                try:
                    value = get_attribute(entity, att)
                except AttributeError as e:
                    raise ConfigurationError(
                        f"{entity_name} has no hashed attribute {att!r}"
                    ) from e
                if value is None:
                    continue
                index = indices[att]
                try:
                    if value in index:
                        if att not in duplicated:
                            logger.warning(
                                "Duplicate value %r for hashed attribute %s.%s; "
                                "later entity wins",
                                value,
                                entity_name,
                                att,
                            )
                        duplicated.add(att)
                    index[value] = entity
                    types[att].add(type(value))
                except TypeError as e:
                    raise ConfigurationError(
                        f"{entity_name}.{att} holds unhashable value {value!r}"
                    ) from e

        return cls(
            entities=entities,
            indices=MappingProxyType(
                {att: MappingProxyType(index) for att, index in indices.items()}
            ),
            unique=frozenset(a for a in attributes if a not in duplicated),
            key_types=MappingProxyType(
                {att: frozenset(kinds) for att, kinds in types.items()}
            ),
        )

    def lookup(self, attribute: str, key: Any) -> Any | None:
        """Return the entity indexed under ``key``, or None."""
        try:
            return self.indices[attribute].get(key)
        except TypeError:
            return None

    @property
    def first(self) -> Any | None:
        return self.entities[0] if self.entities else None

    def __len__(self) -> int:
        return len(self.entities)
