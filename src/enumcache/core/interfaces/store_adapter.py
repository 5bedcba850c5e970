"""Store adapter interface."""

from collections.abc import Sequence
from typing import Any, Protocol

from enumcache.core.entities.query import OrderTerm, QueryDescriptor


class IStoreAdapter(Protocol):
    """Contract for the real data store behind an enumeration cache.

    The store is the single source of truth. The cache makes no
    assumption about its cost, consistency or staleness, and never masks
    the errors it raises.
    """

    async def execute_ordered_query(
        self,
        order: Sequence[OrderTerm],
    ) -> Sequence[Any]:
        """Fetch every entity of the table, sorted by ``order``.

        Used only to populate the cache.

        Args:
            order: Order terms of the snapshot.

        Returns:
            All entities in order.
        """
        ...

    async def execute_query(self, descriptor: QueryDescriptor) -> Any:
        """Execute an arbitrary query descriptor.

        The result shape follows ``descriptor.fetch``:

        - Fetch.ALL: a list of entities.
        - Fetch.FIRST: the first entity, or None.
        - Fetch.FIND: for a scalar key, the entity; for a list of keys,
          entities in argument order (None keys dropped, duplicates
          collapsed). Raises NotFoundError when any key is missing.

        Args:
            descriptor: The query to run.

        Returns:
            The query result.
        """
        ...
