"""Query shape classifier.

Decides whether a query descriptor can be answered from a cached
snapshot with exactly the result the store would give. Falling back to
the store is always safe; answering a shape whose observable semantics
differ from the store's is never acceptable, so anything ambiguous is a
MISS.

Decision order (first match wins):
    1. Projection, joins/includes, locking, an offset, any non-equality
       predicate, or more than one predicate -> MISS.
    2. Strict finder over an empty key list -> HIT (empty result), even
       when not cached.
    3. Not cached -> MISS.
    4. No predicate, no limit, order empty or equal to the snapshot
       order -> HIT (all entities).
    5. No predicate, limit 1 or first(), same order rule -> HIT (first
       entity).
    6. One equality predicate on a hashed attribute, no order, limit
       absent or 1 -> HIT (index lookup), subject to the uniqueness and key
       type rules in ``_classify_lookup``.
    7. Otherwise -> MISS.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from enumcache.core.entities.query import Fetch, QueryDescriptor
from enumcache.core.entities.snapshot import CacheStatus
from enumcache.core.services.cache_store import CacheCapabilities


class Decision(Enum):
    HIT = "hit"
    MISS = "miss"


class Plan(Enum):
    """How a HIT is answered from the cache."""

    ALL = "all"
    FIRST = "first"
    BY_KEY = "by_key"
    BY_KEYS = "by_keys"
    EMPTY = "empty"


class MissReason(Enum):
    NOT_CACHED = "not cached"
    PROJECTION = "projection"
    JOINS = "joins or includes"
    LOCK = "locking"
    OFFSET = "offset"
    OPAQUE_FILTER = "non-equality filter"
    COMPOUND_FILTER = "more than one filter"
    ORDER = "order differs from snapshot order"
    LIMIT = "unsupported limit"
    NOT_HASHED = "attribute is not hashed"
    NOT_UNIQUE = "attribute values are not unique"
    KEY_SHAPE = "unsupported key shape"
    KEY_TYPE = "key type differs from indexed values"


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying a query descriptor."""

    decision: Decision
    plan: Plan | None = None
    attribute: str | None = None
    key: Any = None
    reason: MissReason | None = None

    @property
    def is_hit(self) -> bool:
        return self.decision is Decision.HIT

    @classmethod
    def hit(cls, plan: Plan, attribute: str | None = None, key: Any = None) -> "Classification":
        return cls(Decision.HIT, plan=plan, attribute=attribute, key=key)

    @classmethod
    def miss(cls, reason: MissReason) -> "Classification":
        return cls(Decision.MISS, reason=reason)

    def __str__(self) -> str:
        if self.plan is not None:
            target = f" {self.attribute}" if self.attribute else ""
            return f"HIT({self.plan.value}{target})"
        if self.reason is not None:
            return f"MISS({self.reason.value})"
        return self.decision.name


class QueryShapeClassifier:
    """Stateless HIT/MISS decision for query descriptors."""

    def classify(
        self,
        descriptor: QueryDescriptor,
        capabilities: CacheCapabilities,
    ) -> Classification:
        """Classify a descriptor against the current cache capabilities.

        Args:
            descriptor: The incoming query.
            capabilities: What the cache store can currently answer.

        Returns:
            The classification.
        """
        unsupported = self._unsupported_shape(descriptor)
        if unsupported is not None:
            return Classification.miss(unsupported)

        if self._is_empty_find(descriptor):
            predicate = descriptor.predicates[0]
            return Classification.hit(Plan.EMPTY, attribute=predicate.attribute, key=())

        if capabilities.status is not CacheStatus.CACHED:
            return Classification.miss(MissReason.NOT_CACHED)

        if not descriptor.predicates:
            return self._classify_scan(descriptor, capabilities)
        return self._classify_lookup(descriptor, capabilities)

    def is_cacheable(
        self,
        descriptor: QueryDescriptor,
        capabilities: CacheCapabilities,
    ) -> bool:
        """Check whether the descriptor would HIT once the cache is populated.

        Assumes every hashed attribute turns out unique; the real
        classification after population remains authoritative.
        """
        populated = CacheCapabilities(
            status=CacheStatus.CACHED,
            order=capabilities.order,
            hashed=capabilities.hashed,
            unique=capabilities.hashed,
        )
        return self.classify(descriptor, populated).is_hit

    def _unsupported_shape(self, descriptor: QueryDescriptor) -> MissReason | None:
        if descriptor.has_projection:
            return MissReason.PROJECTION
        if descriptor.has_joins:
            return MissReason.JOINS
        if descriptor.lock:
            return MissReason.LOCK
        if descriptor.offset is not None:
            return MissReason.OFFSET
        if any(not p.is_equality for p in descriptor.predicates):
            return MissReason.OPAQUE_FILTER
        if len(descriptor.predicates) > 1:
            return MissReason.COMPOUND_FILTER
        return None

    def _is_empty_find(self, descriptor: QueryDescriptor) -> bool:
        if descriptor.fetch is not Fetch.FIND or len(descriptor.predicates) != 1:
            return False
        predicate = descriptor.predicates[0]
        return predicate.is_membership and len(predicate.value) == 0

    def _classify_scan(
        self,
        descriptor: QueryDescriptor,
        capabilities: CacheCapabilities,
    ) -> Classification:
        if descriptor.order and descriptor.order != capabilities.order:
            return Classification.miss(MissReason.ORDER)

        if descriptor.fetch is Fetch.FIND:
            # A finder without keys is the store's error to raise.
            return Classification.miss(MissReason.KEY_SHAPE)

        if descriptor.limit is None:
            plan = Plan.FIRST if descriptor.fetch is Fetch.FIRST else Plan.ALL
            return Classification.hit(plan)
        if descriptor.limit == 1:
            return Classification.hit(Plan.FIRST)
        return Classification.miss(MissReason.LIMIT)

    def _classify_lookup(
        self,
        descriptor: QueryDescriptor,
        capabilities: CacheCapabilities,
    ) -> Classification:
        predicate = descriptor.predicates[0]
        attribute = predicate.attribute
        if attribute is None or attribute not in capabilities.hashed:
            return Classification.miss(MissReason.NOT_HASHED)
        if descriptor.order:
            return Classification.miss(MissReason.ORDER)
        if descriptor.limit not in (None, 1):
            return Classification.miss(MissReason.LIMIT)

        if descriptor.fetch is Fetch.FIND:
            plan = Plan.BY_KEYS if predicate.is_membership else Plan.BY_KEY
            return Classification.hit(plan, attribute=attribute, key=predicate.value)

        # Where-style lookups return every matching row, so the index can
        # only answer them when it holds one entity per value.
        if predicate.is_membership or predicate.value is None:
            return Classification.miss(MissReason.KEY_SHAPE)
        if not _is_hashable(predicate.value):
            return Classification.miss(MissReason.KEY_SHAPE)
        if attribute not in capabilities.unique:
            return Classification.miss(MissReason.NOT_UNIQUE)
        # The store may coerce a key of another type (e.g. "2" for an
        # integer column) where the index would not.
        key_types = capabilities.key_types.get(attribute)
        if key_types is not None and type(predicate.value) not in key_types:
            return Classification.miss(MissReason.KEY_TYPE)
        return Classification.hit(Plan.BY_KEY, attribute=attribute, key=predicate.value)


def _is_hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True
