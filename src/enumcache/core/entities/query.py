"""Query descriptor value objects.

A QueryDescriptor is a store-independent description of a query against
one enumeration table: filter predicates, ordering, limiting, projection,
joins and locking, plus the result shape the caller expects. It is what
the classifier inspects and what store adapters execute.

Example:
    descriptor = (
        QueryDescriptor()
        .where(name="active")
        .order_by("name")
        .first()
    )
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

_ORDER_TERM = re.compile(r"^\s*(\w+)(?:\s+(asc|desc))?\s*$", re.IGNORECASE)


class Operator(Enum):
    """Comparison operator of a filter predicate.

    Only EQ can be answered from a cached snapshot; every other operator
    is opaque to the cache.
    """

    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    LIKE = "LIKE"
    RAW = "RAW"


class Fetch(Enum):
    """Result shape expected by the caller.

    ALL: a list of entities.
    FIRST: the first matching entity, or None.
    FIND: strict finder; a scalar key yields one entity, a list of keys
        yields a list in argument order, and any missing key raises
        NotFoundError.
    """

    ALL = "all"
    FIRST = "first"
    FIND = "find"


@dataclass(frozen=True)
class Predicate:
    """A single filter predicate.

    An EQ predicate whose value is a list or tuple means membership
    (``attribute IN values``). A RAW predicate carries a store-native
    expression in ``value`` with its bind ``params``.
    """

    attribute: str | None
    operator: Operator
    value: Any = None
    params: tuple[Any, ...] = ()

    @property
    def is_equality(self) -> bool:
        """Check if this is an equality (or membership) predicate."""
        return self.operator is Operator.EQ and self.attribute is not None

    @property
    def is_membership(self) -> bool:
        """Check if this is an equality predicate over a list of values."""
        return self.is_equality and isinstance(self.value, (list, tuple))

    @classmethod
    def eq(cls, attribute: str, value: Any) -> "Predicate":
        if isinstance(value, list):
            value = tuple(value)
        return cls(attribute, Operator.EQ, value)

    @classmethod
    def raw(cls, expression: str, *params: Any) -> "Predicate":
        """Create an opaque, store-native predicate."""
        return cls(None, Operator.RAW, expression, tuple(params))

    def __str__(self) -> str:
        if self.operator is Operator.RAW:
            return f"({self.value})"
        if self.is_membership:
            return f"{self.attribute} IN {list(self.value)!r}"
        return f"{self.attribute} {self.operator.value} {self.value!r}"


@dataclass(frozen=True)
class OrderTerm:
    """One ordering term."""

    attribute: str
    descending: bool = False

    def __str__(self) -> str:
        return f"{self.attribute} DESC" if self.descending else self.attribute


def parse_order(order: "str | OrderTerm | Sequence[str | OrderTerm]") -> tuple[OrderTerm, ...]:
    """Parse an order clause into order terms.

    Accepts ``"name"``, ``"name desc, id"``, an OrderTerm, or a sequence of
    either.

    Args:
        order: The order clause.

    Returns:
        A tuple of OrderTerm.

    Raises:
        ValueError: If a term cannot be parsed.
    """
    if isinstance(order, (str, OrderTerm)):
        order = [order]

    terms: list[OrderTerm] = []
    for item in order:
        if isinstance(item, OrderTerm):
            terms.append(item)
            continue
        for part in item.split(","):
            match = _ORDER_TERM.match(part)
            if match is None:
                raise ValueError(f"cannot parse order term {part!r}")
            direction = (match.group(2) or "asc").lower()
            terms.append(OrderTerm(match.group(1), descending=direction == "desc"))
    return tuple(terms)


@dataclass(frozen=True)
class QueryDescriptor:
    """Immutable description of a query against an enumeration table.

    Builder methods return new descriptors; a descriptor is never mutated.
    """

    predicates: tuple[Predicate, ...] = ()
    order: tuple[OrderTerm, ...] = ()
    limit: int | None = None
    offset: int | None = None
    select: tuple[str, ...] | None = None
    joins: tuple[str, ...] = ()
    includes: tuple[str, ...] = ()
    lock: bool = False
    fetch: Fetch = Fetch.ALL

    @property
    def has_projection(self) -> bool:
        return self.select is not None

    @property
    def has_joins(self) -> bool:
        return bool(self.joins or self.includes)

    def where(self, **conditions: Any) -> "QueryDescriptor":
        """Add equality predicates, one per keyword argument."""
        added = tuple(Predicate.eq(k, v) for k, v in conditions.items())
        return replace(self, predicates=self.predicates + added)

    def filter(self, *predicates: Predicate) -> "QueryDescriptor":
        """Add arbitrary predicates."""
        return replace(self, predicates=self.predicates + tuple(predicates))

    def order_by(self, *terms: str | OrderTerm) -> "QueryDescriptor":
        """Replace the ordering."""
        return replace(self, order=parse_order(terms))

    def limit_to(self, limit: int | None) -> "QueryDescriptor":
        return replace(self, limit=limit)

    def offset_by(self, offset: int | None) -> "QueryDescriptor":
        return replace(self, offset=offset)

    def project(self, *attributes: str) -> "QueryDescriptor":
        """Restrict the returned attributes."""
        return replace(self, select=tuple(attributes))

    def join(self, *clauses: str) -> "QueryDescriptor":
        return replace(self, joins=self.joins + tuple(clauses))

    def include(self, *associations: str) -> "QueryDescriptor":
        return replace(self, includes=self.includes + tuple(associations))

    def for_update(self, lock: bool = True) -> "QueryDescriptor":
        return replace(self, lock=lock)

    def first(self) -> "QueryDescriptor":
        """Expect the first matching entity (or None)."""
        return replace(self, fetch=Fetch.FIRST)

    def all(self) -> "QueryDescriptor":
        return replace(self, fetch=Fetch.ALL)

    def find(self, ids: Any, attribute: str = "id") -> "QueryDescriptor":
        """Turn this descriptor into a strict finder on ``attribute``.

        Args:
            ids: A single key, or a list/tuple of keys.
            attribute: The attribute the keys refer to.

        Returns:
            A new descriptor with Fetch.FIND semantics.
        """
        return replace(
            self,
            predicates=self.predicates + (Predicate.eq(attribute, ids),),
            fetch=Fetch.FIND,
        )

    def describe(self) -> str:
        """Return a compact, human-readable rendering for logs."""
        parts = [self.fetch.value]
        if self.select is not None:
            parts.append(f"select {', '.join(self.select)}")
        if self.predicates:
            parts.append("where " + " AND ".join(str(p) for p in self.predicates))
        if self.joins:
            parts.append("join " + ", ".join(self.joins))
        if self.includes:
            parts.append("include " + ", ".join(self.includes))
        if self.order:
            parts.append("order by " + ", ".join(str(t) for t in self.order))
        if self.limit is not None:
            parts.append(f"limit {self.limit}")
        if self.offset is not None:
            parts.append(f"offset {self.offset}")
        if self.lock:
            parts.append("for update")
        return " ".join(parts)
