"""In-memory store adapter implementation."""

import functools
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from enumcache.core.entities.query import (
    Fetch,
    Operator,
    OrderTerm,
    Predicate,
    QueryDescriptor,
)
from enumcache.core.entities.record import Record
from enumcache.core.exceptions import UnsupportedQueryError
from enumcache.utils.lookup import find_strict


class InMemoryStoreAdapter:
    """Store adapter over a list of rows held in memory.

    Executes query descriptors with SQL-like semantics (NULL never
    compares equal, LIKE with ``%`` and ``_`` wildcards). Suitable for
    tests, fixtures and small static tables. Joins, includes and raw
    predicates are not supported.
    """

    def __init__(
        self,
        rows: Iterable[Mapping[str, Any]] = (),
        entity_name: str = "entity",
    ) -> None:
        """Initialize the in-memory store.

        Args:
            rows: Table rows as mappings; each needs an ``id``.
            entity_name: Entity type name used in error messages.
        """
        self._rows: list[dict[str, Any]] = [dict(row) for row in rows]
        self._entity_name = entity_name

        # Call counters
        self.calls: dict[str, int] = {
            "execute_ordered_query": 0,
            "execute_query": 0,
        }

    def insert(self, **row: Any) -> None:
        """Add a row; cached snapshots are not affected."""
        self._rows.append(dict(row))

    def reset_calls(self) -> None:
        for name in self.calls:
            self.calls[name] = 0

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    async def execute_ordered_query(
        self,
        order: Sequence[OrderTerm],
    ) -> list[Record]:
        """Fetch every row sorted by ``order``.

        Args:
            order: Order terms.

        Returns:
            All rows as records.
        """
        self.calls["execute_ordered_query"] += 1
        return [Record(row) for row in _sorted(self._rows, order)]

    async def execute_query(self, descriptor: QueryDescriptor) -> Any:
        """Execute a query descriptor.

        Args:
            descriptor: The query to run.

        Returns:
            The result shaped by ``descriptor.fetch``.

        Raises:
            UnsupportedQueryError: For joins, includes or raw predicates.
            NotFoundError: For strict finders with a missing key.
        """
        self.calls["execute_query"] += 1

        if descriptor.has_joins:
            raise UnsupportedQueryError("in-memory store cannot execute joins or includes")

        if descriptor.fetch is Fetch.FIND:
            return self._find(descriptor)

        rows = [
            row for row in self._rows
            if all(_matches(row, p) for p in descriptor.predicates)
        ]
        rows = _sorted(rows, descriptor.order)

        start = descriptor.offset or 0
        if descriptor.fetch is Fetch.FIRST:
            end = start + 1
        elif descriptor.limit is not None:
            end = start + descriptor.limit
        else:
            end = None
        records = [_project(row, descriptor.select) for row in rows[start:end]]

        if descriptor.fetch is Fetch.FIRST:
            return records[0] if records else None
        return records

    def _find(self, descriptor: QueryDescriptor) -> Any:
        finders = [p for p in descriptor.predicates if p.is_equality]
        attribute = finders[-1].attribute if finders else None
        if attribute is None:
            raise UnsupportedQueryError("strict finder needs an equality predicate")
        finder = finders[-1]
        others = [p for p in descriptor.predicates if p is not finder]

        def lookup(key: Any) -> Record | None:
            for row in self._rows:
                if row.get(attribute) == key and all(
                    _matches(row, p) for p in others
                ):
                    return _project(row, descriptor.select)
            return None

        return find_strict(lookup, attribute, finder.value, self._entity_name)


def _matches(row: Mapping[str, Any], predicate: Predicate) -> bool:
    if predicate.operator is Operator.RAW or predicate.attribute is None:
        raise UnsupportedQueryError("in-memory store cannot evaluate raw predicates")

    value = row.get(predicate.attribute)
    if value is None:
        return False

    expected = predicate.value
    op = predicate.operator
    if op is Operator.EQ:
        if predicate.is_membership:
            return value in expected
        return expected is not None and value == expected
    if expected is None:
        return False
    if op is Operator.NE:
        return bool(value != expected)
    if op is Operator.LT:
        return bool(value < expected)
    if op is Operator.LE:
        return bool(value <= expected)
    if op is Operator.GT:
        return bool(value > expected)
    if op is Operator.GE:
        return bool(value >= expected)
    if op is Operator.LIKE:
        return _like(str(value), str(expected))
    raise UnsupportedQueryError(f"unsupported operator {op!r}")


def _sorted(
    rows: Iterable[Mapping[str, Any]],
    order: Sequence[OrderTerm],
) -> list[Mapping[str, Any]]:
    # NULLs sort first ascending, like SQLite.
    def compare(a: Mapping[str, Any], b: Mapping[str, Any]) -> int:
        for term in order:
            left, right = a.get(term.attribute), b.get(term.attribute)
            if left == right:
                continue
            if left is None:
                result = -1
            elif right is None:
                result = 1
            else:
                result = -1 if left < right else 1
            return -result if term.descending else result
        return 0

    return sorted(rows, key=functools.cmp_to_key(compare))


def _project(row: Mapping[str, Any], select: tuple[str, ...] | None) -> Record:
    if select is None:
        return Record(row)
    return Record({name: row.get(name) for name in select})


def _like(value: str, pattern: str) -> bool:
    regex = "".join(
        ".*" if ch == "%" else "." if ch == "_" else re.escape(ch)
        for ch in pattern
    )
    return re.fullmatch(regex, value, re.IGNORECASE | re.DOTALL) is not None
