"""SQLite store adapter implementation.

Requires the ``sqlite`` extra (aiosqlite).
"""

import logging
import re
from collections.abc import Sequence
from typing import Any

import aiosqlite
from cachetools import LRUCache  # type: ignore[import-untyped]

from enumcache.core.entities.query import (
    Fetch,
    Operator,
    OrderTerm,
    Predicate,
    QueryDescriptor,
)
from enumcache.core.entities.record import Record
from enumcache.core.exceptions import UnsupportedQueryError
from enumcache.utils.lookup import find_strict, is_key_list, normalize_key

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def quote_identifier(name: str) -> str:
    """Quote a table or column name after validating it.

    Raises:
        UnsupportedQueryError: If the name is not a plain identifier.
    """
    if not _IDENTIFIER.match(name):
        raise UnsupportedQueryError(f"invalid SQL identifier {name!r}")
    return f'"{name}"'


class SqliteStoreAdapter:
    """Store adapter executing query descriptors against a SQLite table.

    Descriptors are compiled to parameterized SQL. Compiled statements
    depend only on the query shape, so they are memoized per shape in an
    LRU cache. Raw predicates and join clauses are passed through to
    SQLite; includes are not supported and the lock flag is ignored
    (SQLite has no row-level locks).
    """

    def __init__(
        self,
        connection: aiosqlite.Connection,
        table: str,
        entity_name: str | None = None,
        statement_cache_size: int = 128,
    ) -> None:
        """Initialize the SQLite store adapter.

        Args:
            connection: An open aiosqlite connection.
            table: Table holding the enumeration.
            entity_name: Entity type name used in error messages.
            statement_cache_size: Maximum number of compiled statements kept.
        """
        self._connection = connection
        self._table = quote_identifier(table)
        self._entity_name = entity_name or table
        self._statements: LRUCache[tuple[Any, ...], str] = LRUCache(
            maxsize=statement_cache_size,
        )

    @property
    def statement_cache_size(self) -> int:
        """Return the number of compiled statements currently cached."""
        return len(self._statements)

    async def execute_ordered_query(
        self,
        order: Sequence[OrderTerm],
    ) -> list[Record]:
        """Fetch every row sorted by ``order``."""
        return await self._fetch(QueryDescriptor(order=tuple(order)))

    async def execute_query(self, descriptor: QueryDescriptor) -> Any:
        """Execute a query descriptor.

        Args:
            descriptor: The query to run.

        Returns:
            The result shaped by ``descriptor.fetch``.

        Raises:
            UnsupportedQueryError: For includes or invalid identifiers.
            NotFoundError: For strict finders with a missing key.
            aiosqlite errors are propagated unchanged.
        """
        if descriptor.includes:
            raise UnsupportedQueryError("SQLite store cannot eager-load includes")

        if descriptor.fetch is Fetch.FIND:
            return await self._find(descriptor)

        rows = await self._fetch(descriptor)
        if descriptor.fetch is Fetch.FIRST:
            return rows[0] if rows else None
        return rows

    async def _find(self, descriptor: QueryDescriptor) -> Any:
        finders = [p for p in descriptor.predicates if p.is_equality]
        attribute = finders[-1].attribute if finders else None
        if attribute is None:
            raise UnsupportedQueryError("strict finder needs an equality predicate")
        finder = finders[-1]

        keys = finder.value
        if is_key_list(keys):
            wanted = tuple(
                k for k in (normalize_key(attribute, key) for key in keys)
                if k is not None
            )
        else:
            key = normalize_key(attribute, keys)
            wanted = (key,) if key is not None else ()

        found: dict[Any, Record] = {}
        if wanted:
            others = tuple(p for p in descriptor.predicates if p is not finder)
            query = QueryDescriptor(
                predicates=others + (Predicate.eq(attribute, wanted),),
                select=descriptor.select,
                joins=descriptor.joins,
            )
            if descriptor.select is not None and attribute not in descriptor.select:
                query = query.project(*descriptor.select, attribute)
            for row in await self._fetch(query):
                found.setdefault(row[attribute], row)

        def lookup(key: Any) -> Record | None:
            row = found.get(key)
            if row is None or descriptor.select is None:
                return row
            return Record({name: row[name] for name in descriptor.select})

        return find_strict(lookup, attribute, keys, self._entity_name)

    async def _fetch(self, descriptor: QueryDescriptor) -> list[Record]:
        sql, params = self.compile(descriptor)
        logger.debug("SQL: %s %r", sql, params)
        async with self._connection.execute(sql, params) as cursor:
            columns = [c[0] for c in cursor.description]
            rows = await cursor.fetchall()
        return [Record(dict(zip(columns, row))) for row in rows]

    def compile(self, descriptor: QueryDescriptor) -> tuple[str, list[Any]]:
        """Compile a descriptor to SQL text and bind parameters.

        Args:
            descriptor: The query to compile.

        Returns:
            A (sql, params) tuple.
        """
        shape = _shape(descriptor)
        sql = self._statements.get(shape)
        if sql is None:
            sql = self._render(descriptor)
            self._statements[shape] = sql
        return sql, _params(descriptor)

    def _render(self, descriptor: QueryDescriptor) -> str:
        if descriptor.select is not None:
            columns = ", ".join(self._column(c) for c in descriptor.select)
        else:
            columns = f"{self._table}.*" if descriptor.joins else "*"

        parts = [f"SELECT {columns} FROM {self._table}"]
        parts.extend(descriptor.joins)

        if descriptor.predicates:
            parts.append(
                "WHERE " + " AND ".join(_render_predicate(p, self._table) for p in descriptor.predicates)
            )
        if descriptor.order:
            parts.append(
                "ORDER BY " + ", ".join(
                    self._column(t.attribute) + (" DESC" if t.descending else "")
                    for t in descriptor.order
                )
            )

        limit = 1 if descriptor.fetch is Fetch.FIRST else descriptor.limit
        if limit is not None:
            parts.append("LIMIT ?")
        if descriptor.offset is not None:
            if limit is None:
                parts.append("LIMIT -1")
            parts.append("OFFSET ?")
        return " ".join(parts)

    def _column(self, name: str) -> str:
        return f"{self._table}.{quote_identifier(name)}"


def _render_predicate(predicate: Predicate, table: str) -> str:
    if predicate.operator is Operator.RAW:
        return f"({predicate.value})"

    if predicate.attribute is None:
        raise UnsupportedQueryError(f"predicate {predicate} has no attribute")
    column = f"{table}.{quote_identifier(predicate.attribute)}"
    if predicate.is_membership:
        if not predicate.value:
            return "0 = 1"
        marks = ", ".join("?" for _ in predicate.value)
        return f"{column} IN ({marks})"
    return f"{column} {predicate.operator.value} ?"


def _shape(descriptor: QueryDescriptor) -> tuple[Any, ...]:
    predicates = tuple(
        (
            p.attribute,
            p.operator,
            p.value if p.operator is Operator.RAW else None,
            len(p.value) if p.is_membership else None,
        )
        for p in descriptor.predicates
    )
    limit = 1 if descriptor.fetch is Fetch.FIRST else descriptor.limit
    return (
        predicates,
        descriptor.order,
        limit is not None,
        descriptor.offset is not None,
        descriptor.select,
        descriptor.joins,
    )


def _params(descriptor: QueryDescriptor) -> list[Any]:
    params: list[Any] = []
    for p in descriptor.predicates:
        if p.operator is Operator.RAW:
            params.extend(p.params)
        elif p.is_membership:
            params.extend(p.value)
        else:
            params.append(p.value)

    limit = 1 if descriptor.fetch is Fetch.FIRST else descriptor.limit
    if limit is not None:
        params.append(limit)
    if descriptor.offset is not None:
        params.append(descriptor.offset)
    return params
