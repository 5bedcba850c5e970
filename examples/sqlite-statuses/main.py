"""Enumeration cache in front of a SQLite status table.

Run with:
    pip install -e ".[sqlite]"
    python examples/sqlite-statuses/main.py
"""

import asyncio
import logging

import aiosqlite

from enumcache import (
    QueryDescriptor,
    cache_enumeration,
    get_enumeration_cache,
)
from enumcache.infrastructure.stores.sqlite import SqliteStoreAdapter


class Status:
    """Order status enumeration."""


async def init_db(db: aiosqlite.Connection) -> None:
    """Create the status table with sample data."""
    await db.execute("""
        CREATE TABLE statuses (
            id INTEGER PRIMARY KEY,
            code TEXT NOT NULL,
            name TEXT NOT NULL
        )
    """)
    await db.executemany(
        "INSERT INTO statuses (id, code, name) VALUES (?, ?, ?)",
        [
            (1, "draft", "Draft"),
            (2, "active", "Active"),
            (3, "archived", "Archived"),
        ],
    )
    await db.commit()


async def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    async with aiosqlite.connect(":memory:") as db:
        await init_db(db)

        cache_enumeration(
            Status,
            SqliteStoreAdapter(db, "statuses"),
            order="name",
            hashed=["id", "code"],
            constantize="code",
        )
        statuses = get_enumeration_cache(Status)

        print([s.name for s in await statuses.get_all()])
        print(await statuses.get_by("code", "active"))
        print(await statuses.find_by_ids(["3", 1]))
        print(await statuses.resolve("DRAFT"))

        # Answered from the snapshot
        await statuses.lookup(QueryDescriptor().where(code="archived").first())
        # Forwarded to SQLite
        await statuses.lookup(QueryDescriptor().order_by("id desc").limit_to(2))

        print(statuses.stats)


if __name__ == "__main__":
    asyncio.run(main())
