"""
Idempotent inserts and connect/disconnect for many-to-many tables.

``connect`` inserts a pair and silently ignores it if already present;
``disconnect`` deletes it and is a no-op when it is absent.
``insert_missing`` does the same for a batch of rows keyed by a unique
column (the tag catalogue).  All of them run as single statements so
concurrent writers on the same rows cannot leave duplicates or raise.
"""
from typing import Any, Sequence

from sqlalchemy import Table, and_, delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _insert(db: AsyncSession, table: Table):
    return _INSERT_BY_DIALECT[db.get_bind().dialect.name](table)


async def insert_missing(
    db: AsyncSession,
    table: Table,
    rows: Sequence[dict[str, Any]],
    index_elements: Sequence[str] | None = None,
) -> None:
    """Insert *rows* in order, skipping any that collide with an existing row."""
    if not rows:
        return
    stmt = _insert(db, table).values(list(rows)).on_conflict_do_nothing(index_elements=index_elements)
    await db.execute(stmt)


async def connect(db: AsyncSession, table: Table, **values: Any) -> None:
    await insert_missing(db, table, [values])


async def disconnect(db: AsyncSession, table: Table, **values: Any) -> None:
    await db.execute(
        delete(table).where(and_(*(table.c[name] == value for name, value in values.items())))
    )
