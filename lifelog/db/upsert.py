"""
INSERT … ON CONFLICT for the two dialects the app runs on.

Postgres in production, SQLite in tests. Both enforce the unique constraint
the conflict target names, which is what the idempotency guarantees of
reminder_shown and period_summaries rest on.
"""
from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert(
    db: Session,
    model: Any,
    values: dict[str, Any],
    conflict_keys: Iterable[str],
    update_keys: Iterable[str] | None = None,
) -> None:
    """
    Insert `values` into `model`'s table.

    On conflict with `conflict_keys`:
      - update_keys given  → update those columns in place
      - update_keys None   → keep the existing row untouched

    Flushes through the session's connection; the caller commits.
    """
    dialect = db.get_bind().dialect.name
    try:
        insert = _DIALECT_INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"upsert is not supported on dialect {dialect!r}")

    stmt = insert(model).values(**values)
    conflict_keys = list(conflict_keys)
    if update_keys:
        stmt = stmt.on_conflict_do_update(
            index_elements=conflict_keys,
            set_={key: stmt.excluded[key] for key in update_keys},
        )
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=conflict_keys)
    db.execute(stmt)
