# -*- coding: utf-8 -*-
"""
In-memory datastore.

Used for local runs without a hosted backend and as the fake in tests. Rows
are copied on the way in and out so callers never share mutable state with
the store.
"""
from __future__ import annotations

import copy
import operator
import typing as t
import uuid

from datastore.base import Datastore, DatastoreError, Filter, Order, Row

_COMPARATORS: dict[str, t.Callable[[t.Any, t.Any], bool]] = {
    "lt": operator.lt,
    "lte": operator.le,
    "gt": operator.gt,
    "gte": operator.ge,
}


def _matches(row: Row, flt: Filter) -> bool:
    value = row.get(flt.column)
    if flt.op == "eq":
        return value == flt.value
    if flt.op == "neq":
        return value is not None and value != flt.value
    # Range comparisons behave like SQL: NULL never matches.
    if value is None or flt.value is None:
        return False
    try:
        return _COMPARATORS[flt.op](value, flt.value)
    except TypeError:
        return False


class MemoryDatastore(Datastore):
    def __init__(self, tables: t.Optional[dict[str, list[Row]]] = None) -> None:
        self.tables: dict[str, list[Row]] = {}
        for name, rows in (tables or {}).items():
            self.tables[name] = [self._with_id(row) for row in rows]

    @staticmethod
    def _with_id(row: Row) -> Row:
        row = copy.deepcopy(dict(row))
        if row.get("id") in (None, ""):
            row["id"] = str(uuid.uuid4())
        return row

    def _table(self, name: str) -> list[Row]:
        return self.tables.setdefault(name, [])

    async def select(
        self,
        table: str,
        filters: t.Sequence[Filter] = (),
        order: t.Sequence[Order] = (),
        limit: t.Optional[int] = None,
    ) -> list[Row]:
        rows = [row for row in self._table(table) if all(_matches(row, f) for f in filters)]
        # Apply sort keys last-to-first so the first key wins; None sorts last.
        for key in reversed(order):
            present = [row for row in rows if row.get(key.column) is not None]
            missing = [row for row in rows if row.get(key.column) is None]
            present.sort(key=lambda row: row[key.column], reverse=not key.ascending)
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def insert(self, table: str, rows: t.Sequence[Row]) -> list[Row]:
        target = self._table(table)
        existing = {row["id"] for row in target}
        prepared = [self._with_id(row) for row in rows]
        for row in prepared:
            if row["id"] in existing:
                raise DatastoreError(
                    f'duplicate key value violates unique constraint "{table}_pkey"'
                )
            existing.add(row["id"])
        target.extend(prepared)
        return copy.deepcopy(prepared)

    async def update(self, table: str, filters: t.Sequence[Filter], values: Row) -> list[Row]:
        updated = []
        for row in self._table(table):
            if all(_matches(row, f) for f in filters):
                row.update(copy.deepcopy(values))
                updated.append(row)
        return copy.deepcopy(updated)

    async def delete(self, table: str, filters: t.Sequence[Filter]) -> list[Row]:
        target = self._table(table)
        kept, deleted = [], []
        for row in target:
            (deleted if all(_matches(row, f) for f in filters) else kept).append(row)
        target[:] = kept
        return copy.deepcopy(deleted)

    async def upsert(self, table: str, rows: t.Sequence[Row], on_conflict: str = "id") -> list[Row]:
        target = self._table(table)
        result = []
        for incoming in rows:
            key = incoming.get(on_conflict)
            match = next(
                (row for row in target if key is not None and row.get(on_conflict) == key),
                None,
            )
            if match is not None:
                match.update(copy.deepcopy(dict(incoming)))
                result.append(match)
            else:
                row = self._with_id(incoming)
                target.append(row)
                result.append(row)
        return copy.deepcopy(result)
