"""
Query surface of the external datastore.

The dashboard never talks to a storage engine directly; it only needs filtered
reads, inserts, updates, deletes and upserts over named record collections.
Concrete stores implement :class:`Datastore`.
"""
from __future__ import annotations

import abc
import typing as t
from dataclasses import dataclass

Row = dict[str, t.Any]

OPERATORS = ("eq", "neq", "lt", "lte", "gt", "gte")


class DatastoreError(RuntimeError):
    """Any failure reported by, or while talking to, the datastore."""


class RecordNotFound(DatastoreError):
    def __init__(self, table: str, record_id: t.Any) -> None:
        super().__init__(f"No {table} record with id {record_id}")
        self.table = table
        self.record_id = record_id


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: t.Any

    def __post_init__(self) -> None:
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True


def eq(column: str, value: t.Any) -> Filter:
    return Filter(column, "eq", value)


def neq(column: str, value: t.Any) -> Filter:
    return Filter(column, "neq", value)


def lt(column: str, value: t.Any) -> Filter:
    return Filter(column, "lt", value)


def lte(column: str, value: t.Any) -> Filter:
    return Filter(column, "lte", value)


def gt(column: str, value: t.Any) -> Filter:
    return Filter(column, "gt", value)


def gte(column: str, value: t.Any) -> Filter:
    return Filter(column, "gte", value)


class Datastore(abc.ABC):
    """Asynchronous record store keyed by table name."""

    @abc.abstractmethod
    async def select(
        self,
        table: str,
        filters: t.Sequence[Filter] = (),
        order: t.Sequence[Order] = (),
        limit: t.Optional[int] = None,
    ) -> list[Row]:
        ...

    @abc.abstractmethod
    async def insert(self, table: str, rows: t.Sequence[Row]) -> list[Row]:
        ...

    @abc.abstractmethod
    async def update(self, table: str, filters: t.Sequence[Filter], values: Row) -> list[Row]:
        """Apply ``values`` to every matching row; returns the updated rows."""

    @abc.abstractmethod
    async def delete(self, table: str, filters: t.Sequence[Filter]) -> list[Row]:
        """Delete every matching row; returns the deleted rows."""

    @abc.abstractmethod
    async def upsert(self, table: str, rows: t.Sequence[Row], on_conflict: str = "id") -> list[Row]:
        ...

    async def get_by_id(self, table: str, record_id: t.Any) -> Row:
        rows = await self.select(table, [eq("id", record_id)], limit=1)
        if not rows:
            raise RecordNotFound(table, record_id)
        return rows[0]

    async def update_by_id(self, table: str, record_id: t.Any, values: Row) -> Row:
        rows = await self.update(table, [eq("id", record_id)], values)
        if not rows:
            raise RecordNotFound(table, record_id)
        return rows[0]

    async def delete_by_id(self, table: str, record_id: t.Any) -> Row:
        rows = await self.delete(table, [eq("id", record_id)])
        if not rows:
            raise RecordNotFound(table, record_id)
        return rows[0]

    async def aclose(self) -> None:
        """Release network resources, if any."""
