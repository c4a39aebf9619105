"""
Datastore backed by a hosted PostgREST API (Supabase).

Translates the Datastore query surface into PostgREST HTTP calls made with an
``httpx.AsyncClient``. Every request carries the service key and is bounded
by a timeout; failures are re-raised as DatastoreError with the server's
message so they can be shown to the user.
"""
from __future__ import annotations

import logging
import typing as t

import httpx

from datastore.base import Datastore, DatastoreError, Filter, Order, Row

logger = logging.getLogger(__name__)

# Timeout settings for CRUD operations (in seconds)
STANDARD_TIMEOUT = 30.0

RETURN_ROWS = "return=representation"
MERGE_DUPLICATES = "resolution=merge-duplicates"


def _encode_value(value: t.Any) -> str:
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)


def _filter_params(filters: t.Sequence[Filter]) -> list[tuple[str, str]]:
    params = []
    for flt in filters:
        if flt.value is None and flt.op in ("eq", "neq"):
            params.append((flt.column, "is.null" if flt.op == "eq" else "not.is.null"))
        else:
            params.append((flt.column, f"{flt.op}.{_encode_value(flt.value)}"))
    return params


def _order_param(order: t.Sequence[Order]) -> str:
    return ",".join(
        f"{key.column}.{'asc' if key.ascending else 'desc'}.nullslast" for key in order
    )


class RestDatastore(Datastore):
    """PostgREST client.

    :param base_url: Project URL, e.g. ``https://xyz.supabase.co``.
    :param api_key: Service role key, sent as ``apikey`` and bearer token.
    :param timeout: Per-request timeout in seconds.
    :param transport: Optional httpx transport (used in tests).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = STANDARD_TIMEOUT,
        transport: t.Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        table: str,
        params: t.Optional[list[tuple[str, str]]] = None,
        json: t.Any = None,
        prefer: t.Optional[str] = None,
    ) -> list[Row]:
        headers = {"Prefer": prefer} if prefer else None
        try:
            response = await self._client.request(
                method, f"/{table}", params=params, json=json, headers=headers
            )
            response.raise_for_status()
        except httpx.TimeoutException:
            raise DatastoreError(f"Datastore request to '{table}' timed out after {self.timeout} seconds")
        except httpx.HTTPStatusError as e:
            raise DatastoreError(_error_message(e.response)) from e
        except httpx.HTTPError as e:
            raise DatastoreError(f"Error calling datastore: {e}") from e

        if not response.content:
            return []
        data = response.json()
        return data if isinstance(data, list) else [data]

    async def select(
        self,
        table: str,
        filters: t.Sequence[Filter] = (),
        order: t.Sequence[Order] = (),
        limit: t.Optional[int] = None,
    ) -> list[Row]:
        params = [("select", "*"), *_filter_params(filters)]
        if order:
            params.append(("order", _order_param(order)))
        if limit is not None:
            params.append(("limit", str(limit)))
        return await self._request("GET", table, params=params)

    async def insert(self, table: str, rows: t.Sequence[Row]) -> list[Row]:
        if not rows:
            return []
        return await self._request("POST", table, json=list(rows), prefer=RETURN_ROWS)

    async def update(self, table: str, filters: t.Sequence[Filter], values: Row) -> list[Row]:
        return await self._request(
            "PATCH", table, params=_filter_params(filters), json=values, prefer=RETURN_ROWS
        )

    async def delete(self, table: str, filters: t.Sequence[Filter]) -> list[Row]:
        return await self._request(
            "DELETE", table, params=_filter_params(filters), prefer=RETURN_ROWS
        )

    async def upsert(self, table: str, rows: t.Sequence[Row], on_conflict: str = "id") -> list[Row]:
        if not rows:
            return []
        return await self._request(
            "POST",
            table,
            params=[("on_conflict", on_conflict)],
            json=list(rows),
            prefer=f"{MERGE_DUPLICATES},{RETURN_ROWS}",
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    logger.debug("Datastore error body: %s", response.text)
    return f"Datastore returned HTTP {response.status_code}"
