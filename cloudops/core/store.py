"""Row store client for the PostgREST interface.

All persistent state lives in tables exposed at ``<base_url>/rest/v1/<table>``.
The pipeline only needs three verbs:

- select rows by column equality (``?col=eq.value&select=*``)
- insert one or more rows, optionally returning the inserted representation
- patch rows matched by column equality

Non-2xx replies raise ``StoreResponseError`` with the store's raw body text;
transport failures raise ``StoreConnectionError``. Nothing is retried.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx
from fastapi import HTTPException, status

from cloudops.core.config import get_settings

logger = logging.getLogger(__name__)

REST_PREFIX = "/rest/v1"

Row = dict[str, Any]


class StoreError(Exception):
    """Base error for row store failures."""

    def __init__(self, message: str, table: str | None = None):
        super().__init__(message)
        self.message = message
        self.table = table


class StoreResponseError(StoreError):
    """The store answered with a non-success status code."""

    def __init__(self, message: str, table: str | None = None, status_code: int | None = None):
        super().__init__(message, table)
        self.status_code = status_code


class StoreConnectionError(StoreError):
    """The store could not be reached."""


def build_filters(filters: dict[str, Any] | None) -> dict[str, str]:
    """Translate ``{"col": value}`` into PostgREST ``{"col": "eq.value"}`` params."""
    params: dict[str, str] = {}
    for column, value in (filters or {}).items():
        if isinstance(value, bool):
            value = str(value).lower()
        params[column] = f"eq.{value}"
    return params


class RowStore:
    """Async client for the generic select/insert/patch REST convention."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _url(self, table: str) -> str:
        return f"{self.base_url}{REST_PREFIX}/{table}"

    async def _send(
        self,
        method: str,
        table: str,
        action: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                self._url(table),
                params=params,
                json=json,
                headers=self._headers(prefer),
            )
        except httpx.HTTPError as e:
            logger.error(f"Row store unreachable during {action} on {table}: {e}")
            raise StoreConnectionError(f"Failed to {action} {table}: {e}", table=table) from e

        if response.is_error:
            logger.warning(
                f"Row store rejected {action} on {table} "
                f"(HTTP {response.status_code}): {response.text}"
            )
            raise StoreResponseError(
                f"Failed to {action} {table}: {response.text}",
                table=table,
                status_code=response.status_code,
            )
        return response

    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[Row]:
        """Select all columns of rows matching every equality filter."""
        params = build_filters(filters)
        params["select"] = "*"
        if limit is not None:
            params["limit"] = str(limit)

        response = await self._send("GET", table, "fetch", params=params)
        rows = response.json()
        return rows if isinstance(rows, list) else []

    async def insert(
        self,
        table: str,
        rows: Row | list[Row],
        returning: bool = True,
    ) -> list[Row]:
        """Insert one or many rows in a single request.

        Args:
            table: Target table name
            rows: A single row or a list of rows
            returning: Ask the store to echo the inserted rows

        Returns:
            The inserted rows when ``returning`` is set, otherwise an empty list
        """
        prefer = "return=representation" if returning else "return=minimal"
        response = await self._send("POST", table, "insert into", json=rows, prefer=prefer)
        if not returning:
            return []

        inserted = response.json() if response.content else []
        return inserted if isinstance(inserted, list) else [inserted]

    async def patch(self, table: str, filters: dict[str, Any], values: Row) -> None:
        """Update rows matching every equality filter; no body is returned."""
        await self._send(
            "PATCH",
            table,
            "update",
            params=build_filters(filters),
            json=values,
            prefer="return=minimal",
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this store created it."""
        if self._owns_client:
            await self._client.aclose()


async def get_store() -> AsyncIterator[RowStore]:
    """FastAPI dependency yielding a request-scoped row store."""
    settings = get_settings()
    if not settings.is_store_configured:
        logger.error("SUPABASE_URL or store key missing; cannot reach the row store")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfigured",
        )

    store = RowStore(
        settings.supabase_url,
        settings.store_key,
        timeout=settings.store_timeout_seconds,
    )
    try:
        yield store
    finally:
        await store.aclose()
