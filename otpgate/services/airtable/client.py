"""
Low-level HTTP client for the Airtable REST API.

Exposes a single read primitive, ``find_one``: filter a table with a
formula, optionally sort by one field, and return the first record.
Every failure (non-2xx status, timeout, connection error, unexpected body)
surfaces as ``RecordStoreError``; callers don't interpret store error codes.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from otpgate.errors import RecordStoreError
from otpgate.services.airtable.api_models import AirtableRecord, ListRecordsResponse
from otpgate.services.airtable.config import DEFAULT_HEADERS, MAX_ERROR_BODY, SORT_DIRECTIONS

logger = logging.getLogger(__name__)


class AirtableClient:
    """Async Airtable client bound to one base."""

    def __init__(
        self,
        api_key: str,
        base_id: str,
        *,
        api_base: str = "https://api.airtable.com/v0",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = f"{api_base.rstrip('/')}/{base_id}"
        self._client = httpx.AsyncClient(
            headers={**DEFAULT_HEADERS, "Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    def _table_url(self, table: str) -> str:
        return f"{self._base_url}/{quote(table, safe='')}"

    # ── GET /{table}?filterByFormula=… ────────────────────────────────

    async def find_one(
        self,
        table: str,
        formula: str,
        sort_field: str | None = None,
        sort_direction: str = "desc",
    ) -> AirtableRecord | None:
        """
        Return the first record of *table* matching *formula*, or None.

        With *sort_field* the records are ordered by that field first
        (``desc`` by default); otherwise Airtable's default order applies.
        """
        params: dict[str, str] = {"filterByFormula": formula, "pageSize": "1"}
        if sort_field:
            if sort_direction not in SORT_DIRECTIONS:
                raise ValueError(f"sort_direction must be one of {SORT_DIRECTIONS}")
            params["sort[0][field]"] = sort_field
            params["sort[0][direction]"] = sort_direction

        logger.debug("Airtable lookup: table=%s sort=%s", table, sort_field)
        try:
            resp = await self._client.get(self._table_url(table), params=params)
        except httpx.TimeoutException as exc:
            raise RecordStoreError(f"Airtable request timed out ({table})") from exc
        except httpx.HTTPError as exc:
            raise RecordStoreError(f"Airtable request failed ({table}): {exc}") from exc

        if resp.is_error:
            logger.error(
                "Airtable error %d on %s: %s",
                resp.status_code,
                table,
                resp.text[:MAX_ERROR_BODY],
            )
            raise RecordStoreError(
                f"Airtable error {resp.status_code}", status_code=resp.status_code
            )

        try:
            data = ListRecordsResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise RecordStoreError(f"Unexpected Airtable response ({table})") from exc

        return data.records[0] if data.records else None
