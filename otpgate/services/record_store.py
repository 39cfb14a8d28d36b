"""
Abstract interface for the record store the verification flow reads from.

AirtableClient satisfies it; tests substitute an in-memory fake.  The
pipeline depends only on this protocol, never on a concrete backend.
"""

from __future__ import annotations

from typing import Protocol

from otpgate.services.airtable.api_models import AirtableRecord


class RecordStore(Protocol):
    """Filtered single-record lookup."""

    async def find_one(
        self,
        table: str,
        formula: str,
        sort_field: str | None = None,
        sort_direction: str = "desc",
    ) -> AirtableRecord | None:
        """
        Return the first record matching *formula* (after sorting by
        *sort_field* if given), or None.  Raises RecordStoreError on any
        store or transport failure.
        """
        ...

    async def close(self) -> None:
        ...
