"""
Pydantic models that mirror the Airtable "list records" response shape.

Only the parts the verification flow reads are modelled; unknown keys are
ignored.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


# ── GET /v0/{baseId}/{table} ──────────────────────────────────────────────

class AirtableRecord(BaseModel):
    id: str
    createdTime: str | None = None  # ISO 8601, e.g. "2024-05-01T10:00:00.000Z"
    fields: dict[str, Any] = Field(default_factory=dict)

    def field(self, name: str) -> Any:
        return self.fields.get(name)

    def created_at(self) -> datetime | None:
        """``createdTime`` as an aware UTC datetime, or None if absent/unparseable."""
        if not self.createdTime:
            return None
        try:
            parsed = datetime.fromisoformat(self.createdTime)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed


class ListRecordsResponse(BaseModel):
    records: list[AirtableRecord] = Field(default_factory=list)
    offset: str | None = None
