"""
Pydantic schemas for the anime catalog.

`AnimeRecord` is the canonical record: what the normalizer produces, what the
repository stores and returns, and what the read API serializes. Field
aliases are the JSON names the front-end consumes (`mal_id`, `aired.from`).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AiredInterval(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_: datetime | None = Field(default=None, alias="from")
    to: datetime | None = None


class AnimeRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int = Field(..., alias="mal_id")
    url: str | None = None
    title: str
    image: str | None = None
    episodes: int | None = None
    aired: AiredInterval = Field(default_factory=AiredInterval)
    synopsis: str | None = None
    # Server-assigned; None until the record has been persisted.
    updated_at: datetime | None = None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
