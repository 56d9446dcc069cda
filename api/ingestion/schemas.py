"""
Pydantic schemas for ingestion endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from anime.repository import MAX_ANIME_ID


class IngestRunRequest(BaseModel):
    start_id: int = Field(..., ge=1, le=MAX_ANIME_ID)
    end_id: int = Field(..., ge=1, le=MAX_ANIME_ID)
    # Return immediately and let the run finish after the response.
    background: bool = False

    @model_validator(mode="after")
    def _check_range(self) -> IngestRunRequest:
        if self.end_id < self.start_id:
            raise ValueError("end_id must be >= start_id")
        return self
