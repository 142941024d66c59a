from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from ..datalake.storage import IdentificationRecord


class IdentificationResponse(BaseModel):
    record_id: str
    label: str
    file_name: str | None = None
    media_type: str | None = None
    created_at: datetime
    user_id: str
    model: str | None = Field(default=None, description="Model that produced the label")
    api_version: str | None = Field(default=None, description="API version that produced the label")

    @classmethod
    def from_record(cls, record: IdentificationRecord) -> "IdentificationResponse":
        return cls(
            record_id=record.record_id,
            label=record.label,
            file_name=record.file_name,
            media_type=record.media_type,
            created_at=record.created_at,
            user_id=record.user_id,
            model=record.model,
            api_version=record.api_version,
        )


class ModelCandidatesResponse(BaseModel):
    models: List[str] = Field(..., description="Models in the order they are tried")
    api_versions: List[str] = Field(..., description="API versions tried for every model")


class ErrorResponse(BaseModel):
    detail: str


__all__ = [
    "ErrorResponse",
    "IdentificationResponse",
    "ModelCandidatesResponse",
]
