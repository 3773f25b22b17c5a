"""Pydantic schemas for the API and the enrichment reply."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes with camelCase keys, accepts snake_case or camelCase on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TranscriptionRecordRead(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    filename: str
    original_name: str
    name: str | None = None
    description: str | None = None
    text: str
    formatted_text: str | None = None
    created_at: datetime


class TranscribeResponse(CamelModel):
    """POST /transcriptions response."""

    text: str = Field(..., description="Raw transcript")
    formatted_text: str = Field(..., description="Markdown transcript, raw transcript on fallback")
    record: TranscriptionRecordRead


class HistoryMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int


class HistoryResponse(CamelModel):
    """GET /transcriptions response."""

    data: list[TranscriptionRecordRead]
    meta: HistoryMeta


class DeleteResponse(CamelModel):
    success: bool = True


class EnrichmentPayload(CamelModel):
    """
    JSON object the enrichment capability is asked to reply with.
    Untrusted input: validated field by field, unknown keys ignored.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    formatted_text: str | None = None
    generated_title: str | None = None
    generated_description: str | None = None
