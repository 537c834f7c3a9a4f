"""Schemas for persisted synthesis history."""

from __future__ import annotations

import time
import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return uuid.uuid4().hex


class HistoryRecord(BaseModel):
    """One past synthesis result, stored with its audio as base64."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=_new_id, min_length=1)
    file_name: str = Field(..., min_length=1)
    created_at: int = Field(default_factory=_now_ms)
    prompt: Optional[str] = None
    text: Optional[str] = None
    format: Literal["wav", "mp3"] = "wav"
    voice_id: Optional[str] = None
    voice_label: Optional[str] = None
    audio_base64: str = Field(..., min_length=1)

    @field_validator("format", mode="before")
    @classmethod
    def _default_format(cls, value: object) -> object:
        return "wav" if value is None else value

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class HistoryItem(BaseModel):
    """History entry as listed to clients, without the audio payload."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    file_name: str
    created_at: int
    prompt: Optional[str] = None
    text: Optional[str] = None
    format: Literal["wav", "mp3"] = "wav"
    voice_id: Optional[str] = None
    voice_label: Optional[str] = None
    size_bytes: int = 0

    @classmethod
    def from_record(cls, record: HistoryRecord, size_bytes: int) -> "HistoryItem":
        data = record.model_dump(exclude={"audio_base64"})
        return cls(**data, size_bytes=size_bytes)


class HistoryPage(BaseModel):
    """Newest-first page of history entries."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: List[HistoryItem]
    page: int
    total_pages: int
    total_items: int


class HistoryImportResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    imported: int
    stored: int


__all__ = [
    "HistoryImportResult",
    "HistoryItem",
    "HistoryPage",
    "HistoryRecord",
]
