"""Request/response schemas for the synthesis API."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .history import HistoryItem
from .preferences import Gender, SpeedControl


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SynthesisRequest(_CamelModel):
    """Parameters for one synthesis run. Unset values fall back to preferences."""

    text: str
    prompt: Optional[str] = None
    speed_control: Optional[SpeedControl] = None
    voice_id: Optional[str] = None
    gender_filter: Optional[Gender | Literal["all"]] = None
    model: Optional[str] = None
    max_chars: Optional[int] = Field(default=None, ge=1, le=100_000)
    merge_audio: Optional[bool] = None
    validate_repetition: Optional[bool] = None
    repetition_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class ValidationReport(_CamelModel):
    """Result of the optional post-synthesis repetition check."""

    has_repetition: bool
    repetition_score: float
    transcribed_text: Optional[str] = None
    repeated_phrases: Optional[List[str]] = None


class AssetPayload(_CamelModel):
    file_name: str
    format: Literal["wav", "mp3"]
    media_type: str
    size_bytes: int
    audio_base64: str


class Notice(_CamelModel):
    """Transient, dismissible message for the client to display."""

    type: Literal["info", "error", "success"]
    message: str


class SynthesisResponse(_CamelModel):
    """Either a single asset with its history entry, or separate parts."""

    chunks: int
    asset: Optional[AssetPayload] = None
    parts: Optional[List[AssetPayload]] = None
    history_item: Optional[HistoryItem] = None
    validation: Optional[ValidationReport] = None
    notices: List[Notice] = Field(default_factory=list)


__all__ = [
    "AssetPayload",
    "Notice",
    "SynthesisRequest",
    "SynthesisResponse",
    "ValidationReport",
]
