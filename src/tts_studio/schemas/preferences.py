"""User preference and prompt preset schemas."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Gender = Literal["male", "female", "neutral", "unspecified"]
SpeedControl = Literal["auto", "slow", "moderate", "fast"]

MAX_PRESETS = 20


class Preferences(BaseModel):
    """Flat preference mapping saved after each successful synthesis."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    theme: Optional[Literal["light", "dark"]] = None
    last_voice_id: Optional[str] = None
    last_gender: Optional[Gender | Literal["all"]] = None
    last_format: Optional[Literal["wav", "mp3"]] = None
    model: Optional[str] = None
    prompt: Optional[str] = None
    speed_control: Optional[SpeedControl] = None
    max_chars: Optional[int] = Field(default=None, ge=1, le=100_000)
    merge_audio: Optional[bool] = None
    validate_repetition: Optional[bool] = None
    repetition_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class PreferencesUpdate(Preferences):
    """Partial update schema - all fields optional."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class PresetCreatePayload(BaseModel):
    prompt: str = Field(..., min_length=1)


class PresetDeletePayload(BaseModel):
    value: str


class PresetList(BaseModel):
    presets: List[str]
    limit: int = MAX_PRESETS


__all__ = [
    "Gender",
    "MAX_PRESETS",
    "Preferences",
    "PreferencesUpdate",
    "PresetCreatePayload",
    "PresetDeletePayload",
    "PresetList",
    "SpeedControl",
]
