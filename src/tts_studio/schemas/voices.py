"""Catalog of Gemini prebuilt voices and TTS-capable models."""

from typing import Optional

from pydantic import BaseModel

from .preferences import Gender


class Voice(BaseModel):
    id: str
    label: str
    gender: Gender
    description: Optional[str] = None


class ModelOption(BaseModel):
    id: str
    label: str


# Gemini prebuilt voices (voice id is the lowercased voice name)
VOICES = [
    Voice(id="zephyr", label="Zephyr", gender="female", description="Bright"),
    Voice(id="puck", label="Puck", gender="male", description="Upbeat"),
    Voice(id="charon", label="Charon", gender="male", description="Informative"),
    Voice(id="kore", label="Kore", gender="female", description="Firm"),
    Voice(id="fenrir", label="Fenrir", gender="male", description="Excitable"),
    Voice(id="leda", label="Leda", gender="female", description="Youthful"),
    Voice(id="orus", label="Orus", gender="male", description="Firm"),
    Voice(id="aoede", label="Aoede", gender="female", description="Breezy"),
    Voice(id="callirrhoe", label="Callirrhoe", gender="female", description="Easy-going"),
    Voice(id="autonoe", label="Autonoe", gender="male", description="Bright"),
    Voice(id="enceladus", label="Enceladus", gender="male", description="Breathy"),
    Voice(id="iapetus", label="Iapetus", gender="male", description="Clear"),
    Voice(id="umbriel", label="Umbriel", gender="male", description="Easy-going"),
    Voice(id="algieba", label="Algieba", gender="female", description="Smooth"),
    Voice(id="despina", label="Despina", gender="female", description="Smooth"),
    Voice(id="erinome", label="Erinome", gender="female", description="Clear"),
    Voice(id="algenib", label="Algenib", gender="female", description="Gravelly"),
    Voice(id="rasalgethi", label="Rasalgethi", gender="male", description="Informative"),
    Voice(id="laomedeia", label="Laomedeia", gender="female", description="Upbeat"),
    Voice(id="achernar", label="Achernar", gender="male", description="Soft"),
    Voice(id="alnilam", label="Alnilam", gender="male", description="Firm"),
    Voice(id="schedar", label="Schedar", gender="male", description="Even"),
    Voice(id="gacrux", label="Gacrux", gender="male", description="Mature"),
    Voice(id="pulcherrima", label="Pulcherrima", gender="female", description="Forward"),
    Voice(id="achird", label="Achird", gender="male", description="Friendly"),
    Voice(id="zubenelgenubi", label="Zubenelgenubi", gender="male", description="Casual"),
    Voice(id="vindemiatrix", label="Vindemiatrix", gender="female", description="Gentle"),
    Voice(id="sadachbia", label="Sadachbia", gender="male", description="Lively"),
    Voice(id="sadaltager", label="Sadaltager", gender="male", description="Knowledgeable"),
    Voice(id="sulafat", label="Sulafat", gender="female", description="Warm"),
]

MODELS = [
    ModelOption(id="gemini-2.0-flash-exp", label="Gemini 2.0 Flash (Experimental)"),
    ModelOption(
        id="gemini-2.5-flash-preview-tts", label="Gemini 2.5 Flash Preview TTS"
    ),
    ModelOption(id="gemini-2.5-pro-preview-tts", label="Gemini 2.5 Pro Preview TTS"),
]


def filter_voices(gender: Optional[str] = None) -> list[Voice]:
    """Return voices matching ``gender``; ``None`` or ``"all"`` returns every voice."""
    if gender in (None, "", "all"):
        return list(VOICES)
    return [voice for voice in VOICES if voice.gender == gender]


def find_voice(voice_id: str) -> Optional[Voice]:
    for voice in VOICES:
        if voice.id == voice_id:
            return voice
    return None


def resolve_model(model_id: Optional[str], default: str) -> str:
    """Fall back to ``default`` when a saved model id is no longer offered."""
    if model_id and any(option.id == model_id for option in MODELS):
        return model_id
    return default


__all__ = [
    "MODELS",
    "ModelOption",
    "VOICES",
    "Voice",
    "filter_voices",
    "find_voice",
    "resolve_model",
]
