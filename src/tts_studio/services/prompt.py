"""Compose the text sent to the synthesizer from prompt, pace and input."""

from typing import Optional

SPEED_INSTRUCTIONS = {
    "auto": "",
    "slow": "Speak slowly with consistent pace and clear enunciation.",
    "moderate": "Read at steady moderate pace with even tempo and clear pronunciation.",
    "fast": "Speak at brisk but clear pace with consistent speed.",
}


def normalise_prompt(prompt: Optional[str]) -> str:
    """Trim the prompt and drop a single trailing colon."""
    trimmed = (prompt or "").strip()
    if not trimmed:
        return ""
    return trimmed[:-1] if trimmed.endswith(":") else trimmed


def build_instruction(prompt: Optional[str], speed_control: Optional[str]) -> str:
    parts = [SPEED_INSTRUCTIONS.get(speed_control or "auto", ""), normalise_prompt(prompt)]
    return " ".join(part for part in parts if part)


def compose_text(
    text: str,
    prompt: Optional[str] = None,
    speed_control: Optional[str] = None,
) -> str:
    """Prefix ``text`` with ``"<instruction>: "`` when an instruction is set."""
    instruction = build_instruction(prompt, speed_control)
    combined = f"{instruction}: {text}" if instruction else text
    return combined.strip()


__all__ = [
    "SPEED_INSTRUCTIONS",
    "build_instruction",
    "compose_text",
    "normalise_prompt",
]
