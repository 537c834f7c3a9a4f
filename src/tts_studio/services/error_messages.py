"""Map upstream Gemini error text to guidance a user can act on."""

from __future__ import annotations

_KNOWN_ERRORS: tuple[tuple[str, str], ...] = (
    (
        "API keys are not supported",
        "Cloud TTS models require an OAuth token; an API key cannot be used. "
        "Sign in with Google and try again.",
    ),
    (
        "aiplatform.endpoints.predict",
        "Insufficient permission: enable the Vertex AI API in your Google Cloud "
        "Console first.",
    ),
    (
        "UNAUTHENTICATED",
        "The access token has expired or is invalid. Sign in with Google again.",
    ),
    (
        "API_KEY_INVALID",
        "The Gemini API key was rejected. Check the key and try again.",
    ),
    (
        "RESOURCE_EXHAUSTED",
        "The Gemini quota has been used up. Wait a moment or switch models.",
    ),
)


def translate_upstream_error(message: str) -> str:
    """Return friendly guidance for known failures, else the raw message."""

    for needle, guidance in _KNOWN_ERRORS:
        if needle in message:
            return guidance
    return message


__all__ = ["translate_upstream_error"]
