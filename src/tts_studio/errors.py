"""Exception types raised across the text-to-speech pipeline."""

from __future__ import annotations

from .services.error_messages import translate_upstream_error


class TTSStudioError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 400

    @property
    def user_message(self) -> str:
        return str(self)


class EmptyInputError(TTSStudioError):
    """No text to synthesize, or nothing left after chunking."""

    def __init__(self, message: str = "Please enter some text to synthesize."):
        super().__init__(message)


class MissingCredentialError(TTSStudioError):
    """No Gemini API key is configured."""

    status_code = 401

    def __init__(self, message: str = "Please configure a Gemini API key."):
        super().__init__(message)


class UpstreamError(Exception):
    """Transport or API failure reported by an external capability."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SynthesisError(TTSStudioError):
    """A chunk failed to synthesize; the whole batch is aborted."""

    status_code = 502

    def __init__(
        self,
        chunk_index: int,
        total_chunks: int,
        upstream_message: str,
    ):
        super().__init__(
            f"Chunk {chunk_index}/{total_chunks} failed: {upstream_message}"
        )
        self.chunk_index = chunk_index
        self.total_chunks = total_chunks
        self.upstream_message = upstream_message

    @property
    def user_message(self) -> str:
        return translate_upstream_error(self.upstream_message)


class StorageCapacityError(Exception):
    """The durable slot store cannot hold the value being written."""

    def __init__(self, key: str, required: int, capacity: int):
        super().__init__(
            f"Storing {key!r} needs {required} bytes but capacity is {capacity}"
        )
        self.key = key
        self.required = required
        self.capacity = capacity


class DecodeError(ValueError):
    """Malformed base64 or audio container bytes."""


class PresetError(TTSStudioError):
    """A prompt preset could not be added or the preset list saved."""


__all__ = [
    "DecodeError",
    "EmptyInputError",
    "MissingCredentialError",
    "PresetError",
    "StorageCapacityError",
    "SynthesisError",
    "TTSStudioError",
    "UpstreamError",
]
