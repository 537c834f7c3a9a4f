"""WAV container helpers for raw PCM audio returned by the synthesis API."""

from __future__ import annotations

import base64
import struct
from dataclasses import dataclass
from typing import Iterable, Literal, Tuple

from ...errors import DecodeError

AudioFormatTag = Literal["wav", "mp3"]

WAV_HEADER_SIZE = 44

# RIFF chunk id, RIFF size, WAVE, fmt chunk id, fmt size, audio format,
# channels, sample rate, byte rate, block align, bits per sample,
# data chunk id, data size
_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")

_MEDIA_TYPES = {"wav": "audio/wav", "mp3": "audio/mpeg"}


@dataclass(frozen=True)
class PcmFormat:
    """Sample layout shared by every buffer produced by one synthesis backend."""

    sample_rate: int = 24000
    channels: int = 1
    bits_per_sample: int = 16

    @property
    def block_align(self) -> int:
        return self.channels * (self.bits_per_sample // 8)

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.block_align

    def validate(self, pcm: bytes) -> None:
        """Raise ``ValueError`` when ``pcm`` does not hold whole sample frames."""
        if len(pcm) % self.block_align != 0:
            raise ValueError(
                f"PCM length {len(pcm)} is not a multiple of block align "
                f"{self.block_align}"
            )


DEFAULT_PCM_FORMAT = PcmFormat()


@dataclass(frozen=True)
class AudioAsset:
    """Containerized audio ready for playback or download."""

    data: bytes
    format: AudioFormatTag = "wav"
    file_name: str = "tts.wav"

    @property
    def media_type(self) -> str:
        return _MEDIA_TYPES[self.format]

    @property
    def size(self) -> int:
        return len(self.data)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


def pcm_to_wav(
    pcm: bytes,
    sample_rate: int = 24000,
    channels: int = 1,
    bits_per_sample: int = 16,
    file_name: str = "tts.wav",
) -> AudioAsset:
    """Wrap raw PCM bytes in a canonical 44-byte RIFF/WAVE header."""
    pcm_format = PcmFormat(sample_rate, channels, bits_per_sample)
    data_size = len(pcm)
    header = _HEADER_STRUCT.pack(
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        1,
        channels,
        sample_rate,
        pcm_format.byte_rate,
        pcm_format.block_align,
        bits_per_sample,
        b"data",
        data_size,
    )
    return AudioAsset(data=header + bytes(pcm), format="wav", file_name=file_name)


def merge_pcm(buffers: Iterable[bytes]) -> bytes:
    """Concatenate PCM buffers in order, without resampling or padding."""
    return b"".join(buffers)


def wav_to_pcm(data: bytes) -> Tuple[bytes, PcmFormat]:
    """
    Parse a canonical WAV container back into its PCM payload.

    Only the layout written by :func:`pcm_to_wav` is accepted.

    Raises:
        DecodeError: If the header is missing, malformed, or its declared
            data size does not match the payload length.
    """
    if len(data) < WAV_HEADER_SIZE:
        raise DecodeError(f"WAV data too short: {len(data)} bytes")

    (
        riff,
        riff_size,
        wave,
        fmt_id,
        fmt_size,
        audio_format,
        channels,
        sample_rate,
        _byte_rate,
        _block_align,
        bits_per_sample,
        data_id,
        data_size,
    ) = _HEADER_STRUCT.unpack_from(data)

    if riff != b"RIFF" or wave != b"WAVE" or fmt_id != b"fmt " or data_id != b"data":
        raise DecodeError("Not a canonical RIFF/WAVE container")
    if fmt_size != 16 or audio_format != 1:
        raise DecodeError("Only uncompressed PCM WAV data is supported")

    payload = data[WAV_HEADER_SIZE:]
    if data_size != len(payload) or riff_size != 36 + data_size:
        raise DecodeError(
            f"Declared data size {data_size} does not match payload {len(payload)}"
        )

    return payload, PcmFormat(sample_rate, channels, bits_per_sample)


__all__ = [
    "AudioAsset",
    "AudioFormatTag",
    "DEFAULT_PCM_FORMAT",
    "PcmFormat",
    "WAV_HEADER_SIZE",
    "merge_pcm",
    "pcm_to_wav",
    "wav_to_pcm",
]
