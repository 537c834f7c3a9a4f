import struct

import pytest

from tts_studio.errors import DecodeError
from tts_studio.services.tts.wav import (
    WAV_HEADER_SIZE,
    AudioAsset,
    PcmFormat,
    merge_pcm,
    pcm_to_wav,
    wav_to_pcm,
)


def test_header_fields_for_default_format() -> None:
    pcm = b"\x01\x02" * 50

    asset = pcm_to_wav(pcm)

    assert asset.size == WAV_HEADER_SIZE + len(pcm)
    assert asset.data[0:4] == b"RIFF"
    assert struct.unpack_from("<I", asset.data, 4)[0] == 36 + len(pcm)
    assert asset.data[8:16] == b"WAVEfmt "
    assert struct.unpack_from("<IHHIIHH", asset.data, 16) == (
        16,
        1,
        1,
        24000,
        48000,
        2,
        16,
    )
    assert asset.data[36:40] == b"data"
    assert struct.unpack_from("<I", asset.data, 40)[0] == len(pcm)
    assert asset.data[WAV_HEADER_SIZE:] == pcm


def test_header_reflects_custom_format() -> None:
    asset = pcm_to_wav(b"\x00" * 8, sample_rate=16000, channels=2)

    payload, pcm_format = wav_to_pcm(asset.data)

    assert payload == b"\x00" * 8
    assert pcm_format == PcmFormat(sample_rate=16000, channels=2, bits_per_sample=16)
    assert pcm_format.byte_rate == 64000
    assert pcm_format.block_align == 4


def test_empty_pcm_produces_header_only() -> None:
    asset = pcm_to_wav(b"")

    assert asset.size == WAV_HEADER_SIZE
    assert wav_to_pcm(asset.data) == (b"", PcmFormat())


def test_containerizing_is_deterministic() -> None:
    pcm = bytes(range(256)) * 4

    assert pcm_to_wav(pcm).data == pcm_to_wav(pcm).data


def test_merge_preserves_order_and_length() -> None:
    buffers = [b"\x01\x00" * 3, b"\x02\x00" * 5, b"\x03\x00"]

    merged = merge_pcm(buffers)
    asset = pcm_to_wav(merged)

    assert len(merged) == sum(len(buffer) for buffer in buffers)
    assert wav_to_pcm(asset.data)[0] == b"".join(buffers)


def test_asset_metadata() -> None:
    asset = AudioAsset(data=b"abc", file_name="clip.wav")

    assert asset.media_type == "audio/wav"
    assert asset.to_base64() == "YWJj"
    assert AudioAsset(data=b"", format="mp3").media_type == "audio/mpeg"


def test_pcm_format_rejects_partial_frames() -> None:
    PcmFormat().validate(b"\x00\x00")
    with pytest.raises(ValueError):
        PcmFormat().validate(b"\x00\x00\x00")


@pytest.mark.parametrize(
    "mutate",
    [
        lambda data: data[:20],
        lambda data: b"RIFX" + data[4:],
        lambda data: data + b"\x00\x00",
        lambda data: data[:20] + struct.pack("<H", 3) + data[22:],
    ],
    ids=["truncated", "bad-magic", "size-mismatch", "non-pcm"],
)
def test_wav_to_pcm_rejects_malformed_containers(mutate) -> None:
    data = pcm_to_wav(b"\x01\x00" * 10).data

    with pytest.raises(DecodeError):
        wav_to_pcm(mutate(data))
