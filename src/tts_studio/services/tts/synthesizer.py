"""
Synthesis Orchestrator for Chunked TTS Requests.

This module drives chunked text through an external speech synthesizer one
chunk at a time and packages the resulting PCM buffers as WAV assets.

Architecture:
    text → TextChunker → chunks → SpeechSynthesizer (sequential) → PCM buffers
         → merge_pcm / pcm_to_wav → AudioAsset(s)

Chunks are never synthesized concurrently. Progress is reported before and
after every call so callers can render "processing i of N", and only one
request is in flight against the backend at any time.

Usage:
    orchestrator = SynthesisOrchestrator(gemini_client)
    asset = await orchestrator.synthesize(
        text, max_chars=1000, voice_id="kore", merge_strategy="merge",
        on_progress=lambda p: print(p.current, p.total),
    )
"""

import inspect
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Literal, Optional, Protocol, Union

from ...errors import EmptyInputError, SynthesisError
from .text_chunker import split_text
from .wav import DEFAULT_PCM_FORMAT, AudioAsset, PcmFormat, merge_pcm, pcm_to_wav

logger = logging.getLogger(__name__)

MergeStrategy = Literal["merge", "separate"]


@dataclass(frozen=True)
class Progress:
    """Position of the chunk currently being processed (1-indexed)."""

    current: int
    total: int


ProgressCallback = Callable[[Progress], Union[None, Awaitable[None]]]


class SpeechSynthesizer(Protocol):
    """External capability returning raw PCM for one chunk of text."""

    async def synthesize(
        self, text: str, voice_id: str, model_id: Optional[str] = None
    ) -> bytes: ...


class SynthesisOrchestrator:
    """
    Sequential chunk synthesis with progress reporting.

    Attributes:
        synthesizer: Backend used for each chunk
        pcm_format: Sample layout of every buffer the backend returns
    """

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        pcm_format: PcmFormat = DEFAULT_PCM_FORMAT,
    ):
        self.synthesizer = synthesizer
        self.pcm_format = pcm_format

    async def _notify(
        self, on_progress: Optional[ProgressCallback], progress: Progress
    ) -> None:
        if on_progress is None:
            return
        try:
            result = on_progress(progress)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            logger.warning(f"Progress callback failed at {progress}: {exc}")

    def _containerize(self, pcm: bytes, file_name: str) -> AudioAsset:
        return pcm_to_wav(
            pcm,
            sample_rate=self.pcm_format.sample_rate,
            channels=self.pcm_format.channels,
            bits_per_sample=self.pcm_format.bits_per_sample,
            file_name=file_name,
        )

    async def synthesize(
        self,
        text: str,
        max_chars: int,
        voice_id: str,
        merge_strategy: MergeStrategy = "merge",
        on_progress: Optional[ProgressCallback] = None,
        model_id: Optional[str] = None,
        file_name: str = "tts.wav",
    ) -> Union[AudioAsset, List[AudioAsset]]:
        """
        Synthesize ``text`` chunk by chunk.

        Returns:
            A single AudioAsset when there is one chunk or the strategy is
            ``merge``; otherwise one asset per chunk, in text order.

        Raises:
            EmptyInputError: If the text yields no chunks.
            SynthesisError: If any chunk fails. Earlier buffers are discarded.
        """
        chunks = split_text(text.strip(), max_chars)
        if not chunks:
            raise EmptyInputError()

        total = len(chunks)
        start_time = time.monotonic()
        logger.info(f"Processing {total} chunk(s) with voice {voice_id!r}")

        buffers: List[bytes] = []
        for index, chunk in enumerate(chunks, start=1):
            progress = Progress(current=index, total=total)
            await self._notify(on_progress, progress)
            logger.info(f"Processing chunk {index}/{total} ({len(chunk)} chars)")

            try:
                pcm = await self.synthesizer.synthesize(chunk, voice_id, model_id)
                self.pcm_format.validate(pcm)
            except Exception as exc:
                buffers.clear()
                await self._notify(on_progress, progress)
                logger.error(f"TTS synthesis error for chunk {index}/{total}: {exc}")
                raise SynthesisError(index, total, str(exc)) from exc

            buffers.append(pcm)
            await self._notify(on_progress, progress)

        elapsed = (time.monotonic() - start_time) * 1000
        logger.info(f"Synthesized {total} chunk(s) in {elapsed:.0f}ms")

        if total == 1:
            return self._containerize(buffers[0], file_name)

        if merge_strategy == "merge":
            return self._containerize(merge_pcm(buffers), file_name)

        return [
            self._containerize(pcm, f"tts-part-{index}.wav")
            for index, pcm in enumerate(buffers, start=1)
        ]


__all__ = [
    "MergeStrategy",
    "Progress",
    "ProgressCallback",
    "SpeechSynthesizer",
    "SynthesisOrchestrator",
]
