"""
TTS (Text-to-Speech) Services Package.

This package contains the text-to-audio pipeline:

- text_chunker: Splits long text into API-sized chunks
- synthesizer: Sequential per-chunk synthesis with progress reporting
- wav: PCM merging and WAV container synthesis

Architecture Overview:

    ┌─────────────┐     ┌─────────────┐     ┌──────────────────────┐
    │ Input text  │────▶│ TextChunker │────▶│ SynthesisOrchestrator│
    └─────────────┘     └─────────────┘     └──────────────────────┘
                                                       │ one chunk at a time
                                                       ▼
                                            ┌──────────────────────┐
                                            │  SpeechSynthesizer   │
                                            └──────────────────────┘
                                                       │ raw PCM
                                                       ▼
                                            ┌──────────────────────┐
                                            │ merge_pcm/pcm_to_wav │
                                            └──────────────────────┘
                                                       │
                                                       ▼
                                                 AudioAsset(s)
"""

from .synthesizer import Progress, SpeechSynthesizer, SynthesisOrchestrator
from .text_chunker import TextChunker, split_text
from .wav import AudioAsset, PcmFormat, merge_pcm, pcm_to_wav, wav_to_pcm

__all__ = [
    "AudioAsset",
    "PcmFormat",
    "Progress",
    "SpeechSynthesizer",
    "SynthesisOrchestrator",
    "TextChunker",
    "merge_pcm",
    "pcm_to_wav",
    "split_text",
    "wav_to_pcm",
]
