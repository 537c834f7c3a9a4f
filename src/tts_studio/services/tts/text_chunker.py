"""
Text Chunker for Batch TTS Synthesis.

This module splits arbitrary-length input text into chunks that fit the
per-request character budget of the synthesis API. Cuts land on sentence
boundaries where possible, then on whitespace, and only as a last resort
in the middle of a word.

Architecture:
    input text → TextChunker.split() → ordered chunks → SynthesisOrchestrator

Boundary selection:
    For every boundary kind the LAST occurrence inside the window is found,
    and the cut is placed after whichever occurrence ends furthest to the
    right. The order of DEFAULT_BOUNDARIES therefore does not express a
    preference; only the end position does.

Usage:
    chunker = TextChunker(max_chars=1000)
    for chunk in chunker.split(text):
        ...
"""

import math
from typing import List, Optional, Sequence

# Sentence endings followed by a space, then line breaks
DEFAULT_BOUNDARIES = (". ", "! ", "? ", "\n", "\r")


def _find_cut_index(window: str, boundaries: Sequence[str]) -> int:
    """Return the index at which ``window`` should be cut."""
    cut_index = -1
    for boundary in boundaries:
        idx = window.rfind(boundary)
        if idx == -1:
            continue
        end = idx + len(boundary)
        if end > cut_index:
            cut_index = end

    if cut_index > 0:
        return cut_index

    # No sentence boundary: cut before the last space, else hard cut
    space_index = window.rfind(" ")
    if space_index > 0:
        return space_index
    return len(window)


def split_text(
    text: str,
    max_chars: int,
    boundaries: Sequence[str] = DEFAULT_BOUNDARIES,
) -> List[str]:
    """
    Split ``text`` into chunks of at most ``max_chars`` characters.

    Args:
        text: Raw input text.
        max_chars: Character budget per chunk, must be positive.
        boundaries: Boundary strings searched within each window.

    Returns:
        Ordered, non-empty, trimmed chunks. Empty input yields an empty list.
    """
    if max_chars <= 0:
        raise ValueError(f"max_chars must be positive, got {max_chars}")

    if not text:
        return []

    if len(text) <= max_chars:
        stripped = text.strip()
        return [stripped] if stripped else []

    chunks: List[str] = []
    remaining = text.strip()

    while remaining:
        if len(remaining) <= max_chars:
            chunks.append(remaining)
            break

        window = remaining[:max_chars]
        cut_index = _find_cut_index(window, boundaries)

        chunk = remaining[:cut_index].strip()
        if chunk:
            chunks.append(chunk)
        remaining = remaining[cut_index:].strip()

    return chunks


class TextChunker:
    """
    Reusable splitter bound to a character budget.

    Attributes:
        max_chars: Maximum characters per chunk
        boundaries: Boundary strings considered when cutting a window
    """

    def __init__(
        self,
        max_chars: int = 1000,
        boundaries: Optional[Sequence[str]] = None,
    ):
        if max_chars <= 0:
            raise ValueError(f"max_chars must be positive, got {max_chars}")
        self.max_chars = max_chars
        self.boundaries = tuple(boundaries or DEFAULT_BOUNDARIES)

    def split(self, text: str) -> List[str]:
        """Split text into API-sized chunks."""
        return split_text(text, self.max_chars, self.boundaries)

    def estimate_chunks(self, text: str) -> int:
        """Rough chunk count used for UI hints before synthesis starts."""
        return math.ceil(len(text.strip()) / self.max_chars)
