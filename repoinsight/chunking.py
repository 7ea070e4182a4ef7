"""Line-preserving chunking of source files for generation requests."""

from __future__ import annotations

from typing import List

from .errors import InvalidInput
from .models import Chunk


def chunk_char_budget(token_budget: int, chars_per_token: float) -> int:
    """Translate a model token budget into a per-chunk character budget."""
    if token_budget < 1 or chars_per_token <= 0:
        raise InvalidInput("Token budget and chars-per-token ratio must be positive")
    return max(1, int(token_budget * chars_per_token))


def split_content(content: str, max_chunk_size: int) -> List[str]:
    """Split ``content`` into chunks that never break a line.

    Lines accumulate into a buffer; once the next line would push the buffer's
    character count past ``max_chunk_size`` the buffer is flushed and the line
    starts a new one. A single line longer than the budget is emitted whole.
    Joining the result with ``"\\n"`` reproduces ``content`` exactly.
    """
    if not isinstance(content, str):
        raise InvalidInput(f"Invalid content type: {type(content).__name__}")
    if max_chunk_size < 1:
        raise InvalidInput("max_chunk_size must be at least 1")

    chunks: List[str] = []
    current: List[str] = []
    current_size = 0

    for line in content.split("\n"):
        if current and current_size + len(line) > max_chunk_size:
            chunks.append("\n".join(current))
            current = []
            current_size = 0
        current.append(line)
        current_size += len(line)

    if current:
        chunks.append("\n".join(current))
    return chunks


def build_chunks(content: str, max_chunk_size: int) -> List[Chunk]:
    """Return indexed chunks for ``content``; indices start at 0."""
    return [
        Chunk(sequence_index=index, text=text)
        for index, text in enumerate(split_content(content, max_chunk_size))
    ]


__all__ = ["build_chunks", "chunk_char_budget", "split_content"]
