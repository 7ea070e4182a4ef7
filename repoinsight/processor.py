"""Per-file analysis: chunk, generate with retries, merge in order."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Protocol

from .chunking import build_chunks, chunk_char_budget
from .config import RepoInsightConfig
from .errors import GenerationError
from .llm.retry import with_retry
from .logging import get_logger
from .models import (
    AnalysisMode,
    Chunk,
    ChunkResult,
    FileAnalysisResult,
    FileStatus,
    SourceFile,
)
from .progress import CancellationToken
from .prompting import PromptBuilder


class Generator(Protocol):
    async def generate(self, prompt: str, *, timeout: float, max_output_tokens: int) -> str:
        ...


class FileProcessor:
    """Drives the chunker and the generation client across one file."""

    def __init__(
        self,
        client: Generator,
        *,
        config: RepoInsightConfig,
        prompt_builder: PromptBuilder | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.config = config
        self.prompt_builder = prompt_builder or PromptBuilder()
        self._sleep = sleep
        self.logger = get_logger("processor")

    async def generate(
        self,
        prompt: str,
        mode: AnalysisMode,
        *,
        timeout: float,
        label: str = "Generation",
        token: Optional[CancellationToken] = None,
    ) -> str:
        """Run one prompt through the retry controller with the mode's output budget."""
        settings = self.config.mode(mode)
        retries = self.config.retries

        async def _attempt() -> str:
            return await self.client.generate(
                prompt, timeout=timeout, max_output_tokens=settings.max_output_tokens
            )

        return await with_retry(
            _attempt,
            retries.max_attempts,
            initial_delay=retries.initial_delay,
            max_delay=retries.max_delay,
            sleep=self._sleep,
            label=label,
            token=token,
        )

    async def process_file(
        self,
        file: SourceFile,
        mode: AnalysisMode,
        token: Optional[CancellationToken] = None,
    ) -> FileAnalysisResult:
        settings = self.config.mode(mode)
        max_chunk_size = chunk_char_budget(
            settings.chunk_tokens, self.config.processing.chars_per_token
        )
        chunks = build_chunks(file.content, max_chunk_size)
        self.logger.info(
            "Starting %s analysis for %s (%d chunk(s))", mode.value, file.name, len(chunks)
        )

        slots: List[Optional[ChunkResult]] = [None] * len(chunks)
        semaphore = asyncio.Semaphore(self.config.processing.chunk_concurrency)

        async def _run(chunk: Chunk) -> None:
            async with semaphore:
                if token is not None:
                    token.raise_if_cancelled()
                slots[chunk.sequence_index] = await self._analyze_chunk(
                    file, chunk, len(chunks), mode, token
                )

        tasks = [asyncio.ensure_future(_run(chunk)) for chunk in chunks]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        successes = [slot.text for slot in slots if slot is not None and slot.text is not None]
        status = FileStatus.SUCCESS if successes else FileStatus.PARTIAL_FAILURE
        if status is FileStatus.PARTIAL_FAILURE:
            self.logger.error("Every chunk of %s failed", file.name)
        return FileAnalysisResult(
            file_name=file.name,
            file_type=file.file_type,
            analysis="\n".join(successes),
            status=status,
            mode=mode,
        )

    async def _analyze_chunk(
        self,
        file: SourceFile,
        chunk: Chunk,
        total: int,
        mode: AnalysisMode,
        token: Optional[CancellationToken] = None,
    ) -> ChunkResult:
        position = chunk.sequence_index + 1
        self.logger.debug("Processing chunk %d/%d of %s", position, total, file.name)
        prompt = self.prompt_builder.chunk_prompt(
            chunk.text, file_name=file.name, file_type=file.file_type, mode=mode
        )
        try:
            text = await self.generate(
                prompt,
                mode,
                timeout=self.config.mode(mode).chunk_timeout,
                label=f"Chunk {position}/{total} of {file.name}",
                token=token,
            )
        except GenerationError as exc:
            self.logger.error("Failed to analyze chunk %d of %s: %s", position, file.name, exc)
            return ChunkResult(sequence_index=chunk.sequence_index, error=exc)
        return ChunkResult(sequence_index=chunk.sequence_index, text=text)

    async def analyze_custom(self, file_name: str, content: str, prompt: str) -> str:
        """Analyze ``content`` against a caller-supplied prompt; no chunking."""
        full_prompt = self.prompt_builder.custom_prompt(file_name, content, prompt)
        return await self.generate(
            full_prompt,
            AnalysisMode.STANDARD,
            timeout=self.config.mode(AnalysisMode.STANDARD).chunk_timeout,
            label=f"Custom analysis of {file_name}",
        )


__all__ = ["FileProcessor", "Generator"]
