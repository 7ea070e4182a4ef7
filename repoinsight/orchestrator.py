"""Batch orchestration of repository analysis runs."""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from datetime import UTC, datetime
from enum import Enum
from typing import Callable, Dict, List, Union

import httpx

from .catalog import file_type_for, filter_supported
from .config import RepoInsightConfig
from .errors import (
    AnalysisError,
    InvalidInput,
    NoSupportedFiles,
    OrchestrationError,
    RunCancelled,
    SourceError,
)
from .knowledge import build_documentation, categorize
from .logging import get_logger
from .models import (
    AnalysisMode,
    AnalysisReport,
    FileAnalysisResult,
    FileEntry,
    KTReport,
    SourceFile,
)
from .llm import GenerationClient
from .processor import FileProcessor, Generator
from .progress import ProgressEvent, ProgressSink
from .prompting import PromptBuilder
from .sources import ContentSource
from .stores import ResultCache, cache_key

Report = Union[AnalysisReport, KTReport]


class RunState(str, Enum):
    PENDING = "pending"
    FETCHING_FILES = "fetching_files"
    FILTERING = "filtering"
    ANALYZING_FILE = "analyzing_file"
    SUMMARIZING = "summarizing"
    COMPLETE = "complete"
    FAILED = "failed"


_TERMINAL_STATES = (RunState.COMPLETE, RunState.FAILED)


def _utc_timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class BatchOrchestrator:
    """Runs the analysis pipeline for a repository and reports progress.

    One instance is meant to live for the whole process: it owns the per-key
    in-flight registry, so concurrent requests for the same repository and
    mode share a single run. States of active runs are tracked per key;
    finished runs keep only their outcome, for the most recent
    ``state_history`` keys.
    """

    def __init__(
        self,
        processor: FileProcessor,
        cache: ResultCache[Report],
        *,
        config: RepoInsightConfig,
        prompt_builder: PromptBuilder | None = None,
        clock: Callable[[], str] = _utc_timestamp,
        state_history: int = 256,
    ) -> None:
        self.processor = processor
        self.cache = cache
        self.config = config
        self.prompt_builder = prompt_builder or processor.prompt_builder
        self._clock = clock
        self._in_flight: Dict[str, asyncio.Future[Report]] = {}
        self._states: Dict[str, RunState] = {}
        self._outcomes: OrderedDict[str, RunState] = OrderedDict()
        self._state_history = state_history
        self.logger = get_logger("orchestrator")

    def state_of(self, repository_id: str, mode: AnalysisMode) -> RunState:
        key = cache_key(repository_id, mode)
        if key in self._states:
            return self._states[key]
        return self._outcomes.get(key, RunState.PENDING)

    async def run(
        self,
        repository_id: str,
        mode: AnalysisMode,
        source: ContentSource,
        sink: ProgressSink,
    ) -> Report:
        key = cache_key(repository_id, mode)
        expired = self.cache.prune()
        if expired:
            self.logger.debug("Pruned %d expired cached report(s)", expired)
        while True:
            cached = self.cache.get(key)
            if cached is not None:
                self.logger.info("Serving cached %s analysis for %s", mode.value, repository_id)
                await sink.emit(ProgressEvent.complete(cached.to_payload()))
                return cached

            pending = self._in_flight.get(key)
            if pending is None:
                break

            self.logger.info("Joining in-flight %s analysis for %s", mode.value, repository_id)
            await sink.emit(ProgressEvent.status("Analysis already in progress; waiting for results..."))
            try:
                report = await asyncio.shield(pending)
            except asyncio.CancelledError:
                if pending.cancelled():
                    continue
                raise
            except RunCancelled:
                # The owning consumer went away; this caller takes the run over.
                continue
            except AnalysisError as exc:
                await sink.emit(ProgressEvent.failure(str(exc), exc.error_type))
                raise
            await sink.emit(ProgressEvent.complete(report.to_payload()))
            return report

        future: asyncio.Future[Report] = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            report = await self._execute(key, repository_id, mode, source, sink)
        except Exception as exc:
            self._in_flight.pop(key, None)
            future.set_exception(exc)
            future.exception()  # mark retrieved when nobody is waiting
            raise
        except BaseException:
            self._in_flight.pop(key, None)
            self._transition(key, RunState.FAILED)
            future.cancel()
            raise
        self._in_flight.pop(key, None)
        future.set_result(report)
        return report

    async def _execute(
        self,
        key: str,
        repository_id: str,
        mode: AnalysisMode,
        source: ContentSource,
        sink: ProgressSink,
    ) -> Report:
        token = sink.token
        self._transition(key, RunState.PENDING)
        try:
            label = "KT analysis" if mode is AnalysisMode.KT else "analysis"
            await sink.emit(ProgressEvent.status(f"Starting {label}..."))

            self._transition(key, RunState.FETCHING_FILES)
            token.raise_if_cancelled()
            entries = await source.list_files(repository_id)
            self.logger.debug("Listing for %s returned %d entries", repository_id, len(entries))

            self._transition(key, RunState.FILTERING)
            await sink.emit(ProgressEvent.status("Filtering supported files..."))
            supported = filter_supported(entries)
            if not supported:
                raise NoSupportedFiles("No supported files found")

            results = await self._analyze_files(key, supported, mode, source, sink)
            if not results:
                raise NoSupportedFiles("No files were successfully analyzed")

            self._transition(key, RunState.SUMMARIZING)
            token.raise_if_cancelled()
            report = await self._summarize(repository_id, mode, results, sink)

            self.cache.set(key, report, self.config.mode(mode).cache_ttl)
            self._transition(key, RunState.COMPLETE)
            await sink.emit(ProgressEvent.complete(report.to_payload()))
            return report
        except RunCancelled:
            self._transition(key, RunState.FAILED)
            self.logger.info("Analysis of %s cancelled by consumer", repository_id)
            raise
        except (SourceError, NoSupportedFiles) as exc:
            self._transition(key, RunState.FAILED)
            self.logger.error("Analysis of %s failed: %s", repository_id, exc)
            await sink.emit(ProgressEvent.failure(str(exc), exc.error_type))
            raise
        except Exception as exc:
            self._transition(key, RunState.FAILED)
            self.logger.exception("Analysis of %s failed", repository_id)
            await sink.emit(ProgressEvent.failure(str(exc), OrchestrationError.error_type))
            raise OrchestrationError(str(exc)) from exc

    async def _analyze_files(
        self,
        key: str,
        entries: List[FileEntry],
        mode: AnalysisMode,
        source: ContentSource,
        sink: ProgressSink,
    ) -> List[FileAnalysisResult]:
        results: List[FileAnalysisResult] = []
        for entry in entries:
            self._transition(key, RunState.ANALYZING_FILE)
            sink.token.raise_if_cancelled()
            await sink.emit(ProgressEvent.status(f"Analyzing {entry.name}..."))
            try:
                content = await source.fetch_content(entry)
                file = SourceFile(
                    name=entry.name,
                    path=entry.path,
                    content=content,
                    file_type=file_type_for(entry.name),
                )
                result = await self.processor.process_file(file, mode, sink.token)
            except (SourceError, InvalidInput) as exc:
                self.logger.error("Failed to process %s: %s", entry.name, exc)
                await sink.emit(ProgressEvent.file_error(entry.name, str(exc)))
                continue
            results.append(result)
            await sink.emit(ProgressEvent.progress(result.file_name, result.analysis))
        return results

    async def _summarize(
        self,
        repository_id: str,
        mode: AnalysisMode,
        results: List[FileAnalysisResult],
        sink: ProgressSink,
    ) -> Report:
        timeout = self.config.mode(mode).summary_timeout
        if mode is AnalysisMode.KT:
            await sink.emit(ProgressEvent.status("Generating KT documentation..."))
            categorized = categorize(results)
            generated = await self.processor.generate(
                self.prompt_builder.documentation_prompt(categorized),
                mode,
                timeout=timeout,
                label="KT documentation",
                token=sink.token,
            )
            return KTReport(
                repository=repository_id,
                categorized_results=categorized,
                documentation=build_documentation(generated),
                timestamp=self._clock(),
                analyses=results,
            )

        await sink.emit(ProgressEvent.status("Generating codebase overview..."))
        overview = await self.processor.generate(
            self.prompt_builder.overview_prompt(results),
            mode,
            timeout=timeout,
            label="Codebase overview",
            token=sink.token,
        )
        return AnalysisReport(
            repository=repository_id,
            overview=overview,
            analyses=results,
            timestamp=self._clock(),
        )

    def _transition(self, key: str, state: RunState) -> None:
        previous = self._states.get(key)
        if previous is not state:
            self.logger.debug("%s: %s -> %s", key, previous.value if previous else "-", state.value)
        if state not in _TERMINAL_STATES:
            self._outcomes.pop(key, None)
            self._states[key] = state
            return
        self._states.pop(key, None)
        self._outcomes[key] = state
        self._outcomes.move_to_end(key)
        while len(self._outcomes) > self._state_history:
            self._outcomes.popitem(last=False)


def build_orchestrator(
    config: RepoInsightConfig,
    *,
    client: Generator | None = None,
    cache: ResultCache[Report] | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> BatchOrchestrator:
    """Wire the default generation client, processor and cache for ``config``.

    ``http_client`` is shared by every generation call; its owner closes it.
    """
    generator = client or GenerationClient(
        config.llm.model, endpoint=config.llm.endpoint, http_client=http_client
    )
    processor = FileProcessor(generator, config=config)
    return BatchOrchestrator(processor, cache if cache is not None else ResultCache(), config=config)


__all__ = ["BatchOrchestrator", "Report", "RunState", "build_orchestrator"]
