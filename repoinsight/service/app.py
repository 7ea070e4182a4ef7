"""FastAPI application exposing analysis runs over Server-Sent Events."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Optional, Set

import httpx
from fastapi import FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from ..config import RepoInsightConfig, load_config
from ..errors import AnalysisError, GenerationError
from ..logging import get_logger
from ..models import AnalysisMode
from ..orchestrator import BatchOrchestrator, build_orchestrator
from ..progress import ProgressChannel
from ..sources import ContentSource, GitHubContentSource

_SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


class AnalyzeRequest(BaseModel):
    repoName: Optional[str] = None
    repositoryId: Optional[str] = None
    mode: AnalysisMode = AnalysisMode.STANDARD


class CustomAnalysisRequest(BaseModel):
    fileName: str
    content: str
    prompt: str


class CustomAnalysisResponse(BaseModel):
    analysis: str


class HealthResponse(BaseModel):
    status: str


class RootResponse(BaseModel):
    status: str
    message: str


@dataclass
class ServiceComponents:
    """Process-wide collaborators shared by every request.

    ``http_client`` is the connection pool behind the orchestrator and the
    sources; the app closes it on shutdown.
    """

    config: RepoInsightConfig
    orchestrator: BatchOrchestrator
    source_factory: Callable[[Optional[str]], ContentSource]
    http_client: Optional[httpx.AsyncClient] = None


def _default_components() -> ServiceComponents:
    config = load_config(Path.cwd())
    http_client = httpx.AsyncClient()
    return ServiceComponents(
        config=config,
        orchestrator=build_orchestrator(config, http_client=http_client),
        source_factory=lambda authorization: GitHubContentSource.from_config(
            config.source, authorization=authorization, http_client=http_client
        ),
        http_client=http_client,
    )


def create_app(
    components_factory: Callable[[], ServiceComponents] = _default_components,
) -> FastAPI:
    """Create the FastAPI application exposing repoinsight operations."""

    components = components_factory()
    config = components.config
    orchestrator = components.orchestrator
    logger = get_logger("service")
    runs: Set[asyncio.Task[None]] = set()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        pending = list(runs)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if components.http_client is not None:
            await components.http_client.aclose()

    app = FastAPI(title="RepoInsight Service", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.service.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _start_stream(
        repository_id: str, mode: AnalysisMode, authorization: Optional[str]
    ) -> StreamingResponse:
        channel = ProgressChannel(heartbeat_interval=config.progress.heartbeat_interval)
        source = components.source_factory(authorization)

        async def _run() -> None:
            try:
                await orchestrator.run(repository_id, mode, source, channel)
            except AnalysisError as exc:
                logger.debug("Run for %s ended with %s", repository_id, exc.error_type)
            finally:
                channel.close()

        task = asyncio.create_task(_run())
        runs.add(task)
        task.add_done_callback(runs.discard)
        return StreamingResponse(
            channel.stream(), media_type="text/event-stream", headers=_SSE_HEADERS
        )

    def _repository(payload: AnalyzeRequest) -> str:
        repository_id = payload.repositoryId or payload.repoName
        if not repository_id:
            raise HTTPException(status_code=400, detail="repoName is required")
        return repository_id

    @app.get("/", response_model=RootResponse)
    async def root() -> RootResponse:
        return RootResponse(status="ok", message="Repository Code Analyzer API")

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/api/analyze")
    async def analyze(
        payload: AnalyzeRequest,
        authorization: Optional[str] = Header(default=None),
    ) -> StreamingResponse:
        repository_id = _repository(payload)
        logger.info("Analysis requested for %s (%s)", repository_id, payload.mode.value)
        return _start_stream(repository_id, payload.mode, authorization)

    @app.post("/api/analyze/kt")
    async def analyze_kt(
        payload: AnalyzeRequest,
        authorization: Optional[str] = Header(default=None),
    ) -> StreamingResponse:
        repository_id = _repository(payload)
        logger.info("KT analysis requested for %s", repository_id)
        return _start_stream(repository_id, AnalysisMode.KT, authorization)

    @app.post("/api/analyze/custom", response_model=CustomAnalysisResponse)
    async def analyze_custom(payload: CustomAnalysisRequest) -> CustomAnalysisResponse:
        analysis = await orchestrator.processor.analyze_custom(
            payload.fileName, payload.content, payload.prompt
        )
        return CustomAnalysisResponse(analysis=analysis)

    @app.exception_handler(GenerationError)
    async def generation_error_handler(
        _: Any, exc: GenerationError
    ) -> JSONResponse:
        logger.error("Custom analysis failed: %s", exc)
        return JSONResponse(
            status_code=502, content={"detail": str(exc), "type": exc.error_type}
        )

    return app


def run_service(
    host: str = "0.0.0.0", port: int = 5000
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)


__all__ = ["ServiceComponents", "create_app", "run_service"]
