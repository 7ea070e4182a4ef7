"""Server-push progress protocol (Server-Sent Events) for analysis runs."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional, Protocol

from .errors import RunCancelled
from .logging import get_logger

HEARTBEAT = ":\n\n"

STATUS = "status"
PROGRESS = "progress"
ERROR = "error"
COMPLETE = "complete"


@dataclass(frozen=True)
class ProgressEvent:
    """A single message pushed to the progress consumer."""

    event: str
    data: Any

    def encode(self) -> str:
        body = json.dumps({"event": self.event, "data": self.data})
        return f"event: {self.event}\ndata: {body}\n\n"

    @classmethod
    def status(cls, message: str) -> "ProgressEvent":
        return cls(STATUS, message)

    @classmethod
    def progress(cls, file_name: str, analysis: str) -> "ProgressEvent":
        return cls(PROGRESS, {"file": file_name, "status": "completed", "analysis": analysis})

    @classmethod
    def file_error(cls, file_name: str, message: str) -> "ProgressEvent":
        return cls(ERROR, {"file": file_name, "error": message})

    @classmethod
    def failure(cls, message: str, error_type: str) -> "ProgressEvent":
        return cls(ERROR, {"message": message, "type": error_type})

    @classmethod
    def complete(cls, payload: Dict[str, Any]) -> "ProgressEvent":
        return cls(COMPLETE, payload)


class CancellationToken:
    """Flag set once the consumer of a run disconnects."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RunCancelled("Progress consumer disconnected")


class ProgressSink(Protocol):
    """Anything the orchestrator can push events into."""

    token: CancellationToken

    async def emit(self, event: ProgressEvent) -> None:
        ...


class ProgressChannel:
    """Queue-backed progress sink that renders events as an SSE stream.

    Producers call :meth:`emit` and finally :meth:`close`. The consumer iterates
    :meth:`stream` (SSE text with heartbeats) or :meth:`events`. If the stream
    consumer stops early the channel's token is cancelled.
    """

    def __init__(self, *, heartbeat_interval: float = 30.0) -> None:
        self.heartbeat_interval = heartbeat_interval
        self.token = CancellationToken()
        self._queue: asyncio.Queue[Optional[ProgressEvent]] = asyncio.Queue()
        self._closed = False
        self._drained = False
        self.logger = get_logger("progress")

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def cancel(self) -> None:
        if not self.token.cancelled:
            self.logger.info("Progress consumer disconnected; cancelling run")
        self.token.cancel()

    async def emit(self, event: ProgressEvent) -> None:
        if self._closed:
            raise RuntimeError("Cannot emit on a closed progress channel")
        if self.token.cancelled:
            self.logger.debug("Dropping %s event for cancelled channel", event.event)
            return
        self.logger.debug("Emitting %s event", event.event)
        await self._queue.put(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def events(self) -> AsyncIterator[ProgressEvent]:
        while True:
            item = await self._queue.get()
            if item is None:
                self._drained = True
                return
            yield item

    async def stream(self) -> AsyncIterator[str]:
        try:
            while True:
                try:
                    item = await asyncio.wait_for(
                        self._queue.get(), timeout=self.heartbeat_interval
                    )
                except asyncio.TimeoutError:
                    yield HEARTBEAT
                    continue
                if item is None:
                    self._drained = True
                    return
                yield item.encode()
        finally:
            if not self._drained:
                self.cancel()


__all__ = [
    "COMPLETE",
    "CancellationToken",
    "ERROR",
    "HEARTBEAT",
    "PROGRESS",
    "ProgressChannel",
    "ProgressEvent",
    "ProgressSink",
    "STATUS",
]
