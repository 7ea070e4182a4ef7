"""Tests for the SSE progress channel."""

from __future__ import annotations

import asyncio
import json

import pytest

from repoinsight.errors import RunCancelled
from repoinsight.progress import (
    HEARTBEAT,
    CancellationToken,
    ProgressChannel,
    ProgressEvent,
)


def test_event_encoding_matches_sse_framing() -> None:
    event = ProgressEvent.status("Starting analysis...")

    assert event.encode() == (
        'event: status\ndata: {"event": "status", "data": "Starting analysis..."}\n\n'
    )


def test_event_constructors_shape_payloads() -> None:
    assert ProgressEvent.progress("A.cls", "ok").data == {
        "file": "A.cls",
        "status": "completed",
        "analysis": "ok",
    }
    assert ProgressEvent.file_error("A.cls", "boom").data == {"file": "A.cls", "error": "boom"}
    assert ProgressEvent.failure("bad", "system_error").data == {
        "message": "bad",
        "type": "system_error",
    }
    complete = ProgressEvent.complete({"overview": "x"})
    assert json.loads(complete.encode().split("data: ", 1)[1]) == {
        "event": "complete",
        "data": {"overview": "x"},
    }


def test_cancellation_token_raises_once_cancelled() -> None:
    token = CancellationToken()
    token.raise_if_cancelled()

    token.cancel()

    assert token.cancelled
    with pytest.raises(RunCancelled):
        token.raise_if_cancelled()


def test_stream_yields_events_in_order_then_ends() -> None:
    async def scenario():
        channel = ProgressChannel()
        await channel.emit(ProgressEvent.status("one"))
        await channel.emit(ProgressEvent.status("two"))
        channel.close()
        return [chunk async for chunk in channel.stream()], channel

    chunks, channel = asyncio.run(scenario())

    assert [json.loads(chunk.split("data: ", 1)[1])["data"] for chunk in chunks] == ["one", "two"]
    assert not channel.cancelled


def test_stream_sends_heartbeat_while_idle() -> None:
    async def scenario():
        channel = ProgressChannel(heartbeat_interval=0.01)
        stream = channel.stream()
        first = await anext(stream)
        await channel.emit(ProgressEvent.status("later"))
        channel.close()
        rest = [chunk async for chunk in stream]
        return first, rest

    first, rest = asyncio.run(scenario())

    assert first == HEARTBEAT
    assert rest[-1].startswith("event: status\n")
    assert all(chunk == HEARTBEAT for chunk in rest[:-1])


def test_closing_stream_early_cancels_token() -> None:
    async def scenario():
        channel = ProgressChannel()
        await channel.emit(ProgressEvent.status("one"))
        stream = channel.stream()
        await anext(stream)
        await stream.aclose()
        return channel

    channel = asyncio.run(scenario())

    assert channel.cancelled
    with pytest.raises(RunCancelled):
        channel.token.raise_if_cancelled()


def test_emit_after_cancel_is_dropped() -> None:
    async def scenario():
        channel = ProgressChannel()
        channel.cancel()
        await channel.emit(ProgressEvent.status("ignored"))
        channel.close()
        return [event async for event in channel.events()]

    assert asyncio.run(scenario()) == []


def test_emit_after_close_is_rejected() -> None:
    async def scenario():
        channel = ProgressChannel()
        channel.close()
        await channel.emit(ProgressEvent.status("late"))

    with pytest.raises(RuntimeError):
        asyncio.run(scenario())
