"""Tests for the GitHub content source."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from repoinsight.config import SourceConfig
from repoinsight.errors import SourceError
from repoinsight.models import FileEntry
from repoinsight.sources import GitHubContentSource

API = "https://api.github.test"


def _listing(*items: dict) -> list[dict]:
    return [
        {
            "type": "file",
            "download_url": f"https://raw.github.test/{item['path']}",
            **item,
        }
        for item in items
    ]


def _source(handler, **kwargs) -> tuple[GitHubContentSource, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    source = GitHubContentSource(api_url=API, http_client=client, **kwargs)
    return source, client


def _run(handler, call, **kwargs):
    async def scenario():
        source, client = _source(handler, **kwargs)
        async with client:
            return await call(source)

    return asyncio.run(scenario())


def test_list_files_returns_entries_and_sends_auth_header() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=_listing(
                {"name": "A.cls", "path": "A.cls"},
                {"name": "src", "path": "src", "type": "dir", "download_url": None},
            ),
        )

    entries = _run(handler, lambda source: source.list_files("acme/app"), authorization="Bearer t0k")

    assert entries == [
        FileEntry(name="A.cls", path="A.cls", type="file", download_url="https://raw.github.test/A.cls")
    ]
    assert str(seen[0].url) == f"{API}/repos/acme/app/contents/"
    assert seen[0].headers["Authorization"] == "Bearer t0k"
    assert seen[0].headers["Accept"] == "application/vnd.github.v3+json"


def test_list_files_descends_into_directories_when_recursive() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/contents/src"):
            return httpx.Response(200, json=_listing({"name": "B.js", "path": "src/B.js"}))
        return httpx.Response(
            200,
            json=_listing(
                {"name": "src", "path": "src", "type": "dir", "download_url": None},
                {"name": "A.cls", "path": "A.cls"},
            ),
        )

    entries = _run(handler, lambda source: source.list_files("acme/app"), recursive=True)

    assert [entry.path for entry in entries] == ["src/B.js", "A.cls"]


def test_list_files_raises_source_error_on_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Not Found"})

    with pytest.raises(SourceError) as exc_info:
        _run(handler, lambda source: source.list_files("acme/missing"))

    assert exc_info.value.status_code == 404


def test_list_files_raises_source_error_on_connection_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route", request=request)

    with pytest.raises(SourceError):
        _run(handler, lambda source: source.list_files("acme/app"))


def test_fetch_content_returns_raw_text() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Accept"] == "application/vnd.github.v3.raw"
        return httpx.Response(200, text="public class A {}")

    entry = FileEntry(name="A.cls", path="A.cls", download_url="https://raw.github.test/A.cls")

    assert _run(handler, lambda source: source.fetch_content(entry)) == "public class A {}"


def test_fetch_content_requires_download_url() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(SourceError):
        _run(handler, lambda source: source.fetch_content(FileEntry(name="A.cls", path="A.cls")))


def test_from_config_copies_settings() -> None:
    config = SourceConfig(api_url="https://ghe.example.test/api/v3/", fetch_timeout=5.0, recursive=True)

    source = GitHubContentSource.from_config(config, authorization="token abc")

    assert source.api_url == "https://ghe.example.test/api/v3"
    assert source.timeout == 5.0
    assert source.recursive is True
    assert source.authorization == "token abc"


def test_source_reuses_one_pool_across_requests(monkeypatch) -> None:
    real_async_client = httpx.AsyncClient
    created: list[httpx.AsyncClient] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "raw.github.test":
            return httpx.Response(200, text="body")
        return httpx.Response(200, json=_listing({"name": "A.cls", "path": "A.cls"}, {"name": "B.cls", "path": "B.cls"}))

    def make_client(*args, **kwargs) -> httpx.AsyncClient:
        client = real_async_client(transport=httpx.MockTransport(handler))
        created.append(client)
        return client

    monkeypatch.setattr(httpx, "AsyncClient", make_client)

    async def scenario() -> list[str]:
        source = GitHubContentSource(api_url=API)
        entries = await source.list_files("acme/app")
        bodies = [await source.fetch_content(entry) for entry in entries]
        await source.aclose()
        return bodies

    assert asyncio.run(scenario()) == ["body", "body"]
    assert len(created) == 1
    assert created[0].is_closed


def test_from_config_uses_shared_client_and_leaves_it_open() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, text="body")

    async def scenario() -> bool:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            source = GitHubContentSource.from_config(SourceConfig(), http_client=http_client)
            await source.fetch_content(
                FileEntry(name="A.cls", path="A.cls", download_url="https://raw.github.test/A.cls")
            )
            await source.aclose()
            return http_client.is_closed

    assert asyncio.run(scenario()) is False
    assert seen == ["https://raw.github.test/A.cls"]
