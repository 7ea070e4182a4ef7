"""GitHub contents API adapter used to list and fetch repository files."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

import httpx

from ..config import SourceConfig
from ..errors import SourceError
from ..logging import get_logger
from ..models import FileEntry

_JSON_ACCEPT = "application/vnd.github.v3+json"
_RAW_ACCEPT = "application/vnd.github.v3.raw"


class ContentSource(Protocol):
    """Collaborator that supplies the files of a repository."""

    async def list_files(self, repository_id: str) -> List[FileEntry]:
        ...

    async def fetch_content(self, entry: FileEntry) -> str:
        ...


class GitHubContentSource:
    """Reads repository listings and raw file bodies from the GitHub REST API.

    Without an injected ``http_client`` one is created on first use and kept
    until :meth:`aclose`.
    """

    def __init__(
        self,
        *,
        authorization: str | None = None,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        recursive: bool = False,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.authorization = authorization
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.recursive = recursive
        self._http_client = http_client
        self._owns_http_client = False
        self.logger = get_logger("sources.github")

    @classmethod
    def from_config(
        cls,
        config: SourceConfig,
        *,
        authorization: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> "GitHubContentSource":
        return cls(
            authorization=authorization,
            api_url=config.api_url,
            timeout=config.fetch_timeout,
            recursive=config.recursive,
            http_client=http_client,
        )

    async def list_files(self, repository_id: str, path: str = "") -> List[FileEntry]:
        self.logger.debug("Fetching repository contents for %s/%s", repository_id, path)
        url = f"{self.api_url}/repos/{repository_id}/contents/{path}"
        response = await self._get(url, accept=_JSON_ACCEPT)
        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise SourceError(
                f"Repository listing for {repository_id} was not valid JSON"
            ) from exc
        if isinstance(payload, dict):
            payload = [payload]
        if not isinstance(payload, list):
            raise SourceError(f"Unexpected repository listing for {repository_id}")

        entries: List[FileEntry] = []
        for item in payload:
            entry = _entry_from_dict(item)
            if entry is None:
                continue
            if entry.type == "dir":
                if self.recursive:
                    entries.extend(await self.list_files(repository_id, entry.path))
                continue
            entries.append(entry)
        return entries

    async def fetch_content(self, entry: FileEntry) -> str:
        if not entry.download_url:
            raise SourceError(f"No download URL for {entry.path}")
        response = await self._get(entry.download_url, accept=_RAW_ACCEPT)
        return response.text

    async def aclose(self) -> None:
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            self._owns_http_client = False

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient()
            self._owns_http_client = True
        return self._http_client

    async def _get(self, url: str, *, accept: str) -> httpx.Response:
        headers = {"Accept": accept}
        if self.authorization:
            headers["Authorization"] = self.authorization
        try:
            response = await self._client().get(url, headers=headers, timeout=self.timeout)
        except httpx.HTTPError as exc:
            raise SourceError(f"Failed to fetch {url}: {exc}") from exc
        if not response.is_success:
            raise SourceError(
                f"Failed to fetch {url}: status {response.status_code}",
                status_code=response.status_code,
            )
        return response


def _entry_from_dict(item: object) -> Optional[FileEntry]:
    if not isinstance(item, dict):
        return None
    data: Dict[str, Any] = item
    name = data.get("name")
    path = data.get("path")
    if not isinstance(name, str) or not isinstance(path, str):
        return None
    kind = data.get("type")
    download_url = data.get("download_url")
    return FileEntry(
        name=name,
        path=path,
        type=kind if isinstance(kind, str) else "file",
        download_url=download_url if isinstance(download_url, str) else None,
    )


__all__ = ["ContentSource", "GitHubContentSource"]
