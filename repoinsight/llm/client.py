"""Async client for the remote text-generation endpoint (Ollama-style /api/generate)."""

from __future__ import annotations

import asyncio
import json
import os
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import httpx

from ..errors import GenerationTimeout, TransportError
from ..logging import get_logger


@dataclass
class GenerationRequest:
    """Represents a single prompt-completion request."""

    endpoint: str
    model: str
    prompt: str
    max_output_tokens: int
    timeout: float

    def payload(self) -> dict[str, object]:
        return {
            "model": self.model,
            "prompt": self.prompt,
            "stream": False,
            "max_tokens": self.max_output_tokens,
        }


class GenerationClient:
    """Issues one generation request per call; never retries.

    Requests share one connection pool: the injected ``http_client`` or one the
    client creates on first use and releases in :meth:`aclose`.
    """

    DEFAULT_MODEL = "llama3.1:8b"
    DEFAULT_ENDPOINT = "http://localhost:11434/api/generate"
    ENV_MODEL_KEYS = ("REPOINSIGHT_LLM_MODEL", "OLLAMA_MODEL")
    ENV_ENDPOINT_KEYS = ("REPOINSIGHT_LLM_ENDPOINT", "OLLAMA_ENDPOINT")

    def __init__(
        self,
        model: str | None = None,
        *,
        endpoint: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.model = self._resolve(model, self.ENV_MODEL_KEYS, self.DEFAULT_MODEL)
        self.endpoint = self._resolve(endpoint, self.ENV_ENDPOINT_KEYS, self.DEFAULT_ENDPOINT)
        self._http_client = http_client
        self._owns_http_client = False
        self.logger = get_logger("llm")

    async def generate(
        self,
        prompt: str,
        *,
        timeout: float,
        max_output_tokens: int,
    ) -> str:
        """Send ``prompt`` and return the generated text.

        The call is abandoned after ``timeout`` seconds regardless of what the
        server does, raising :class:`GenerationTimeout`. Connection problems,
        non-2xx statuses and malformed bodies raise :class:`TransportError`.
        """
        request = GenerationRequest(
            endpoint=self.endpoint,
            model=self.model,
            prompt=prompt,
            max_output_tokens=max_output_tokens,
            timeout=timeout,
        )
        self.logger.debug(
            "Generation request model=%s prompt_chars=%d max_tokens=%d timeout=%.1fs",
            request.model,
            len(prompt),
            max_output_tokens,
            timeout,
        )
        try:
            response = await asyncio.wait_for(self._post(request), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise GenerationTimeout(
                f"Generation request timed out after {timeout:g}s", timeout=timeout
            ) from exc
        except httpx.TimeoutException as exc:
            raise GenerationTimeout(
                f"Generation request timed out after {timeout:g}s", timeout=timeout
            ) from exc
        except httpx.RequestError as exc:
            raise TransportError(f"Generation request failed: {exc}") from exc

        if not response.is_success:
            detail = response.text.strip() or response.reason_phrase
            raise TransportError(
                f"Generation endpoint returned status {response.status_code}: {detail}",
                status_code=response.status_code,
            )

        return self._extract_text(response)

    async def aclose(self) -> None:
        """Close the connection pool if this client created it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            self._owns_http_client = False

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient()
            self._owns_http_client = True
        return self._http_client

    async def _post(self, request: GenerationRequest) -> httpx.Response:
        return await self._client().post(
            request.endpoint, json=request.payload(), timeout=request.timeout
        )

    @staticmethod
    def _extract_text(response: httpx.Response) -> str:
        try:
            payload: Any = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise TransportError(
                "Generation endpoint returned invalid JSON", status_code=response.status_code
            ) from exc
        if not isinstance(payload, dict):
            raise TransportError(
                "Generation endpoint returned an unexpected payload",
                status_code=response.status_code,
            )
        text = payload.get("response")
        if not isinstance(text, str):
            raise TransportError(
                "Generation endpoint response is missing the 'response' field",
                status_code=response.status_code,
            )
        return text

    @staticmethod
    def _resolve(explicit: Optional[str], env_keys: Sequence[str], default: str) -> str:
        if explicit:
            return explicit
        for key in env_keys:
            value = os.getenv(key)
            if value:
                return value
        return default


__all__ = ["GenerationClient", "GenerationRequest"]
