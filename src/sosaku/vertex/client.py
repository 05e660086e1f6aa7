# SPDX-License-Identifier: MIT
"""HTTP client for Vertex AI prediction, long-running operations and Text-to-Speech."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import quote

import httpx

from ..config import TEXT_TO_SPEECH_ENDPOINT, GoogleAIConfig, get_http_timeout, require_google_config
from .auth import TokenProvider

# Applied to every Vertex AI predict request that accepts safety settings
SAFETY_SETTINGS = {
    "category": "HARM_CATEGORY_HARASSMENT",
    "threshold": "BLOCK_MEDIUM_AND_ABOVE",
}


class VertexClient:
    """Thin async wrapper over the Google REST endpoints used by sosaku.

    Args:
        config: Credentials and endpoint settings
        http_client: Optional pre-built httpx client (tests pass one with a MockTransport)
        token_provider: Optional credential source, defaults to :class:`TokenProvider`
    """

    def __init__(
        self,
        config: GoogleAIConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        token_provider: TokenProvider | None = None,
    ) -> None:
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=get_http_timeout(), follow_redirects=True)
        self._tokens = token_provider or TokenProvider(config)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> VertexClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def resource_name(self, model: str) -> str:
        """Build ``projects/{project}/locations/{location}/publishers/google/models/{model}``.

        Raises:
            RuntimeError: If no project id is configured
        """
        if not self._config.project_id:
            raise RuntimeError("GOOGLE_CLOUD_PROJECT_ID is required for Vertex AI models")
        return (
            f"projects/{self._config.project_id}/locations/{self._config.location}/publishers/google/models/{model}"
        )

    async def _post_json(self, url: str, body: dict[str, Any]) -> dict[str, Any]:
        headers = await self._tokens.headers()
        headers["Content-Type"] = "application/json"
        resp = await self._client.post(url, json=body, headers=headers)
        resp.raise_for_status()
        return resp.json()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def predict(self, model: str, body: dict[str, Any]) -> dict[str, Any]:
        """Call ``{model}:predict``.

        Returns either ``{"predictions": [...]}`` or a long-running operation
        ``{"name": "projects/.../operations/..."}`` that must be polled.
        """
        url = f"{self._config.vertex_endpoint}/{self.resource_name(model)}:predict"
        return await self._post_json(url, body)

    async def get_operation(self, operation_name: str) -> dict[str, Any]:
        """Fetch the status of a long-running operation."""
        headers = await self._tokens.headers()
        resp = await self._client.get(f"{self._config.vertex_endpoint}/{operation_name}", headers=headers)
        resp.raise_for_status()
        return resp.json()

    async def synthesize_speech(self, body: dict[str, Any]) -> dict[str, Any]:
        """Call Cloud Text-to-Speech ``text:synthesize``."""
        return await self._post_json(f"{TEXT_TO_SPEECH_ENDPOINT}/text:synthesize", body)

    @asynccontextmanager
    async def stream_download(self, uri: str) -> AsyncIterator[AsyncIterator[bytes]]:
        """Stream the bytes behind a result URI.

        ``gs://bucket/object`` URIs are fetched from the Cloud Storage media
        endpoint with the configured credentials; http(s) URLs are fetched
        anonymously.
        """
        if uri.startswith("gs://"):
            bucket, _, obj = uri[len("gs://") :].partition("/")
            url = f"https://storage.googleapis.com/storage/v1/b/{bucket}/o/{quote(obj, safe='')}?alt=media"
            headers = await self._tokens.headers()
        else:
            url = uri
            headers = {}

        async with self._client.stream("GET", url, headers=headers) as response:
            response.raise_for_status()
            yield response.aiter_bytes()


def get_vertex_client() -> VertexClient:
    """Get a Vertex client for the configured credentials.

    Use as an async context manager so the underlying httpx client is closed.

    Raises:
        RuntimeError: If neither an API key nor a project id is configured
    """
    return VertexClient(require_google_config())
