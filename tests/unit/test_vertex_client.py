# SPDX-License-Identifier: MIT
"""Unit tests for the Vertex AI / Text-to-Speech HTTP client."""

import json

import httpx
import pytest

from sosaku.config import GoogleAIConfig
from sosaku.vertex import VertexClient
from sosaku.vertex.auth import TokenProvider


def _client(handler, **config) -> VertexClient:
    settings = {"api_key": "test-key", "project_id": "proj", **config}
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return VertexClient(GoogleAIConfig(**settings), http_client=http)


@pytest.mark.unit
async def test_predict_url_headers_and_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"predictions": [{"bytesBase64Encoded": "AA"}]})

    async with _client(handler) as client:
        result = await client.predict("imagen-3.0-generate-001", {"instances": [{"prompt": "cat"}]})

    assert result == {"predictions": [{"bytesBase64Encoded": "AA"}]}
    assert seen["url"] == (
        "https://aiplatform.googleapis.com/v1/projects/proj/locations/us-central1"
        "/publishers/google/models/imagen-3.0-generate-001:predict"
    )
    assert seen["headers"]["x-goog-api-key"] == "test-key"
    assert "authorization" not in seen["headers"]
    assert seen["body"] == {"instances": [{"prompt": "cat"}]}


@pytest.mark.unit
async def test_get_operation():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/v1/projects/proj/locations/us-central1/operations/42"
        return httpx.Response(200, json={"name": "op", "done": False})

    async with _client(handler) as client:
        result = await client.get_operation("projects/proj/locations/us-central1/operations/42")

    assert result["done"] is False


@pytest.mark.unit
async def test_synthesize_speech_endpoint():
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "https://texttospeech.googleapis.com/v1/text:synthesize"
        return httpx.Response(200, json={"audioContent": "SUQz"})

    async with _client(handler) as client:
        result = await client.synthesize_speech({"input": {"text": "hi"}})

    assert result == {"audioContent": "SUQz"}


@pytest.mark.unit
async def test_http_error_raises_status_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"message": "Invalid prompt"}})

    async with _client(handler) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await client.predict("veo-001", {})


@pytest.mark.unit
async def test_resource_name_requires_project():
    async with _client(lambda r: httpx.Response(200, json={}), project_id=None) as client:
        with pytest.raises(RuntimeError, match="GOOGLE_CLOUD_PROJECT_ID is required"):
            client.resource_name("veo-001")


@pytest.mark.unit
async def test_custom_endpoint_and_location():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        return httpx.Response(200, json={})

    async with _client(
        handler, location="europe-west4", vertex_endpoint="https://europe-west4-aiplatform.googleapis.com/v1"
    ) as client:
        await client.predict("lyria-001", {})

    assert seen["url"].startswith(
        "https://europe-west4-aiplatform.googleapis.com/v1/projects/proj/locations/europe-west4/"
    )


@pytest.mark.unit
async def test_stream_download_gs_uri():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        return httpx.Response(200, content=b"video-bytes")

    async with _client(handler) as client:
        async with client.stream_download("gs://my-bucket/path/to/video.mp4") as chunks:
            data = b"".join([chunk async for chunk in chunks])

    assert data == b"video-bytes"
    assert seen["url"] == "https://storage.googleapis.com/storage/v1/b/my-bucket/o/path%2Fto%2Fvideo.mp4?alt=media"
    assert seen["headers"]["x-goog-api-key"] == "test-key"


@pytest.mark.unit
async def test_stream_download_https_is_anonymous():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["headers"] = request.headers
        return httpx.Response(200, content=b"audio")

    async with _client(handler) as client:
        async with client.stream_download("https://cdn.example.com/a.mp3") as chunks:
            data = b"".join([chunk async for chunk in chunks])

    assert data == b"audio"
    assert "x-goog-api-key" not in seen["headers"]


# ------------------------------------------------------------------
# TokenProvider
# ------------------------------------------------------------------


@pytest.mark.unit
async def test_token_provider_bearer_from_credentials(mocker):
    credentials = mocker.MagicMock()
    credentials.valid = False
    credentials.token = "ya29.token"
    mocker.patch("sosaku.vertex.auth.load_credentials", return_value=credentials)

    provider = TokenProvider(GoogleAIConfig(project_id="proj"))
    headers = await provider.headers()

    assert headers == {"Authorization": "Bearer ya29.token", "x-goog-user-project": "proj"}
    credentials.refresh.assert_called_once()


@pytest.mark.unit
async def test_token_provider_skips_refresh_when_valid(mocker):
    credentials = mocker.MagicMock()
    credentials.valid = True
    credentials.token = "cached"
    mocker.patch("sosaku.vertex.auth.load_credentials", return_value=credentials)

    token = await TokenProvider(GoogleAIConfig(project_id="proj")).get_auth_token()

    assert token == "cached"
    credentials.refresh.assert_not_called()
