# SPDX-License-Identifier: MIT
"""Unit tests for error wrapping."""

import httpx
import pytest

from sosaku.exceptions import GenerationError, GenerationTimeoutError, wrap_error

REQUEST = httpx.Request("POST", "https://aiplatform.googleapis.com/v1/models/x:predict")


@pytest.mark.unit
class TestWrapError:
    def test_http_status_error_uses_api_message(self):
        response = httpx.Response(403, json={"error": {"message": "Permission denied"}}, request=REQUEST)
        error = httpx.HTTPStatusError("403", request=REQUEST, response=response)

        wrapped = wrap_error(error, "Imagen image generation")

        assert str(wrapped) == "Imagen image generation failed: Permission denied (Status: 403)"

    def test_http_status_error_falls_back_to_reason_phrase(self):
        response = httpx.Response(500, text="<html>oops</html>", request=REQUEST)
        error = httpx.HTTPStatusError("500", request=REQUEST, response=response)

        wrapped = wrap_error(error, "Veo video generation")

        assert str(wrapped) == "Veo video generation failed: Internal Server Error (Status: 500)"

    def test_network_error(self):
        error = httpx.ConnectError("Connection refused", request=REQUEST)

        wrapped = wrap_error(error, "Chirp speech generation")

        assert str(wrapped) == "Chirp speech generation failed: Network error - Connection refused"

    def test_other_error(self):
        wrapped = wrap_error(ValueError("Prompt is required"), "Lyria music generation")

        assert isinstance(wrapped, GenerationError)
        assert str(wrapped) == "Lyria music generation failed: Prompt is required"

    def test_generation_error_passes_through(self):
        original = GenerationTimeoutError("Video generation timeout")

        assert wrap_error(original, "Veo video generation") is original

    def test_timeout_is_generation_error(self):
        assert issubclass(GenerationTimeoutError, GenerationError)
        assert issubclass(GenerationError, RuntimeError)
