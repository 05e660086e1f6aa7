# SPDX-License-Identifier: MIT
"""Unit tests for the long-running operation poller."""

import httpx
import pytest

from sosaku.config import PollSettings
from sosaku.exceptions import GenerationError, GenerationTimeoutError
from sosaku.vertex.polling import await_prediction, poll_operation

FAST = PollSettings(max_wait=5, interval=0)


class FakeOperations:
    """Returns queued responses in order; exceptions in the queue are raised."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self.calls: list[str] = []

    async def get_operation(self, operation_name: str):
        self.calls.append(operation_name)
        item = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(item, Exception):
            raise item
        return item


def _done(prediction):
    return {"done": True, "response": {"predictions": [prediction]}}


@pytest.mark.unit
async def test_returns_first_prediction_when_done():
    ops = FakeOperations({"done": False}, {"done": False}, _done({"videoUri": "gs://b/v.mp4"}))

    result = await poll_operation(ops, "operations/123", FAST, "Video generation")

    assert result == {"videoUri": "gs://b/v.mp4"}
    assert ops.calls == ["operations/123"] * 3


@pytest.mark.unit
async def test_terminal_error_is_raised_without_retry():
    ops = FakeOperations({"done": True, "error": {"code": 3, "message": "Prompt rejected"}})

    with pytest.raises(GenerationError, match="Video generation failed: Prompt rejected"):
        await poll_operation(ops, "operations/1", FAST, "Video generation")

    assert len(ops.calls) == 1


@pytest.mark.unit
async def test_terminal_error_is_not_a_timeout():
    ops = FakeOperations({"done": True, "error": {"message": "quota"}})

    with pytest.raises(GenerationError) as exc_info:
        await poll_operation(ops, "operations/1", FAST)

    assert not isinstance(exc_info.value, GenerationTimeoutError)


@pytest.mark.unit
async def test_transient_errors_are_swallowed():
    request = httpx.Request("GET", "https://example.test/operations/1")
    ops = FakeOperations(
        httpx.ConnectError("connection reset", request=request),
        ValueError("bad json"),
        _done({"bytesBase64Encoded": "AAAA"}),
    )

    result = await poll_operation(ops, "operations/1", FAST, "Music generation")

    assert result == {"bytesBase64Encoded": "AAAA"}
    assert len(ops.calls) == 3


@pytest.mark.unit
async def test_non_object_status_body_is_retried():
    ops = FakeOperations(["unexpected"], "maintenance", _done({"videoUri": "gs://b/v.mp4"}))

    result = await poll_operation(ops, "operations/9", FAST, "Video generation")

    assert result == {"videoUri": "gs://b/v.mp4"}
    assert len(ops.calls) == 3


@pytest.mark.unit
async def test_done_without_predictions_keeps_polling():
    ops = FakeOperations({"done": True, "response": {}}, _done({"audioUri": "https://x/a.mp3"}))

    result = await poll_operation(ops, "operations/1", FAST)

    assert result == {"audioUri": "https://x/a.mp3"}
    assert len(ops.calls) == 2


@pytest.mark.unit
async def test_timeout_when_never_done():
    ops = FakeOperations({"done": False})

    with pytest.raises(GenerationTimeoutError, match="Music generation timeout"):
        await poll_operation(ops, "operations/1", PollSettings(max_wait=0.05, interval=0.01), "Music generation")

    assert len(ops.calls) >= 1


@pytest.mark.unit
async def test_timeout_when_errors_persist():
    ops = FakeOperations(ValueError("still broken"))

    with pytest.raises(GenerationTimeoutError):
        await poll_operation(ops, "operations/1", PollSettings(max_wait=0.05, interval=0.01))


# ------------------------------------------------------------------
# await_prediction
# ------------------------------------------------------------------


@pytest.mark.unit
async def test_await_prediction_uses_inline_predictions():
    ops = FakeOperations({"done": False})

    result = await await_prediction(ops, {"predictions": [{"bytesBase64Encoded": "AA"}]}, FAST)

    assert result == {"bytesBase64Encoded": "AA"}
    assert ops.calls == []


@pytest.mark.unit
async def test_await_prediction_polls_operation_name():
    ops = FakeOperations(_done({"videoUri": "gs://b/o"}))

    result = await await_prediction(ops, {"name": "projects/p/operations/9"}, FAST, "Video generation")

    assert result == {"videoUri": "gs://b/o"}
    assert ops.calls == ["projects/p/operations/9"]


@pytest.mark.unit
async def test_await_prediction_without_result():
    with pytest.raises(GenerationError, match="No video generation result received"):
        await await_prediction(FakeOperations({}), {}, FAST, "Video generation")
