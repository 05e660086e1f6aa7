# SPDX-License-Identifier: MIT
"""Long-running operation poller.

Video and music generation return an operation handle instead of a result.
The poller checks the operation at a fixed interval until it reports
completion, a terminal error, or the maximum wait elapses.
"""

import time
from typing import Any, Protocol

import anyio
import httpx

from ..config import PollSettings, logger
from ..exceptions import GenerationError, GenerationTimeoutError


class OperationSource(Protocol):
    async def get_operation(self, operation_name: str) -> dict[str, Any]: ...


async def poll_operation(
    client: OperationSource,
    operation_name: str,
    settings: PollSettings,
    label: str = "Generation",
) -> dict[str, Any]:
    """Wait for a long-running operation and return its first prediction.

    Transient request failures are logged and retried until the timeout.
    A ``done`` operation carrying ``error`` fails immediately. A ``done``
    operation without predictions is polled again.

    Args:
        client: Anything with an async ``get_operation(name)``
        operation_name: Operation handle returned by the start call
        settings: Maximum wait and fixed poll interval, in seconds
        label: Used in log lines and error messages, e.g. "Video generation"

    Returns:
        The first entry of ``response.predictions``

    Raises:
        GenerationError: If the operation finished with an error
        GenerationTimeoutError: If the operation did not finish in time
    """
    start = time.monotonic()
    logger.info("Monitoring %s progress (%s)", label.lower(), operation_name)

    while time.monotonic() - start < settings.max_wait:
        try:
            operation = await client.get_operation(operation_name)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Polling error for %s, retrying: %s", operation_name, e)
        else:
            if not isinstance(operation, dict):
                logger.warning("Unexpected status body for %s, retrying: %r", operation_name, operation)
            elif operation.get("done"):
                error = operation.get("error")
                if error:
                    message = error.get("message", error) if isinstance(error, dict) else error
                    raise GenerationError(f"{label} failed: {message}")

                predictions = (operation.get("response") or {}).get("predictions") or []
                if predictions:
                    logger.info("%s finished after %ds", label, int(time.monotonic() - start))
                    return predictions[0]

            logger.info("Still generating... (%ds elapsed)", int(time.monotonic() - start))

        await anyio.sleep(settings.interval)

    raise GenerationTimeoutError(f"{label} timeout")


async def await_prediction(
    client: OperationSource,
    start_response: dict[str, Any],
    settings: PollSettings,
    label: str = "Generation",
) -> dict[str, Any]:
    """Resolve the response of a start call to a single prediction.

    A response carrying an operation ``name`` is polled; one carrying
    ``predictions`` is used directly.

    Raises:
        GenerationError: If the response carries neither
    """
    if start_response.get("name"):
        return await poll_operation(client, start_response["name"], settings, label)

    predictions = start_response.get("predictions") or []
    if predictions:
        return predictions[0]

    raise GenerationError(f"No {label.lower()} result received")
