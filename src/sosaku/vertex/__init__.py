# SPDX-License-Identifier: MIT
"""Google generative API access: credentials, REST client and operation polling."""

from .client import SAFETY_SETTINGS, VertexClient, get_vertex_client
from .polling import await_prediction, poll_operation

__all__ = ["SAFETY_SETTINGS", "VertexClient", "get_vertex_client", "await_prediction", "poll_operation"]
