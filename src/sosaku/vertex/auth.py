# SPDX-License-Identifier: MIT
"""Authentication for Google generative APIs.

An API key, when configured, is used as-is. Otherwise OAuth access tokens come
from google-auth: the file named by ``GOOGLE_APPLICATION_CREDENTIALS`` or the
application-default credentials (``gcloud auth application-default login``).
"""

from functools import lru_cache

import anyio
import google.auth
from google.auth.credentials import Credentials
from google.auth.transport.requests import Request

from ..config import GoogleAIConfig, logger

SCOPES = [
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/generative-language",
]


@lru_cache(maxsize=4)
def load_credentials(credentials_path: str | None) -> Credentials:
    """Load (and cache) Google credentials.

    Cached per credentials file so the access token survives across tool calls.

    Raises:
        google.auth.exceptions.DefaultCredentialsError: If no credentials can be found
    """
    if credentials_path:
        credentials, _ = google.auth.load_credentials_from_file(credentials_path, scopes=SCOPES)
    else:
        credentials, _ = google.auth.default(scopes=SCOPES)
    return credentials


class TokenProvider:
    """Supplies request headers carrying the configured credential."""

    def __init__(self, config: GoogleAIConfig) -> None:
        self._config = config

    async def get_auth_token(self) -> str:
        """Return the API key, or a fresh OAuth access token."""
        if self._config.api_key:
            return self._config.api_key

        credentials = await anyio.to_thread.run_sync(load_credentials, self._config.credentials_path)
        if not credentials.valid:
            # refresh performs blocking HTTP
            await anyio.to_thread.run_sync(credentials.refresh, Request())
            logger.debug("Refreshed Google access token")
        return credentials.token or ""

    async def headers(self) -> dict[str, str]:
        token = await self.get_auth_token()
        if self._config.api_key:
            return {"x-goog-api-key": token}
        headers = {"Authorization": f"Bearer {token}"}
        if self._config.project_id:
            headers["x-goog-user-project"] = self._config.project_id
        return headers
