"""
Backend Client — thin async HTTP wrapper around the marketplace REST API.
Adds the base URL and auth header, decodes JSON, and turns every non-2xx
answer into a BackendError so callers have one failure type to handle.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from regulatory_intake.config import get_settings
from regulatory_intake.errors import BackendError

logger = logging.getLogger(__name__)


class BackendClient:
    """Shared transport for every backend-facing service."""

    def __init__(
        self,
        base_url: str | None = None,
        auth_token: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        token = auth_token if auth_token is not None else settings.api_token

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.request_timeout_seconds,
            transport=transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None when empty)."""
        logger.debug(f"→ {method} {path}")
        response = await self._client.request(method, path, json=json, data=data, files=files)
        logger.debug(f"← {method} {path} {response.status_code}")

        if response.is_error:
            raise BackendError(response.status_code, _error_detail(response), method=method, url=path)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning(f"{method} {path} returned a non-JSON body")
            return None

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def _error_detail(response: httpx.Response) -> Any:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or body
    return body
