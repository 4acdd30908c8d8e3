"""Async HTTP transport adapter shared by the CircleCI and Terraform clients."""
import logging
from typing import Any, Dict, Optional

import httpx

from .errors import RequestFailedError

logger = logging.getLogger(__name__)


class ApiClient:
    """Thin wrapper around httpx.AsyncClient that normalizes failures.

    Every non-2xx response and every transport error is raised as
    RequestFailedError carrying the status code and reason phrase.
    """

    def __init__(
        self,
        base_url: str,
        headers: Dict[str, str],
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def request(self, method: str, path: str, json: Optional[Any] = None) -> Any:
        """
        Send a request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Path relative to the base URL, or an absolute URL
            json: Optional request body

        Returns:
            Decoded JSON body, or None for an empty response

        Raises:
            RequestFailedError: On transport errors or 4xx/5xx responses
        """
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.debug(f"Full httpx error for debugging: {e!r}")
            raise RequestFailedError(None, str(e) or type(e).__name__, method, path) from e

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.debug(f"Full httpx error for debugging: {e!r} body={response.text}")
            raise RequestFailedError(
                response.status_code, response.reason_phrase, method, str(response.url)
            ) from e

        logger.debug(f"{method} {response.url} -> {response.status_code}")
        if not response.content:
            return None
        return response.json()

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, json: Any) -> Any:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, json: Any) -> Any:
        return await self.request("PATCH", path, json=json)
