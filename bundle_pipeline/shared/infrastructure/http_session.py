"""
HTTP Session
============
Thin httpx wrapper shared by the preparer and relay clients.

Without an injected client every call opens and closes its own
`httpx.AsyncClient`; tests inject one backed by `httpx.MockTransport`.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Tuple

import httpx


class JsonEndpoint:
    """POSTs JSON to paths under one base URL."""

    def __init__(self, base_url: str, timeout: float, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @asynccontextmanager
    async def session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def post_json(self, path: str, payload: Dict[str, Any]) -> Tuple[int, Optional[Any]]:
        """
        POST `payload` to `base_url + path`.

        Returns:
            (status_code, decoded body or None if the body is not JSON)

        Raises:
            httpx.HTTPError: network failure or timeout
        """
        async with self.session() as client:
            response = await client.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)

        try:
            return response.status_code, response.json()
        except ValueError:
            return response.status_code, None
