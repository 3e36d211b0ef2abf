from typing import Optional

import httpx
from loguru import logger

from src.core.probes import ProbeCall


class UpstreamClient:
    """Thin async wrapper around the document-AI predict endpoint."""

    def __init__(
        self,
        url: str,
        timeout: Optional[float] = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def send(self, call: ProbeCall) -> httpx.Response:
        logger.debug(f"POST {self.url} headers={sorted(call.headers)} params={sorted(call.params)}")
        return await self._client.post(
            self.url,
            headers=call.headers,
            params=call.params or None,
            json=call.body,
        )

    async def aclose(self):
        await self._client.aclose()
