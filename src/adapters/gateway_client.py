from datetime import datetime
from typing import Optional

import httpx
from loguru import logger

from domain.errors import ExtractionError, TransportError
from domain.models import Entity, ExtractionRequest, ProcessedDocument
from src.core.extractor import Extractor

EXTRACT_PATH = "/api/extract-document"
# Five sequential upstream attempts at the default 60 s each, plus headroom
DEFAULT_TIMEOUT_SECONDS = 330.0


class HttpGatewayClient(Extractor):
    """Calls the extraction route over HTTP with the same form fields a browser sends."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def extract(self, request: ExtractionRequest) -> ProcessedDocument:
        files = {"file": (request.file_name, request.file_bytes, request.file_type)}
        data = {"apiKey": request.credential}
        try:
            response = await self._client.post(EXTRACT_PATH, files=files, data=data)
        except httpx.HTTPError as e:
            logger.error(f"Gateway call failed for {request.file_name}: {e!r}")
            raise TransportError("Network error occurred") from e

        try:
            body = response.json()
        except ValueError as e:
            raise ExtractionError("Processing failed", response.status_code) from e

        if not response.is_success:
            message = body.get("error") if isinstance(body, dict) else None
            raise ExtractionError(message or "Processing failed", response.status_code)

        return ProcessedDocument(
            raw_payload=body.get("data"),
            extracted_text=body.get("extractedText", ""),
            entities=[Entity(**e) for e in body.get("entities", [])],
            file_name=body.get("fileName", request.file_name),
            file_size=body.get("fileSize", request.file_size),
            processed_at=datetime.fromisoformat(body["processedAt"]),
        )

    async def aclose(self):
        await self._client.aclose()
