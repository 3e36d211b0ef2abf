from datetime import datetime, timezone
from typing import List, Optional, Sequence

import httpx

from domain.models import Entity, ExtractionRequest, ProcessedDocument
from src.adapters.upstream import UpstreamClient
from src.core.gateway import ExtractionGateway

UPSTREAM_URL = "https://upstream.test/inference/v1/predict"


class FakeUpstream:
    """Answers with the given statuses in order, repeating the last one."""

    def __init__(self, statuses: Sequence[int], payload=None, body_text: Optional[str] = None):
        self.statuses = list(statuses)
        self.payload = payload if payload is not None else {"predictions": [{"text": "ok"}]}
        self.body_text = body_text
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status = self.statuses[min(len(self.requests), len(self.statuses)) - 1]
        if self.body_text is not None:
            return httpx.Response(status, text=self.body_text)
        if 200 <= status < 300:
            return httpx.Response(status, json=self.payload)
        return httpx.Response(status, text=f"upstream said {status}")


def build_gateway(handler) -> ExtractionGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ExtractionGateway(upstream=UpstreamClient(UPSTREAM_URL, http_client=client))


def make_request(content: bytes = b"%PDF-1.4 sample", credential: str = "secret-key") -> ExtractionRequest:
    return ExtractionRequest(
        file_bytes=content,
        file_name="invoice.pdf",
        file_type="application/pdf",
        credential=credential,
    )


def make_document(file_name: str = "invoice.pdf", text: str = "hello") -> ProcessedDocument:
    return ProcessedDocument(
        raw_payload={"predictions": [{"extracted_text": text}]},
        extracted_text=text,
        entities=[Entity(type="NAME", value="Jane", confidence=0.9)],
        file_name=file_name,
        file_size=10,
        processed_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )
