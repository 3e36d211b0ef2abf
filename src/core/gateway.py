import base64
import time
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

import httpx
from loguru import logger

from domain.errors import (
    CredentialRejectedError,
    ExtractionError,
    ForbiddenError,
    InvalidRequestError,
    TransportError,
    UpstreamError,
)
from domain.models import ExtractionRequest, ProcessedDocument
from src.adapters.upstream import UpstreamClient
from src.core.audit_logger import audit_logger
from src.core.extractor import Extractor
from src.core.normalizer import extract_entities, extract_text
from src.core.probes import DEFAULT_PROBES, EncodedFile, Probe
from src.monitoring.metrics import (
    ENTITIES_EMITTED_TOTAL,
    PROBE_ACCEPTED_TOTAL,
    PROBE_ATTEMPTS_TOTAL,
    REQUEST_FAILURES_TOTAL,
    REQUEST_LATENCY_MS,
    REQUESTS_TOTAL,
)

INVALID_KEY_MESSAGE = "Invalid API key or authentication failed. Please check your LandingAI API key."
FORBIDDEN_MESSAGE = "Access forbidden. Please check your API key permissions."
NETWORK_ERROR_MESSAGE = "Network error occurred"


def validate_request(request: ExtractionRequest):
    if request.file_bytes is None or not request.file_name:
        raise InvalidRequestError("No file provided")
    if not request.credential:
        raise InvalidRequestError("No API key provided")


class ExtractionGateway(Extractor):
    def __init__(self, upstream: UpstreamClient, probes: Sequence[Probe] = DEFAULT_PROBES):
        if not probes:
            raise ValueError("At least one probe is required")
        self.upstream = upstream
        self.probes = tuple(probes)

    async def _probe(self, request: ExtractionRequest, encoded: EncodedFile) -> Tuple[httpx.Response, Probe]:
        """Walk the probe table, moving on only after a 401."""
        response: Optional[httpx.Response] = None
        probe = self.probes[0]
        for step, probe in enumerate(self.probes, start=1):
            PROBE_ATTEMPTS_TOTAL.labels(probe=probe.name).inc()
            try:
                response = await self.upstream.send(probe.build(request.credential, encoded))
            except httpx.HTTPError as e:
                logger.error(f"Fetch error on probe {step} ({probe.name}): {e!r}")
                raise TransportError(NETWORK_ERROR_MESSAGE) from e

            if response.status_code != 401:
                break
            logger.debug(f"Probe {step} ({probe.name}) rejected with 401")

        if response.status_code != 401:
            PROBE_ACCEPTED_TOTAL.labels(probe=probe.name).inc()
        return response, probe

    @staticmethod
    def _raise_for_status(response: httpx.Response):
        if response.is_success:
            return
        error_text = response.text
        logger.error(f"LandingAI API Error ({response.status_code}): {error_text}")
        if response.status_code == 401:
            raise CredentialRejectedError(INVALID_KEY_MESSAGE)
        if response.status_code == 403:
            raise ForbiddenError(FORBIDDEN_MESSAGE)
        raise UpstreamError(f"LandingAI API error ({response.status_code}): {error_text}")

    async def extract(self, request: ExtractionRequest) -> ProcessedDocument:
        request_id = str(uuid.uuid4())
        REQUESTS_TOTAL.inc()
        started = time.perf_counter()
        logger.info(f"Processing request {request_id} for file {request.file_name}")

        probe = None
        upstream_status = None
        try:
            validate_request(request)
            encoded = EncodedFile(
                payload=base64.b64encode(request.file_bytes).decode("ascii"),
                file_name=request.file_name,
                file_type=request.file_type,
            )

            response, probe = await self._probe(request, encoded)
            upstream_status = response.status_code
            self._raise_for_status(response)

            try:
                payload = response.json()
            except ValueError as e:
                raise UpstreamError(f"Failed to process document: {e}") from e

            document = ProcessedDocument(
                raw_payload=payload,
                extracted_text=extract_text(payload),
                entities=extract_entities(payload),
                file_name=request.file_name,
                file_size=request.file_size,
                processed_at=datetime.now(timezone.utc),
            )
        except ExtractionError as e:
            REQUEST_FAILURES_TOTAL.labels(reason=type(e).__name__).inc()
            audit_logger.log_extraction(
                request_id=request_id,
                file_name=request.file_name,
                status="error",
                probe=probe.name if probe else None,
                upstream_status=upstream_status,
            )
            raise
        finally:
            REQUEST_LATENCY_MS.observe((time.perf_counter() - started) * 1000)

        ENTITIES_EMITTED_TOTAL.inc(len(document.entities))
        audit_logger.log_extraction(
            request_id=request_id,
            file_name=request.file_name,
            status="completed",
            probe=probe.name,
            upstream_status=upstream_status,
            entity_count=len(document.entities),
        )
        return document
