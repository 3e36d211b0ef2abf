from abc import ABC, abstractmethod

from domain.models import ExtractionRequest, ProcessedDocument


class Extractor(ABC):
    """One file in, one processed document out; failures raise ExtractionError."""

    @abstractmethod
    async def extract(self, request: ExtractionRequest) -> ProcessedDocument:
        pass
