# Domain models shared by the gateway, the orchestrator and the API layer
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

PROCESSING = "processing"
COMPLETED = "completed"
ERROR = "error"


class InvalidTransitionError(RuntimeError):
    pass


@dataclass(frozen=True)
class Entity:
    type: str
    value: str
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "value": self.value, "confidence": self.confidence}


@dataclass(frozen=True)
class SourceFile:
    name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ExtractionRequest:
    file_bytes: bytes
    file_name: str
    file_type: str
    credential: str

    @property
    def file_size(self) -> int:
        return len(self.file_bytes)


@dataclass(frozen=True)
class ProcessedDocument:
    raw_payload: Any
    extracted_text: str
    entities: List[Entity]
    file_name: str
    file_size: int
    processed_at: datetime

    def to_payload(self) -> Dict[str, Any]:
        return {
            "data": self.raw_payload,
            "extractedText": self.extracted_text,
            "entities": [e.to_dict() for e in self.entities],
            "fileName": self.file_name,
            "fileSize": self.file_size,
            "processedAt": self.processed_at.isoformat(),
        }


@dataclass
class ExtractionResult:
    """Per-file state tracked by the orchestrator.

    Starts in ``processing`` and settles exactly once, either through
    :meth:`complete` or :meth:`fail`.
    """

    file_name: str
    status: str = PROCESSING
    raw_payload: Any = None
    extracted_text: Optional[str] = None
    entities: Optional[List[Entity]] = None
    error_message: Optional[str] = None
    history: List[str] = field(default_factory=lambda: [PROCESSING], repr=False)

    @property
    def is_settled(self) -> bool:
        return self.status != PROCESSING

    def _settle(self, status: str):
        if self.is_settled:
            raise InvalidTransitionError(
                f"{self.file_name} already settled as {self.status}, cannot move to {status}"
            )
        self.status = status
        self.history.append(status)

    def complete(self, document: ProcessedDocument):
        self._settle(COMPLETED)
        self.raw_payload = document.raw_payload
        self.extracted_text = document.extracted_text
        self.entities = list(document.entities)

    def fail(self, message: str):
        self._settle(ERROR)
        self.error_message = message

    def to_export(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "status": self.status,
            "data": self.raw_payload,
            "extractedText": self.extracted_text,
            "entities": [e.to_dict() for e in self.entities or []],
        }
