from typing import Any, List

from pydantic import BaseModel


class EntitySchema(BaseModel):
    type: str
    value: str
    confidence: float


class ExtractResponse(BaseModel):
    data: Any = None
    extractedText: str
    entities: List[EntitySchema]
    fileName: str
    fileSize: int
    processedAt: str


class ErrorResponse(BaseModel):
    error: str
