from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from prometheus_client import make_asgi_app

from api.dependencies import get_extraction_service, get_settings
from api.schemas import ErrorResponse, ExtractResponse
from domain.errors import ExtractionError, InvalidRequestError
from domain.models import ExtractionRequest
from src.core.audit_logger import configure_logging
from src.core.gateway import ExtractionGateway

app = FastAPI(title="Document Extraction Gateway", version="1.0.0")
app.mount("/metrics", make_asgi_app())

_error_responses = {code: {"model": ErrorResponse} for code in (400, 401, 403, 500, 502)}


@app.on_event("startup")
async def startup_event():
    configure_logging(get_settings())
    logger.info("Starting extraction gateway...")


@app.on_event("shutdown")
async def shutdown_event():
    if get_extraction_service.cache_info().currsize:
        await get_extraction_service().upstream.aclose()


@app.exception_handler(ExtractionError)
async def extraction_error_handler(request: Request, exc: ExtractionError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    field = None
    for error in exc.errors():
        loc = error.get("loc") or ()
        if loc:
            field = loc[-1]
            break
    if field == "file":
        message = "No file provided"
    elif field == "apiKey":
        message = "No API key provided"
    else:
        message = "Malformed request"
    logger.warning(f"Rejected malformed request at field {field!r}")
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Document extraction error")
    return JSONResponse(
        status_code=500,
        content={"error": f"Failed to process document: {exc}"},
    )


@app.get("/health")
async def health_check():
    settings = get_settings()
    return {
        "status": "healthy",
        "upstream": settings.upstream_url,
        "version": settings.version,
    }


@app.post("/api/extract-document", response_model=ExtractResponse, responses=_error_responses)
async def extract_document(
    file: Optional[UploadFile] = File(None),
    apiKey: Optional[str] = Form(None),
    service: ExtractionGateway = Depends(get_extraction_service),
):
    """Forward one uploaded file to the document-AI service and normalize its answer."""
    if file is None:
        raise InvalidRequestError("No file provided")
    if not apiKey:
        raise InvalidRequestError("No API key provided")

    content = await file.read()
    request = ExtractionRequest(
        file_bytes=content,
        file_name=file.filename or "",
        file_type=file.content_type or "",
        credential=apiKey,
    )
    document = await service.extract(request)
    return document.to_payload()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
