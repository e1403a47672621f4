"""Audio analysis service - FastAPI entry point."""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from audio_analysis.config import settings
from audio_analysis.logging_config import setup_logging
from audio_analysis.models.analysis import AudioAnalysisResponse, HealthStatus
from audio_analysis.routers import analysis
from audio_analysis.services.errors import AudioProcessingError
from audio_analysis.telemetry import instrument_fastapi

setup_logging(
    is_dev=settings.is_dev,
    level="DEBUG" if settings.is_dev else "INFO",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Audio Analysis API",
    description="Analyze bundled, uploaded, remote or Base64 audio with a multimodal model.",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

instrument_fastapi(app)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log every HTTP request with method, path, status, and duration."""
    request_id = uuid.uuid4().hex[:8]
    request.state.request_id = request_id
    start = time.perf_counter()

    response = await call_next(request)

    duration_ms = round((time.perf_counter() - start) * 1000, 1)
    logger.info(
        "%s %s -> %d (%.1fms)",
        request.method, request.url.path, response.status_code, duration_ms,
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": str(request.url.path),
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(AudioProcessingError)
async def audio_processing_error_handler(request: Request, exc: AudioProcessingError) -> JSONResponse:
    logger.warning(
        "Rejected %s: %s", request.url.path, exc.message,
        exc_info=exc if exc.__cause__ is not None else None,
        extra={"error_kind": exc.kind.value, "path": str(request.url.path)},
    )
    # Lone surrogates from echoed input cannot be encoded as UTF-8
    message = exc.message.encode("utf-8", "backslashreplace").decode("utf-8")
    body = AudioAnalysisResponse(response=message)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    location = ".".join(str(p) for p in errors[0]["loc"]) if errors else "body"
    message = f"Invalid request field: {location}"
    logger.warning("Rejected %s: %s", request.url.path, message, extra={"path": str(request.url.path)})
    return JSONResponse(status_code=400, content=AudioAnalysisResponse(response=message).model_dump())


app.include_router(analysis.router)


@app.get("/api/health", response_model=HealthStatus)
async def health() -> HealthStatus:
    return HealthStatus(
        mode="live" if settings.has_aws_credentials else "mock",
        aws_configured=settings.has_aws_credentials,
        model_id=settings.bedrock_model_id,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "audio_analysis.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.is_dev,
    )
