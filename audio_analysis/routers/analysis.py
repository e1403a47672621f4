"""Audio analysis endpoints: bundled file, uploads, URLs and Base64."""

from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, Depends, File, Form, UploadFile

from audio_analysis.models.analysis import (
    AudioAnalysisRequest,
    AudioAnalysisResponse,
    Base64AudioAnalysisRequest,
)
from audio_analysis.services.analyzer import AnalysisResult, AudioAnalysisService, AudioAnalyzer
from audio_analysis.services.media import Base64Audio, UploadedAudio
from audio_analysis.services.model_client import build_model_client

router = APIRouter(prefix="/api/v1/audio/analysis", tags=["audio-analysis"])


@lru_cache(maxsize=1)
def get_analysis_service() -> AudioAnalysisService:
    """Process-wide service; the model client is stateless and shared."""
    return AudioAnalysisService(AudioAnalyzer(build_model_client()))


def _envelope(result: AnalysisResult) -> AudioAnalysisResponse:
    return AudioAnalysisResponse(response=result.text)


@router.post("/from-classpath", response_model=AudioAnalysisResponse)
async def analyze_from_bundled(
    body: AudioAnalysisRequest,
    service: AudioAnalysisService = Depends(get_analysis_service),
) -> AudioAnalysisResponse:
    """Analyze one file from the bundled audio set."""
    return _envelope(await service.analyze_bundled(body.file_name, body.prompt))


@router.post("/from-files", response_model=AudioAnalysisResponse)
async def analyze_from_files(
    audio_files: list[UploadFile] | None = File(None, alias="audioFiles"),
    prompt: str | None = Form(None),
    service: AudioAnalysisService = Depends(get_analysis_service),
) -> AudioAnalysisResponse:
    """Analyze one or more uploaded audio files (multipart/form-data)."""
    uploads = [
        UploadedAudio(data=await f.read(), content_type=f.content_type, filename=f.filename)
        for f in audio_files or []
    ]
    return _envelope(await service.analyze_uploads(uploads, prompt))


@router.post("/from-urls", response_model=AudioAnalysisResponse)
async def analyze_from_urls(
    body: AudioAnalysisRequest,
    service: AudioAnalysisService = Depends(get_analysis_service),
) -> AudioAnalysisResponse:
    """Analyze audio fetched from one or more URLs."""
    return _envelope(await service.analyze_urls(body.audio_urls, body.prompt))


@router.post("/from-base64", response_model=AudioAnalysisResponse)
async def analyze_from_base64(
    body: Base64AudioAnalysisRequest,
    service: AudioAnalysisService = Depends(get_analysis_service),
) -> AudioAnalysisResponse:
    """Analyze one or more Base64-encoded audio payloads."""
    items = None
    if body.base64_audio_list is not None:
        items = [Base64Audio(mime_type=a.mime_type, data=a.data) for a in body.base64_audio_list]
    return _envelope(await service.analyze_base64(items, body.prompt))
