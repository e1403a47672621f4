"""Audio analysis: the single path from normalised media to model text.

``AudioAnalyzer.analyze`` is the only place that calls the model. It
sends a fixed system instruction, the user's prompt and the ordered
media list, then applies the off-topic guardrail: when the model
answers with the exact refusal sentence (case-insensitive) the request
fails with ``OffTopicError`` instead of returning that sentence.

Only the exact sentence is matched. Rephrased refusals from the model
are returned as normal text.

``AudioAnalysisService`` holds the four entry flows (bundled, uploaded,
URL, Base64). Each validates the prompt first, so a blank prompt is
always reported before any input-specific error.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path

import httpx

from audio_analysis.services import media as normalizer
from audio_analysis.services.errors import EmptyInputError, NoValidMediaError, OffTopicError
from audio_analysis.services.media import Base64Audio, MediaItem, UploadedAudio
from audio_analysis.services.model_client import AudioModelClient
from audio_analysis.telemetry import trace_span

logger = logging.getLogger(__name__)

OFF_TOPIC_RESPONSE = "Error: I can only analyze audio and answer related questions."

SYSTEM_PROMPT = f"""\
You are an AI assistant that specializes in audio analysis.
Your task is to analyze the provided audio file(s) and answer the user's question.
Common tasks are transcribing speech to text or summarizing the content.
If the user's prompt is not related to analyzing the audio,
respond with the exact phrase: '{OFF_TOPIC_RESPONSE}'
"""


@dataclass(frozen=True)
class AnalysisResult:
    text: str


class AudioAnalyzer:
    def __init__(self, client: AudioModelClient, system_prompt: str = SYSTEM_PROMPT) -> None:
        self.client = client
        self.system_prompt = system_prompt

    async def analyze(self, prompt: str, media: list[MediaItem]) -> AnalysisResult:
        if not media:
            raise NoValidMediaError("No valid audio files were provided for analysis.")

        start = time.perf_counter()
        with trace_span("model.complete", {"media.count": len(media)}) as span:
            text = await asyncio.to_thread(self.client.complete, self.system_prompt, prompt, media)
            span.set_attribute("response.chars", len(text))

        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        logger.info(
            "Model answered %d chars for %d audio file(s) (%.1fms)",
            len(text), len(media), duration_ms,
            extra={"media_count": len(media), "duration_ms": duration_ms},
        )

        if text.lower() == OFF_TOPIC_RESPONSE.lower():
            raise OffTopicError("The provided prompt is not related to audio analysis.")

        return AnalysisResult(text=text)


def validate_prompt(prompt: str | None) -> str:
    if not prompt or not prompt.strip():
        raise EmptyInputError("Prompt cannot be empty.")
    return prompt


class AudioAnalysisService:
    """Entry flows: validate prompt, normalise input, analyze."""

    def __init__(
        self,
        analyzer: AudioAnalyzer,
        *,
        resource_dir: Path | None = None,
        url_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.analyzer = analyzer
        self.resource_dir = resource_dir
        self.url_transport = url_transport

    async def analyze_bundled(self, file_name: str | None, prompt: str | None) -> AnalysisResult:
        prompt = validate_prompt(prompt)
        item = normalizer.from_bundled_reference(file_name, self.resource_dir)
        return await self.analyzer.analyze(prompt, [item])

    async def analyze_uploads(self, files: list[UploadedAudio] | None, prompt: str | None) -> AnalysisResult:
        prompt = validate_prompt(prompt)
        return await self.analyzer.analyze(prompt, normalizer.from_uploaded_files(files))

    async def analyze_urls(self, urls: list[str] | None, prompt: str | None) -> AnalysisResult:
        prompt = validate_prompt(prompt)
        media = await normalizer.from_urls(urls, transport=self.url_transport)
        return await self.analyzer.analyze(prompt, media)

    async def analyze_base64(self, items: list[Base64Audio] | None, prompt: str | None) -> AnalysisResult:
        prompt = validate_prompt(prompt)
        return await self.analyzer.analyze(prompt, normalizer.from_base64(items))
