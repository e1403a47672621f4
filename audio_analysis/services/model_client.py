"""Multimodal model clients.

The analyzer talks to the model through one synchronous call,
``complete(system_prompt, user_prompt, media) -> str``. The live client
sends the audio to a Bedrock model; the mock client answers offline so
the service stays runnable without AWS credentials.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from audio_analysis.config import settings
from audio_analysis.services.errors import ModelInvocationError
from audio_analysis.services.media import MediaItem

logger = logging.getLogger(__name__)

_AUDIO_FORMATS = {
    "mp3": "mp3",
    "mpeg": "mp3",
    "wav": "wav",
    "x-wav": "wav",
    "wave": "wav",
    "ogg": "ogg",
    "webm": "webm",
    "flac": "flac",
    "aac": "aac",
    "mp4": "m4a",
    "m4a": "m4a",
    "x-m4a": "m4a",
}


class AudioModelClient(Protocol):
    def complete(self, system_prompt: str, user_prompt: str, media: list[MediaItem]) -> str: ...


def audio_format(mime_type: str) -> str:
    """Map a MIME type such as ``audio/x-wav`` onto a short format name."""
    subtype = mime_type.split(";", 1)[0].strip().lower().rpartition("/")[2]
    return _AUDIO_FORMATS.get(subtype, subtype)


class BedrockAudioClient:
    """Sends system text, audio blocks and the prompt to a Bedrock model."""

    def __init__(
        self,
        model_id: str | None = None,
        *,
        client: Any = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> None:
        self.model_id = model_id or settings.bedrock_model_id
        self.max_tokens = max_tokens or settings.model_max_tokens
        self.temperature = settings.model_temperature if temperature is None else temperature
        self._client = client

    @property
    def client(self) -> Any:
        # boto3 clients are thread-safe, so one instance serves every request
        if self._client is None:
            self._client = boto3.client(
                "bedrock-runtime",
                region_name=settings.aws_region,
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
            )
        return self._client

    def build_body(self, system_prompt: str, user_prompt: str, media: list[MediaItem]) -> dict[str, Any]:
        content: list[dict[str, Any]] = [
            {
                "audio": {
                    "format": audio_format(item.mime_type),
                    "source": {"bytes": base64.b64encode(item.source.read()).decode()},
                }
            }
            for item in media
        ]
        content.append({"text": user_prompt})
        return {
            "schemaVersion": "messages-v1",
            "system": [{"text": system_prompt}],
            "messages": [{"role": "user", "content": content}],
            "inferenceConfig": {"maxTokens": self.max_tokens, "temperature": self.temperature},
        }

    def complete(self, system_prompt: str, user_prompt: str, media: list[MediaItem]) -> str:
        try:
            body = self.build_body(system_prompt, user_prompt, media)
        except OSError as exc:
            raise ModelInvocationError("Failed to read audio for analysis.") from exc

        try:
            response = self.client.invoke_model(
                modelId=self.model_id,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(body),
            )
            raw = json.loads(response["body"].read())
            blocks = raw["output"]["message"]["content"]
        except (BotoCoreError, ClientError, KeyError, TypeError, json.JSONDecodeError) as exc:
            logger.error("Bedrock invocation failed for %s: %s", self.model_id, exc)
            raise ModelInvocationError("The audio analysis model is unavailable.") from exc

        return "".join(block.get("text", "") for block in blocks)


class MockAudioClient:
    """Deterministic offline stand-in used when AWS credentials are missing."""

    def complete(self, system_prompt: str, user_prompt: str, media: list[MediaItem]) -> str:
        formats = ", ".join(audio_format(item.mime_type) for item in media)
        return (
            f"(Mock analysis - no AWS credentials configured.) "
            f"Received {len(media)} audio file(s) [{formats}] for prompt: {user_prompt}"
        )


def build_model_client() -> AudioModelClient:
    if settings.has_aws_credentials:
        logger.info("Using Bedrock model %s", settings.bedrock_model_id)
        return BedrockAudioClient()
    logger.info("No AWS credentials - using mock model client")
    return MockAudioClient()
