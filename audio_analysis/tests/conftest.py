"""Shared fixtures: a model client that records calls instead of hitting Bedrock."""

from __future__ import annotations

import pytest

from audio_analysis.services.media import MediaItem


class RecordingClient:
    def __init__(self, reply: str = "Hello world") -> None:
        self.reply = reply
        self.error: Exception | None = None
        self.calls: list[tuple[str, str, list[MediaItem]]] = []

    def complete(self, system_prompt: str, user_prompt: str, media: list[MediaItem]) -> str:
        self.calls.append((system_prompt, user_prompt, list(media)))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def recording_client() -> RecordingClient:
    return RecordingClient()
