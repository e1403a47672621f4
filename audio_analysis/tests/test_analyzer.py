"""Tests for the analyzer guardrail and the four analysis flows."""

import base64
from pathlib import Path

import httpx
import pytest

from audio_analysis.services.analyzer import (
    OFF_TOPIC_RESPONSE,
    SYSTEM_PROMPT,
    AudioAnalysisService,
    AudioAnalyzer,
)
from audio_analysis.services.errors import (
    EmptyInputError,
    ErrorKind,
    NoValidMediaError,
    NotFoundError,
    OffTopicError,
)
from audio_analysis.services.media import Base64Audio, BytesSource, MediaItem, UploadedAudio


def _media(*payloads: bytes) -> list[MediaItem]:
    return [MediaItem("audio/wav", BytesSource(p)) for p in payloads]


class TestAnalyzer:
    @pytest.mark.asyncio
    async def test_sends_system_prompt_user_prompt_and_media_in_order(self, recording_client) -> None:
        media = _media(b"first", b"second", b"third")
        result = await AudioAnalyzer(recording_client).analyze("transcribe this", media)

        assert result.text == "Hello world"
        assert len(recording_client.calls) == 1
        system_prompt, user_prompt, sent = recording_client.calls[0]
        assert system_prompt == SYSTEM_PROMPT
        assert OFF_TOPIC_RESPONSE in system_prompt
        assert user_prompt == "transcribe this"
        assert [m.source.read() for m in sent] == [b"first", b"second", b"third"]

    @pytest.mark.asyncio
    async def test_injected_system_prompt_is_used(self, recording_client) -> None:
        await AudioAnalyzer(recording_client, system_prompt="Only audio.").analyze("x", _media(b"a"))
        assert recording_client.calls[0][0] == "Only audio."

    @pytest.mark.asyncio
    async def test_empty_media_never_reaches_model(self, recording_client) -> None:
        with pytest.raises(NoValidMediaError) as exc_info:
            await AudioAnalyzer(recording_client).analyze("transcribe", [])
        assert exc_info.value.kind is ErrorKind.NO_VALID_MEDIA
        assert recording_client.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", [OFF_TOPIC_RESPONSE, OFF_TOPIC_RESPONSE.upper(), OFF_TOPIC_RESPONSE.lower()])
    async def test_sentinel_reply_is_off_topic(self, recording_client, reply: str) -> None:
        recording_client.reply = reply
        with pytest.raises(OffTopicError, match="not related to audio analysis"):
            await AudioAnalyzer(recording_client).analyze("what is the capital of France?", _media(b"a"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", [
        "",
        OFF_TOPIC_RESPONSE + " Sorry!",
        "Error: I can only analyse audio and answer related questions.",
        " " + OFF_TOPIC_RESPONSE,
    ])
    async def test_other_replies_are_returned_verbatim(self, recording_client, reply: str) -> None:
        recording_client.reply = reply
        result = await AudioAnalyzer(recording_client).analyze("summarize", _media(b"a"))
        assert result.text == reply


@pytest.fixture
def service(recording_client) -> AudioAnalysisService:
    return AudioAnalysisService(AudioAnalyzer(recording_client))


class TestService:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("prompt", [None, "", "   \t"])
    async def test_blank_prompt_rejected_before_any_input_handling(self, service, recording_client, prompt) -> None:
        with pytest.raises(EmptyInputError, match="Prompt cannot be empty"):
            await service.analyze_bundled("missing.mp3", prompt)
        with pytest.raises(EmptyInputError, match="Prompt cannot be empty"):
            await service.analyze_uploads([], prompt)
        with pytest.raises(EmptyInputError, match="Prompt cannot be empty"):
            await service.analyze_urls([], prompt)
        with pytest.raises(EmptyInputError, match="Prompt cannot be empty"):
            await service.analyze_base64([Base64Audio("audio/wav", "@@@@")], prompt)
        assert recording_client.calls == []

    @pytest.mark.asyncio
    async def test_uploaded_wav_scenario(self, service, recording_client) -> None:
        result = await service.analyze_uploads(
            [UploadedAudio(data=b"RIFF", content_type="audio/wav", filename="hello.wav")],
            "transcribe this",
        )
        assert result.text == "Hello world"
        assert recording_client.calls[0][2][0].mime_type == "audio/wav"

    @pytest.mark.asyncio
    async def test_all_empty_uploads_do_not_call_model(self, service, recording_client) -> None:
        with pytest.raises(EmptyInputError):
            await service.analyze_uploads([UploadedAudio(data=b"")], "transcribe")
        assert recording_client.calls == []

    @pytest.mark.asyncio
    async def test_bundled(self, recording_client, tmp_path: Path) -> None:
        (tmp_path / "intro.mp3").write_bytes(b"ID3")
        service = AudioAnalysisService(AudioAnalyzer(recording_client), resource_dir=tmp_path)

        await service.analyze_bundled("intro.mp3", "summarize")
        assert recording_client.calls[0][2][0].mime_type == "audio/mp3"

        with pytest.raises(NotFoundError):
            await service.analyze_bundled("outro.mp3", "summarize")

    @pytest.mark.asyncio
    async def test_urls(self, recording_client) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, headers={"content-type": "audio/ogg"}))
        service = AudioAnalysisService(AudioAnalyzer(recording_client), url_transport=transport)

        await service.analyze_urls(["https://x.test/a.ogg"], "summarize")
        assert recording_client.calls[0][2][0].mime_type == "audio/ogg"

    @pytest.mark.asyncio
    async def test_base64(self, service, recording_client) -> None:
        encoded = base64.b64encode(b"pcm-data").decode()
        await service.analyze_base64([Base64Audio("audio/webm", encoded)], "summarize")
        sent = recording_client.calls[0][2][0]
        assert sent.mime_type == "audio/webm"
        assert sent.source.read() == b"pcm-data"

    @pytest.mark.asyncio
    async def test_off_topic_scenario(self, service, recording_client) -> None:
        recording_client.reply = OFF_TOPIC_RESPONSE
        with pytest.raises(OffTopicError):
            await service.analyze_uploads([UploadedAudio(data=b"x")], "what is the capital of France?")
