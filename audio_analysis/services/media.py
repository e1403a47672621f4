"""Normalisation of audio inputs into ``MediaItem`` objects.

Four input shapes are accepted, and each one is converted into the same
``MediaItem(mime_type, source)`` pair so the analyzer never cares where
the audio came from:

  - bundled:  a named file from the service's own audio resource set
  - uploaded: multipart uploads (zero-length parts are dropped)
  - url:      remote audio, validated by its Content-Type header and
              streamed lazily when the model client reads it
  - base64:   inline payloads with a caller-declared MIME type

Construction is all-or-nothing: a failure on any item raises and no
partial list escapes.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx

from audio_analysis.config import settings
from audio_analysis.services.errors import (
    DecodeFailedError,
    EmptyInputError,
    FetchFailedError,
    InvalidInputError,
    InvalidMimeTypeError,
    NotFoundError,
)
from audio_analysis.telemetry import trace_span

logger = logging.getLogger(__name__)

WAV_MIME_TYPE = "audio/wav"
_WAV_CONTENT_TYPES = {"audio/wav", "audio/x-wav"}


# ---------------------------------------------------------------------------
# Byte sources
# ---------------------------------------------------------------------------

class ByteSource(Protocol):
    def read(self) -> bytes: ...


@dataclass(frozen=True)
class BytesSource:
    """Audio already held in memory (uploads, Base64 payloads)."""
    data: bytes

    def read(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class FileSource:
    """A bundled audio file, read from disk on demand."""
    path: Path

    def read(self) -> bytes:
        return self.path.read_bytes()


@dataclass(frozen=True)
class UrlSource:
    """Remote audio. Nothing is downloaded until ``read()`` is called."""
    url: str
    timeout: httpx.Timeout
    transport: httpx.BaseTransport | None = None

    def read(self) -> bytes:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(self.url, follow_redirects=True)
                response.raise_for_status()
                return response.content
        except Exception as exc:
            raise FetchFailedError(self.url) from exc


@dataclass(frozen=True)
class MediaItem:
    mime_type: str
    source: ByteSource

    def __post_init__(self) -> None:
        if not self.mime_type or not self.mime_type.strip():
            raise InvalidInputError("Media MIME type cannot be empty.")


@dataclass(frozen=True)
class UploadedAudio:
    """An uploaded file as received by the HTTP layer."""
    data: bytes
    content_type: str | None = None
    filename: str | None = None


@dataclass(frozen=True)
class Base64Audio:
    mime_type: str | None
    data: str | None


# ---------------------------------------------------------------------------
# MIME helpers
# ---------------------------------------------------------------------------

def determine_audio_mime_type(content_type: str | None) -> str:
    """Classify an upload's content type.

    Deliberately lossy: only WAV is recognised, every other hint
    (including a missing one) is reported as the default MP3 type.
    """
    if content_type and content_type.strip().lower() in _WAV_CONTENT_TYPES:
        return WAV_MIME_TYPE
    return settings.default_audio_mime_type


def url_timeout() -> httpx.Timeout:
    return httpx.Timeout(
        settings.url_read_timeout_seconds,
        connect=settings.url_connect_timeout_seconds,
        read=settings.url_read_timeout_seconds,
    )


# ---------------------------------------------------------------------------
# Normalisers
# ---------------------------------------------------------------------------

def from_bundled_reference(name: str | None, resource_dir: Path | None = None) -> MediaItem:
    """Look up ``name`` in the bundled audio set.

    The MIME type is always the default audio type; bundled content is
    not sniffed.
    """
    if not name or not name.strip():
        raise NotFoundError("File name cannot be empty.")

    missing = f"File not found in bundled audio: audio/{name}"
    base = (resource_dir or settings.audio_resource_dir).resolve()
    try:
        path = (base / name).resolve()
        found = path.parent == base and path.is_file()
    except (OSError, ValueError) as exc:
        raise NotFoundError(missing) from exc
    if not found:
        raise NotFoundError(missing)

    return MediaItem(settings.default_audio_mime_type, FileSource(path))


def from_uploaded_files(files: list[UploadedAudio] | None) -> list[MediaItem]:
    non_empty = [f for f in files or [] if f.data]
    if not non_empty:
        raise EmptyInputError("Audio files list cannot be empty.")

    return [
        MediaItem(determine_audio_mime_type(f.content_type), BytesSource(f.data))
        for f in non_empty
    ]


async def from_urls(
    urls: list[str] | None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    stream_transport: httpx.BaseTransport | None = None,
) -> list[MediaItem]:
    """Validate each URL's reported content type and build lazy sources.

    Only the response headers are read here. ``transport`` and
    ``stream_transport`` replace the network for the metadata request
    and the later body download respectively.
    """
    if not urls:
        raise EmptyInputError("Audio URL list cannot be empty.")

    timeout = url_timeout()
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        return [
            await _media_from_url(client, url, timeout, stream_transport)
            for url in urls
        ]


async def _media_from_url(
    client: httpx.AsyncClient,
    url: str,
    timeout: httpx.Timeout,
    stream_transport: httpx.BaseTransport | None,
) -> MediaItem:
    logger.info("Processing audio from URL: %s", url, extra={"url": url})
    try:
        with trace_span("media.fetch_url", {"url": url}):
            async with client.stream("GET", url, follow_redirects=True) as response:
                response.raise_for_status()
                content_type = response.headers.get("content-type")
    except Exception as exc:
        # Includes URL encoding errors raised while httpx builds the request
        raise FetchFailedError(url) from exc

    if not content_type or not content_type.startswith("audio/"):
        raise InvalidMimeTypeError(f"Invalid or non-audio MIME type for URL: {url}")

    return MediaItem(content_type, UrlSource(url, timeout, stream_transport))


def from_base64(items: list[Base64Audio] | None) -> list[MediaItem]:
    if not items:
        raise EmptyInputError("Base64 audio list cannot be empty.")
    return [_media_from_base64(item) for item in items]


def _media_from_base64(item: Base64Audio) -> MediaItem:
    if not _has_text(item.mime_type) or not _has_text(item.data):
        raise InvalidInputError("Base64 audio data and MIME type cannot be empty.")

    data = item.data
    # Trailing padding is optional on input
    data += "=" * (-len(data) % 4)
    try:
        decoded = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeFailedError("Invalid Base64 data provided.") from exc

    return MediaItem(item.mime_type, BytesSource(decoded))


def _has_text(value: str | None) -> bool:
    return bool(value and value.strip())
