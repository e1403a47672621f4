"""Error taxonomy for audio analysis requests.

Every failure is raised where it is detected and travels unchanged to
the HTTP layer, which renders ``{"response": <message>}`` with the
error's ``status_code``. Underlying causes (decode errors, network
errors, boto3 errors) are chained with ``raise ... from`` for the logs
and never shown to the caller.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    EMPTY_INPUT = "empty_input"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    INVALID_MIME_TYPE = "invalid_mime_type"
    FETCH_FAILED = "fetch_failed"
    DECODE_FAILED = "decode_failed"
    NO_VALID_MEDIA = "no_valid_media"
    OFF_TOPIC = "off_topic"
    MODEL_FAILED = "model_failed"


class AudioProcessingError(Exception):
    """Base class for every rejection surfaced to API callers."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT
    status_code: int = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class EmptyInputError(AudioProcessingError):
    kind = ErrorKind.EMPTY_INPUT


class NotFoundError(AudioProcessingError):
    kind = ErrorKind.NOT_FOUND


class InvalidInputError(AudioProcessingError):
    kind = ErrorKind.INVALID_INPUT


class InvalidMimeTypeError(AudioProcessingError):
    kind = ErrorKind.INVALID_MIME_TYPE


class FetchFailedError(AudioProcessingError):
    kind = ErrorKind.FETCH_FAILED

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Failed to download or process audio from URL: {url}")


class DecodeFailedError(AudioProcessingError):
    kind = ErrorKind.DECODE_FAILED


class NoValidMediaError(AudioProcessingError):
    kind = ErrorKind.NO_VALID_MEDIA


class OffTopicError(AudioProcessingError):
    kind = ErrorKind.OFF_TOPIC


class ModelInvocationError(AudioProcessingError):
    """The multimodal backend failed or returned an unreadable payload."""

    kind = ErrorKind.MODEL_FAILED
    status_code = 502
