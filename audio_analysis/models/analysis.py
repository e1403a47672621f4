from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Missing fields are accepted here and rejected by the service, so an
# absent prompt or list is a 400 with the usual envelope rather than a 422.


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- Request models ----------

class AudioAnalysisRequest(_CamelModel):
    """Body for the bundled-file and URL routes."""
    audio_urls: list[str] | None = None
    prompt: str | None = None
    file_name: str | None = None


class Base64AudioPayload(_CamelModel):
    mime_type: str | None = None
    data: str | None = None


class Base64AudioAnalysisRequest(_CamelModel):
    base64_audio_list: list[Base64AudioPayload] | None = None
    prompt: str | None = None


# ---------- Response models ----------

class AudioAnalysisResponse(BaseModel):
    """Envelope for every answer, success or failure."""
    response: str = Field(..., description="Model text, or the error message on failure")


class HealthStatus(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    status: str = "ok"
    mode: str
    aws_configured: bool
    model_id: str
