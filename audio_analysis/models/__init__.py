from .analysis import (
    AudioAnalysisRequest,
    AudioAnalysisResponse,
    Base64AudioAnalysisRequest,
    Base64AudioPayload,
    HealthStatus,
)

__all__ = [
    "AudioAnalysisRequest",
    "AudioAnalysisResponse",
    "Base64AudioAnalysisRequest",
    "Base64AudioPayload",
    "HealthStatus",
]
