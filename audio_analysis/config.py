from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv(Path(__file__).resolve().parent / ".env")

_PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    # AWS
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "us-east-1"

    # Multimodal model (Bedrock)
    bedrock_model_id: str = "amazon.nova-lite-v1:0"
    model_max_tokens: int = 2048
    model_temperature: float = 0.2

    # Audio inputs
    url_connect_timeout_seconds: float = 5.0
    url_read_timeout_seconds: float = 5.0
    default_audio_mime_type: str = "audio/mp3"
    audio_resource_dir: Path = _PACKAGE_DIR / "resources" / "audio"

    # App
    app_env: str = "development"
    app_port: int = 8000
    app_host: str = "0.0.0.0"
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_dev(self) -> bool:
        return self.app_env == "development"

    @property
    def has_aws_credentials(self) -> bool:
        return bool(self.aws_access_key_id and self.aws_secret_access_key)

    model_config = {"env_file": ".env", "extra": "ignore", "protected_namespaces": ()}


settings = Settings()
