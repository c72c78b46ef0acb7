############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# settings.py: Application configuration and environment settings
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Application settings using Pydantic Settings."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _get_version() -> str:
    """Read version from package metadata, falling back to pyproject.toml."""
    try:
        from importlib.metadata import version
        return version("bedrockgate")
    except Exception:
        pass
    # Fallback: read pyproject.toml directly (works in dev without pip install)
    try:
        import tomllib
        toml_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)
        return data["project"]["version"]
    except Exception:
        return "0.0.0"


def _split_list(v):
    """Accept a JSON array or a comma-separated string."""
    if isinstance(v, str):
        try:
            return json.loads(v)
        except json.JSONDecodeError:
            return [item.strip() for item in v.split(",") if item.strip()]
    return v


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.prod"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "BedrockGate"
    app_version: str = Field(default_factory=_get_version)
    debug: bool = False
    reload: bool = False
    host: str = "0.0.0.0"
    port: int = 7860

    # Route served by the Mistral-on-Bedrock pipeline
    route_prefix: str = "/proxy/aws/mistral"

    # AWS credentials, each formatted ACCESS_KEY_ID:SECRET_ACCESS_KEY:REGION
    aws_credentials: Annotated[List[str], NoDecode] = []

    # Bedrock endpoint
    bedrock_endpoint_host: Optional[str] = None  # overrides bedrock-runtime.{region}.amazonaws.com
    bedrock_protocol: str = "https"
    bedrock_service_name: str = "bedrock"

    # Model resolution
    validate_native_model_ids: bool = False

    # Admission queue
    queue_max_concurrent: int = 4
    queue_max_concurrent_overrides: Annotated[Dict[str, int], NoDecode] = {}
    queue_timeout: float = 60.0  # seconds a request may wait for a slot

    # Request Handling
    backend_request_timeout: int = 300
    disconnect_poll_interval: float = 0.5

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    # Observability
    metrics_enabled: bool = True

    # CORS
    cors_origins: Annotated[List[str], NoDecode] = ["http://localhost:3000", "http://localhost:7860"]

    @field_validator("cors_origins", "aws_credentials", mode="before")
    @classmethod
    def parse_list(cls, v):
        """Parse list settings from string or list."""
        return _split_list(v)

    @field_validator("queue_max_concurrent_overrides", mode="before")
    @classmethod
    def parse_overrides(cls, v):
        """Parse per-key concurrency overrides from JSON or key=value pairs."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                overrides = {}
                for pair in v.split(","):
                    if "=" in pair:
                        key, value = pair.split("=", 1)
                        overrides[key.strip()] = int(value)
                return overrides
        return v

    def get_queue_capacity(self, key: str) -> int:
        """Get the concurrency limit for an admission queue key."""
        return self.queue_max_concurrent_overrides.get(key, self.queue_max_concurrent)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
