"""Centralized settings and configuration loading utilities."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class UpstreamSettings(BaseModel):
    """Where and how analysis requests are forwarded."""

    scheme: str = "https"
    host: str = "api-inference.huggingface.co"
    models_path: str = "/models"
    timeout_sec: float = Field(60.0, gt=0)
    verify_tls: bool = True
    default_model: Optional[str] = Field(
        None, description="Model id used when a request leaves `model` blank"
    )
    user_agent: str = "factify-gateway"
    # "payload": failures come back as 200 + "Error: ..." body.
    # "status": same body, but with the ERR_UPSTREAM_FAILED status.
    error_mode: Literal["payload", "status"] = "payload"
    # The image route historically forwards the bytes of the `text` field.
    image_payload_source: Literal["text", "file"] = "text"


class CorsSettings(BaseModel):
    allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    allow_methods: List[str] = Field(default_factory=lambda: ["*"])
    allow_headers: List[str] = Field(default_factory=lambda: ["*"])
    allow_credentials: bool = True


class LoggingSettings(BaseModel):
    level: str = "INFO"
    log_dir: str = "./logs"
    max_log_file_size_mb: int = 50
    backup_count: int = 7


class MonitoringSettings(BaseModel):
    enabled: bool = True
    prometheus_port: int = 9092


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FACTIFY_", env_nested_delimiter="__", extra="allow")

    service_name: str = "factify-gateway"
    environment: str = "dev"
    api_version: str = "v1"
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False

    upstream: UpstreamSettings = UpstreamSettings()
    cors: CorsSettings = CorsSettings()
    logging: LoggingSettings = LoggingSettings()
    monitoring: MonitoringSettings = MonitoringSettings()

    @staticmethod
    def load_yaml_config_file(file_path: str | Path | None) -> Dict[str, Any]:
        if not file_path:
            return {}
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        import yaml  # lazy import for optional dependency

        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, dict):
            raise ValueError("Configuration YAML must produce a mapping")
        return data

    @classmethod
    def from_source(cls, *, config_file: str | None = None, **overrides: Any) -> "Settings":
        base_data = cls.load_yaml_config_file(config_file)
        base_data.update(overrides)
        return cls(**base_data)


@lru_cache
def get_settings() -> Settings:
    cfg_file = os.getenv("FACTIFY_CONFIG_FILE")
    if cfg_file:
        return Settings.from_source(config_file=cfg_file)

    default_path = Path.cwd() / "config" / "settings.yaml"
    if default_path.exists():
        return Settings.from_source(config_file=str(default_path))

    return Settings()


def reload_settings() -> None:
    get_settings.cache_clear()


def settings_dependency() -> Settings:
    return get_settings()
