"""Configuration schema — Pydantic models for config.yaml."""

from __future__ import annotations

from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    # Root holding one YYYY-MM-DD directory per day, as written by the collector
    log_root: str = "./logs/raw"


class PatternsConfig(BaseModel):
    config_path: str = "./config/patterns5m.json"
    # Restrict analysis to windows of this nominal duration; None keeps all
    minutes: int | None = Field(default=None, gt=0)


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=8787, gt=0, lt=65536)
    cache_size: int = Field(default=64, gt=0)
    persist_store: bool = True


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"


class AppConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    patterns: PatternsConfig = Field(default_factory=PatternsConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
