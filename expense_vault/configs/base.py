"""
Base configuration settings.

Server-level settings shared by every config module: environment name,
log level, bind address and allowed CORS origins.

Dependencies: pydantic_settings
System role: Foundation for all configuration classes
"""

from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings, NoDecode, SettingsConfigDict


class BaseSettings(PydanticBaseSettings):
    """Base configuration class with server settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Application environment (development, staging, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    host: str = Field(default="0.0.0.0", description="Bind address for uvicorn")
    port: int = Field(default=3001, description="Listen port for uvicorn")
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated origins allowed by CORS",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value
