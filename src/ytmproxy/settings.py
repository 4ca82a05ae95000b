"""Application settings using pydantic-settings."""

from functools import cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BeforeValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ytmproxy.services.lyrics import LYRICS_BASE_URL

LogLevel = Annotated[
    Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    BeforeValidator(lambda v: v.upper() if isinstance(v, str) else v),
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="YTMPROXY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    reload: bool = Field(default=False, description="Enable auto-reload")
    log_level: LogLevel = Field(default="INFO", description="Log level")
    environment: str = Field(default="production", description="Deployment name")

    # CORS settings
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # Static configuration file (youtube_music / lyrics / app sections)
    config_file: Path | None = Field(
        default=Path("appsettings.json"), description="Static configuration file"
    )

    # Lyrics settings
    lyrics_base_url: str = Field(
        default=LYRICS_BASE_URL, description="SimpMusic lyrics API base URL"
    )

    # Local PoToken runner; the content binding is appended as last argument
    po_token_command: str | None = Field(
        default=None, description="Command that prints a PoToken"
    )

    # Web frontend
    static_dir: Path = Field(
        default=Path("wwwroot"), description="Directory served at /"
    )


@cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
