"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Ghost content service settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    debug: bool = False
    expose_docs: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///data/db/ghostcontent.db"

    # Paths
    project_dir: Path = Path(".")

    # Ghost content
    ghost_enabled: bool = True
    ghost_actor: str = "admin"
    ghost_folders: dict[str, str] = Field(default_factory=lambda: {"flows": "**/*.json"})

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    trusted_hosts: list[str] = Field(default_factory=list)

    # Auth
    api_token: str = ""

    def validate_runtime_security(self) -> None:
        """Validate security-critical production settings."""
        if self.debug:
            return

        violations: list[str] = []
        if not self.api_token:
            violations.append("API_TOKEN must be configured in production")
        elif len(self.api_token) < 32:
            violations.append("API_TOKEN must be a high-entropy value (>=32 chars)")
        if not self.trusted_hosts:
            violations.append("TRUSTED_HOSTS must be configured in production")

        if violations:
            joined = "; ".join(violations)
            raise ValueError(f"Insecure production configuration: {joined}")
