"""Configuration management for cdnsync."""

import tempfile
from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CDNSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Filesystem
    tmp_dir: Path = Field(
        default=Path(tempfile.gettempdir()) / "cdnsync",
        description="Root directory for package staging installs",
    )

    # Shared CDN repository
    cdn_repo_path: Path = Field(
        default=Path("."), description="Location of the shared CDN git repository"
    )
    push: bool = Field(default=False, description="Push release branches after committing")
    git_remote: str = Field(default="origin", description="Remote used for branches and pushes")
    main_branch: str = Field(default="master", description="Branch every release starts from")
    git_timeout: float = Field(default=120.0, gt=0, description="Timeout for git calls (s)")

    # Package registries
    npm_registry_url: str = Field(
        default="https://registry.npmjs.org", description="npm registry base URL"
    )
    github_api_url: str = Field(
        default="https://api.github.com", description="GitHub REST API base URL"
    )
    github_token: SecretStr | None = Field(
        default=None, description="GitHub token for tag listing and tarballs"
    )
    http_timeout: float = Field(default=30.0, gt=0, description="Timeout for registry calls (s)")

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
