"""Application configuration management."""

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ROOT = Path(__file__).resolve().parents[1]
PROJECT_ROOT = BACKEND_ROOT.parent
SCRATCH_ROOT = PROJECT_ROOT / "scratch"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: Literal["development", "production", "testing"] = "development"

    # Workspace
    workspace_path: str = str(SCRATCH_ROOT / "workspace")
    toolchain_path: str = str(PROJECT_ROOT / "toolchain")

    # External tools
    npm_command: str = "npm"
    node_command: str = "node"

    # Build
    minify_workers: Optional[int] = None
    browser_targets: str = (
        "last 5 Chrome versions,"
        "last 5 Firefox versions,"
        "Safari >= 8,"
        "Explorer >= 10,"
        "edge >= 12"
    )
    gzip_level: int = 6

    # Timeouts (unset means wait indefinitely)
    install_timeout_seconds: Optional[float] = None
    build_timeout_seconds: Optional[float] = None

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=(".env.test", ".env"), case_sensitive=False)

    @property
    def browser_targets_list(self) -> list[str]:
        """Parse browser targets string into list."""
        return [target.strip() for target in self.browser_targets.split(",") if target.strip()]

    @property
    def minify_worker_count(self) -> int:
        return self.minify_workers or os.cpu_count() or 1

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        env_var = os.getenv("ENVIRONMENT", "").lower() == "testing"
        pytest_flag = bool(os.getenv("PYTEST_CURRENT_TEST"))
        return self.environment == "testing" or env_var or pytest_flag

    @field_validator("minify_workers")
    @classmethod
    def validate_minify_workers(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("MINIFY_WORKERS must be >= 1")
        return v

    @field_validator("install_timeout_seconds", "build_timeout_seconds")
    @classmethod
    def validate_timeouts(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("Timeouts must be positive when set")
        return v

    @field_validator("gzip_level")
    @classmethod
    def validate_gzip_level(cls, v: int) -> int:
        if not 0 <= v <= 9:
            raise ValueError(f"GZIP_LEVEL must be between 0 and 9, got {v}")
        return v


# Global settings instance
settings = Settings()
if settings.is_testing:
    settings.environment = "testing"
