"""Centralized configuration for the venice-image-batch application."""

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ApiConfig:
    """Configuration for the remote image generation endpoint."""
    url: str = "https://api.venice.ai/api/v1/image/generate"
    health_timeout: float = 10.0  # seconds
    generate_timeout: float = 60.0  # seconds


@dataclass(frozen=True)
class RetryConfig:
    """Retry, backoff and circuit breaker settings."""
    max_attempts: int = 3
    failure_threshold: int = 3
    rate_limit_interval: float = 2.0  # minimum seconds between remote calls
    retry_delay: float = 5.0
    error_delay: float = 10.0


@dataclass(frozen=True)
class LimitsConfig:
    """Fixed limits applied to prompts, filenames and payloads."""
    max_prompt_length: int = 1250
    max_filename_length: int = 200
    min_image_size: int = 100_000
    cfg_scale_step: float = 0.25
    cfg_scale_fallback: float = 8.5


@dataclass(frozen=True)
class PathConfig:
    """Well-known locations for configuration documents and output."""
    home: Path = field(default_factory=Path.home)
    override_dir: Path | None = None

    @property
    def config_dir(self) -> Path:
        """Directory holding prompt.json and elements.json."""
        if self.override_dir is not None:
            return self.override_dir
        return self.home / ".venice"

    @property
    def config_path(self) -> Path:
        """Path to the prompt configuration document."""
        return self.config_dir / "prompt.json"

    @property
    def elements_path(self) -> Path:
        """Path to the prompt element pool document."""
        return self.config_dir / "elements.json"

    @property
    def default_output_dir(self) -> Path:
        """Base output directory used when the config does not name one."""
        return self.home / "Pictures" / "venice"


def _env_path(name: str) -> Path | None:
    value = os.environ.get(name)
    return Path(value).expanduser() if value else None


# Singleton path configuration instance
paths = PathConfig(override_dir=_env_path("VENICE_BATCH_CONFIG_DIR"))


@dataclass
class Settings:
    """Application settings, can be overridden via environment variables."""
    api: ApiConfig = field(default_factory=ApiConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables with VENICE_BATCH_ prefix."""
        api = ApiConfig(
            url=os.environ.get("VENICE_BATCH_API_URL", ApiConfig.url),
            health_timeout=float(os.environ.get("VENICE_BATCH_HEALTH_TIMEOUT", ApiConfig.health_timeout)),
            generate_timeout=float(os.environ.get("VENICE_BATCH_GENERATE_TIMEOUT", ApiConfig.generate_timeout)),
        )
        retry = RetryConfig(
            max_attempts=int(os.environ.get("VENICE_BATCH_MAX_ATTEMPTS", RetryConfig.max_attempts)),
            failure_threshold=int(os.environ.get("VENICE_BATCH_FAILURE_THRESHOLD", RetryConfig.failure_threshold)),
            rate_limit_interval=float(os.environ.get("VENICE_BATCH_RATE_LIMIT", RetryConfig.rate_limit_interval)),
            retry_delay=float(os.environ.get("VENICE_BATCH_RETRY_DELAY", RetryConfig.retry_delay)),
            error_delay=float(os.environ.get("VENICE_BATCH_ERROR_DELAY", RetryConfig.error_delay)),
        )
        return cls(api=api, retry=retry, limits=LimitsConfig())


# Global settings instance - use from_env() for environment-aware settings
settings = Settings.from_env()
