"""
Application configuration and settings.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Credentials (None = capability not configured)
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None
    livepeer_studio_api_key: str | None = None
    daydream_api_key: str | None = None

    # Service endpoints
    openai_base_url: str = "https://api.openai.com/v1"
    livepeer_base_url: str = "https://livepeer.studio/api"
    daydream_base_url: str = "https://api.daydream.live"
    request_timeout: float = 120.0

    # Prompt generation
    prompt_model: str = "gpt-4o-mini"  # "claude*" models go through the Anthropic SDK
    use_generative_prompt: bool = True
    template_prompt_fallback: bool = False  # Pipeline falls back to templates on LLM failure

    # Image transformation
    provider_order: list[str] = ["livepeer", "openai", "dalle"]
    openai_image_model: str = "gpt-image-1"
    openai_image_size: str = "768x768"
    dalle_model: str = "dall-e-3"
    dalle_image_size: str = "1024x1024"
    livepeer_image_model: str = "SG161222/RealVisXL_V4.0"
    default_strength: float = 0.7

    # Polling policies (overridable via config/polling.yaml)
    image_poll_interval_ms: int = 1000
    image_poll_max_attempts: int = 30
    clip_poll_interval_ms: int = 2000
    clip_poll_max_attempts: int = 30
    recording_poll_interval_ms: int = 2000
    recording_poll_max_attempts: int = 120

    # Live sessions and clips
    default_pipeline_id: str = "pip_qpUgXycjWF6YMeSL"
    session_config_max_attempts: int = 10
    session_config_retry_delay_ms: int = 2000
    clip_buffer_ms: int = 2000

    # Paths
    config_dir: Path = Path("config")

    # Logging
    log_level: str = "INFO"
    log_format: str = "structured"  # "simple" or "structured"

    # Per-module log levels (optional overrides)
    log_level_clients: str | None = None
    log_level_providers: str | None = None
    log_level_pipeline: str | None = None
    log_level_poller: str | None = None
    log_level_sessions: str | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@dataclass(frozen=True)
class PollingPolicy:
    """
    Interval and attempt budget for awaiting a remote asset.

    Attributes:
        interval_ms: Delay between status queries
        max_attempts: Total number of status queries before giving up
    """

    interval_ms: int
    max_attempts: int

    @property
    def budget_seconds(self) -> float:
        """Upper bound of time spent sleeping while polling."""
        return max(self.max_attempts - 1, 0) * self.interval_ms / 1000


POLICY_NAMES = ("image", "clip", "recording")


def load_polling_config(settings: Settings | None = None) -> dict:
    """
    Load polling overrides from config/polling.yaml.

    Missing file means no overrides.

    Args:
        settings: Optional settings instance

    Returns:
        Raw configuration dictionary ({"policies": {name: {...}}})
    """
    if settings is None:
        settings = get_settings()

    polling_path = settings.config_dir / "polling.yaml"
    if not polling_path.exists():
        return {}

    with open(polling_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_polling_policies(settings: Settings | None = None) -> dict[str, PollingPolicy]:
    """
    Resolve polling policies for every media kind.

    Settings provide the defaults; entries from config/polling.yaml
    override individual fields.

    Example polling.yaml:
        policies:
          image:
            interval_ms: 1000
            max_attempts: 20

    Args:
        settings: Optional settings instance

    Returns:
        Mapping of policy name ("image", "clip", "recording") to PollingPolicy
    """
    if settings is None:
        settings = get_settings()

    overrides = load_polling_config(settings).get("policies", {}) or {}
    policies: dict[str, PollingPolicy] = {}

    for name in POLICY_NAMES:
        override = overrides.get(name, {}) or {}
        policies[name] = PollingPolicy(
            interval_ms=int(
                override.get("interval_ms", getattr(settings, f"{name}_poll_interval_ms"))
            ),
            max_attempts=int(
                override.get("max_attempts", getattr(settings, f"{name}_poll_max_attempts"))
            ),
        )

    return policies
