"""Configuration management for notebook-lens."""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from lens.core.exceptions import ConfigError


class WebhookSettings(BaseSettings):
    """Backend webhook endpoints shared by every notebook."""

    notebook_status_url: str = Field(default="", alias="LENS_NOTEBOOK_STATUS_URL")
    check_status_url: str = Field(default="", alias="LENS_CHECK_STATUS_URL")
    enhance_url: str = Field(default="", alias="LENS_ENHANCE_URL")
    reingest_url: str = Field(default="", alias="LENS_REINGEST_URL")
    publish_url: str = Field(default="", alias="LENS_PUBLISH_URL")
    timeout: float = Field(default=90.0, alias="LENS_HTTP_TIMEOUT")


class PollingSettings(BaseSettings):
    """Enhancement job polling settings.

    The stale threshold and the ceiling were tuned by hand against the
    enhancement workflow; override them when the backend latency changes.
    """

    interval_seconds: float = Field(default=4.0, alias="LENS_POLL_INTERVAL_SECONDS")
    max_stale_ticks: int = Field(default=8, alias="LENS_POLL_MAX_STALE_TICKS")
    timeout_seconds: float = Field(default=300.0, alias="LENS_POLL_TIMEOUT_SECONDS")


class DiscoverySettings(BaseSettings):
    """Document discovery settings."""

    max_depth: int = Field(default=4, alias="LENS_DISCOVERY_MAX_DEPTH")


class StrategyEndpoints(BaseModel):
    """Webhooks configured for one retrieval strategy."""

    retrieval_webhook: str = ""
    agentic_webhook: str = ""


class NotebookConfig(BaseModel):
    """Per-notebook configuration (usually loaded from YAML)."""

    active_strategy_id: str = "fusion"
    strategies: dict[str, StrategyEndpoints] = Field(default_factory=dict)
    embedding_model: str = "text-embedding-3-small"
    inference: dict[str, Any] = Field(default_factory=dict)
    system_prompts: dict[str, Any] = Field(default_factory=dict)

    def endpoints_for(self, strategy_id: Optional[str] = None) -> StrategyEndpoints:
        """Get the endpoints for a strategy (defaults to the active one)."""
        return self.strategies.get(strategy_id or self.active_strategy_id, StrategyEndpoints())


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    webhooks: WebhookSettings = Field(default_factory=WebhookSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)

    notebook_config_path: Path = Field(
        default=Path("config/notebook.yaml"), alias="LENS_NOTEBOOK_CONFIG"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_notebook_config(path: Optional[Path] = None) -> NotebookConfig:
    """Load a notebook configuration from YAML.

    A missing file yields the defaults; a file that is not a mapping is a
    configuration error.
    """
    config_path = Path(path) if path is not None else get_settings().notebook_config_path

    if not config_path.exists():
        return NotebookConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigError(
            f"Notebook config must be a mapping, got {type(data).__name__}",
            context={"path": str(config_path)},
        )
    return NotebookConfig.model_validate(data)
