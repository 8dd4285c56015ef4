from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process configuration read from ``AGENTSTREAM_*`` environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="AGENTSTREAM_",
        env_file=".env",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    log_format: str = Field(default="json", description="json or console")
    service_name: str = "agentstream"
    environment: str = "development"
    service_version: str = "unknown"

    # Tracing (credentials are read by langfuse from LANGFUSE_*)
    tracing_enabled: bool = False

    # Agent defaults
    language: str = "Same as the user input"
    active_context_time: int = Field(default=24 * 60, description="Minutes of history loaded into context")
    current_channel: str = "Unknown Channel"
    max_steps: Optional[int] = Field(default=None, description="Model/tool round trips per turn, unlimited when unset")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
