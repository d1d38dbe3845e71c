"""
Application settings loaded from the environment using Pydantic Settings
"""
from functools import lru_cache
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings, read from ``RAILROAD_*`` environment variables or a .env file"""

    model_config = SettingsConfigDict(
        env_prefix="RAILROAD_",
        env_file=".env",
        extra="ignore",
    )

    # Logging
    service_name: str = Field(default="context-railroad", description="Service name bound to every log entry")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="'json' for structured logging, 'console' for dev output")

    # Configuration cache
    config_cache_ttl_seconds: float = Field(default=300, gt=0, description="TTL of cached configuration values")

    # Stage limits
    max_relevant_memories: int = Field(default=5, ge=1)
    recent_activity_limit: int = Field(default=5, ge=0)
    max_social_entities: int = Field(default=3, ge=1)
    interaction_summary_max_length: int = Field(default=200, ge=1)
    recent_interactions_limit: int = Field(default=5, ge=0)
    known_entity_names: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["andy", "echo", "claude"],
        description="Names the keyword classifier recognises (comma-separated in the environment)"
    )

    default_variant: str = Field(default="default", description="Pipeline variant used when none is requested")

    @field_validator("known_entity_names", mode="before")
    @classmethod
    def parse_names(cls, v):
        """Parse names from a comma-separated string"""
        if isinstance(v, str):
            return [name.strip().lower() for name in v.split(",") if name.strip()]
        return [str(name).lower() for name in v or []]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
