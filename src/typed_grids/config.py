"""Engine settings.

Defaults match the engine's fixed pagination and sampling constants; any
field can be overridden from a ``TYPED_GRIDS_<FIELD>`` environment variable.
"""

from __future__ import annotations

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)


class EngineSettings(BaseSettings):
    """Defaults used when a caller does not supply offset/limit/sample values."""

    query_offset: int = Field(default=0, ge=0, description="Default criteria offset")
    query_limit: int = Field(default=10, ge=0, description="Default criteria limit")
    search_limit: int = Field(default=10, ge=0, description="Default search page size")
    suggest_limit: int = Field(default=5, ge=0, description="Default suggestion count")
    sample_count: int = Field(default=10, ge=0, description="Top values reported by analyze")

    model_config = SettingsConfigDict(env_prefix="TYPED_GRIDS_", extra="ignore", frozen=True)

    @classmethod
    def from_env(cls) -> EngineSettings:
        """Load settings from the environment, logging which fields were overridden."""
        settings = cls()
        if settings.model_fields_set:
            logger.debug("engine_settings_overridden", fields=sorted(settings.model_fields_set))
        return settings


DEFAULT_SETTINGS = EngineSettings()
