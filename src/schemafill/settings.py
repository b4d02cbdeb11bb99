"""Runtime settings for schemafill, read from ``SCHEMAFILL_*`` variables.

These settings steer *how* a fill runs (which source, HTTPS timeout, an
optional ``.env`` file); they are never filled into user records.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FillSettings(BaseSettings):
    """Pydantic settings schema for fill behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="SCHEMAFILL_",
        env_file=None,
        case_sensitive=False,
        extra="ignore",
    )

    source: str = Field(
        default="env",
        description="Name of the registered source used when none is given",
        min_length=1,
    )

    https_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for HTTPS resource reads",
        gt=0,
    )

    env_file: Path | None = Field(
        default=None,
        description="Optional .env file loaded before environment reads",
    )

    @field_validator("source")
    @classmethod
    def normalize_source(cls, v: str) -> str:
        """Source names are matched case-insensitively."""
        return v.strip().lower()
