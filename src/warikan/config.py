"""Runtime settings, read from WARIKAN_* environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STATE_FILE = Path.home() / ".warikan" / "state.json"


class Settings(BaseSettings):
    """Policy limits, cache and persistence settings."""

    # Persistence
    state_file: Path = DEFAULT_STATE_FILE
    autosave_delay: float = 0.5  # seconds; 0 saves synchronously

    # Validation policy
    max_amount: int = 1_000_000
    member_name_max: int = 20
    event_name_max: int = 50
    min_members: int = 2

    # Calculation cache
    cache_enabled: bool = False  # recompute on every call unless switched on
    cache_size: int = 128

    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="WARIKAN_",
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings (cached; call cache_clear() to reload)."""
    return Settings()
