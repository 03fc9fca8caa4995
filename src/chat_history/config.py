"""
Settings for the chat history dashboard, read from the environment or a .env file.
"""

from datetime import tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Table store
    SUPABASE_URL: str
    SUPABASE_ANON_KEY: str
    REQUEST_TIMEOUT: float = 30.0
    FETCH_BATCH_SIZE: int = 1000  # service row cap per response
    IN_FILTER_CHUNK: int = 200  # session ids per in.(...) filter on export

    # Tables
    TABLE_ID: Optional[str] = None
    TIMEZONE: Optional[str] = None  # IANA name; end-of-day for `to` filters

    # Logging
    LOG_LEVEL: str = "WARNING"
    LOG_FILE: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def tz(self) -> Optional[tzinfo]:
        return ZoneInfo(self.TIMEZONE) if self.TIMEZONE else None


def load_settings(**overrides) -> Settings:
    return Settings(**overrides)
