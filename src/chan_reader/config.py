from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    database_path: str = ".data/chan_reader.db"

    api_base_url: str = "https://a.4cdn.org"
    image_base_url: str = "https://i.4cdn.org"
    static_base_url: str = "https://s.4cdn.org"
    api_timeout_seconds: float = 20.0
    api_user_agent: str = "chan-reader"

    log_level: str = "INFO"
    api_retry_max_attempts: int = 3
    api_retry_base_delay_seconds: float = 1.0
    api_retry_max_delay_seconds: float = 8.0

    @property
    def database_file(self) -> Path:
        return Path(self.database_path)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
