from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

VERSION = "0.1.0"


class Settings(BaseSettings):
    google_service_account_key_json: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_SERVICE_ACCOUNT_KEY_JSON", "google_service_account_key_json"),
    )
    google_service_account_key_path: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_SERVICE_ACCOUNT_KEY_PATH", "google_service_account_key_path"),
    )
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 9000
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SHEETSBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def has_credentials(self) -> bool:
        return bool(self.google_service_account_key_json or self.google_service_account_key_path)


@lru_cache
def get_settings() -> Settings:
    return Settings()
