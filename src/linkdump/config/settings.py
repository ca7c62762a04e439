from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DATABASE_FILENAME = "linkdump.sqlite3"


def default_data_dir() -> Path:
    xdg = os.getenv("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / "linkdump"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    data_dir: Path | None = Field(default=None, alias="LINKDUMP_DATA_DIR")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    title_prefix: str = Field(default="Reading: ", alias="LINKDUMP_TITLE_PREFIX")
    date_source: Literal["published_at", "found_at"] = Field(
        default="published_at", alias="LINKDUMP_DATE_SOURCE"
    )

    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        data_dir = (self.data_dir or default_data_dir()).expanduser()
        return f"sqlite:///{data_dir / DATABASE_FILENAME}"


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
