"""
Configuration loaded from environment variables (and a .env file, if present).

Every setting has a default, so the CLI works with an empty environment:

    BABYLEDGER_DATA_DIR     directory holding the persisted blobs (~/.babyledger)
    BABYLEDGER_STORE_KEY    key of the ledger blob (ledger)
    BABYLEDGER_TIMER_KEY    key of the active feeding timer (active-timer)
    BABYLEDGER_BABY_NAME    name recorded on new entries and used as filter ("")
    BABYLEDGER_LOG_LEVEL    DEBUG | INFO | WARNING | ERROR | CRITICAL (WARNING)
    BABYLEDGER_LOG_FORMAT   console | json (console)
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_KEY_PATTERN = r"^[A-Za-z0-9_.-]+$"


class StorageConfig(BaseModel):
    """Where the persistence collaborator keeps its blobs."""

    data_dir: Path = Field(default=Path.home() / ".babyledger")
    store_key: str = Field(default="ledger", pattern=_KEY_PATTERN)
    timer_key: str = Field(default="active-timer", pattern=_KEY_PATTERN)


class LoggingConfig(BaseModel):
    level: LogLevel = Field(default="WARNING")
    format: Literal["console", "json"] = Field(default="console")


class AppConfig(BaseModel):
    baby_name: str = Field(default="", description="Default baby name for new entries")
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("baby_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


def _level_to_literal(val: str) -> LogLevel:
    v = val.strip().upper()
    return cast(LogLevel, v if v in _LOG_LEVELS else "INFO")


def load_config_from_env() -> AppConfig:
    """Build an AppConfig from BABYLEDGER_* environment variables."""
    load_dotenv()

    storage = StorageConfig(
        data_dir=Path(
            os.getenv("BABYLEDGER_DATA_DIR", str(Path.home() / ".babyledger"))
        ).expanduser(),
        store_key=os.getenv("BABYLEDGER_STORE_KEY", "ledger"),
        timer_key=os.getenv("BABYLEDGER_TIMER_KEY", "active-timer"),
    )
    fmt = os.getenv("BABYLEDGER_LOG_FORMAT", "console").strip().lower()
    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("BABYLEDGER_LOG_LEVEL", "WARNING")),
        format="json" if fmt == "json" else "console",
    )
    return AppConfig(
        baby_name=os.getenv("BABYLEDGER_BABY_NAME", ""),
        storage=storage,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()
