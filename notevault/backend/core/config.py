"""
Configuration.

Secrets come from config/.env (DB_PASSWORD, JWT_SECRET). Everything else
comes from config/settings/*.yaml, one strict schema per file:

    application.yaml   app identity, server, cors, pagination limits
    database.yaml      connection and pool settings
    logging.yaml       level, format, handlers
    security.yaml      JWT
    notes.yaml         stats window, activity deduplication

Files are located relative to the directory holding the .project_root
marker, searched upwards from the working directory.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from notevault.backend.core.config_schema import (
    ApplicationSchema,
    DatabaseSchema,
    LoggingSchema,
    NotesSchema,
    SecuritySchema,
)

PROJECT_MARKER = ".project_root"

# Section name -> (file, schema); loaded in this order
CONFIG_FILES: dict[str, tuple[str, type[BaseModel]]] = {
    "application": ("application.yaml", ApplicationSchema),
    "database": ("database.yaml", DatabaseSchema),
    "logging": ("logging.yaml", LoggingSchema),
    "security": ("security.yaml", SecuritySchema),
    "notes": ("notes.yaml", NotesSchema),
}


def find_project_root() -> Path:
    """Walk up from the working directory to the .project_root marker."""
    current = Path.cwd()
    for candidate in (current, *current.parents):
        if (candidate / PROJECT_MARKER).exists():
            return candidate
    raise RuntimeError(f"Project root not found. Ensure {PROJECT_MARKER} file exists.")


def validate_project_root() -> Path:
    """find_project_root() for entry scripts: exit with a message instead of raising."""
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Read one file from config/settings/ without validation."""
    config_path = find_project_root() / "config" / "settings" / filename
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets from config/.env."""

    db_password: str
    jwt_secret: str

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class AppConfig:
    """
    Validated YAML configuration.

    All files are read and checked when the object is built, so a typo in
    any of them fails at startup with the file name in the message.
    """

    def __init__(self) -> None:
        self._sections: dict[str, BaseModel] = {}
        for section, (filename, schema) in CONFIG_FILES.items():
            raw = load_yaml_config(filename)
            try:
                self._sections[section] = schema(**raw)
            except ValidationError as e:
                raise ValueError(f"Invalid configuration in {filename}:\n{e}") from e

    @property
    def application(self) -> ApplicationSchema:
        return self._sections["application"]

    @property
    def database(self) -> DatabaseSchema:
        return self._sections["database"]

    @property
    def logging(self) -> LoggingSchema:
        return self._sections["logging"]

    @property
    def security(self) -> SecuritySchema:
        return self._sections["security"]

    @property
    def notes(self) -> NotesSchema:
        """Stats window and activity deduplication."""
        return self._sections["notes"]


@lru_cache
def get_settings() -> Settings:
    env_path = find_project_root() / "config" / ".env"
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    return AppConfig()


def get_database_url(async_driver: bool = True) -> str:
    """
    Build the SQLAlchemy URL for the configured database.

    For the sqlite driver the configured name is the database file path and
    no password is read.
    """
    db = get_app_config().database
    if db.driver == "sqlite":
        scheme = "sqlite+aiosqlite" if async_driver else "sqlite"
        return f"{scheme}:///{db.name}"

    scheme = "postgresql+asyncpg" if async_driver else "postgresql"
    password = get_settings().db_password
    return f"{scheme}://{db.user}:{password}@{db.host}:{db.port}/{db.name}"


def get_server_base_url() -> str:
    server = get_app_config().application.server
    return f"http://{server.host}:{server.port}"
