"""Configuration management for the users API."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
TEST_ENVIRONMENT = "test"


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


def resolve_database_path(env_value: Optional[str], environment: Optional[str] = None) -> Path:
    """Resolve the on-disk path for the users database.

    An explicit path always wins. Otherwise the test environment gets its own
    database file so integration runs never touch development data.
    """

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    filename = "users_test.sqlite3" if environment == TEST_ENVIRONMENT else "users.sqlite3"
    return (_project_root() / "data" / filename).resolve(strict=False)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (_project_root() / "config" / "users_api.yaml").resolve(strict=False)
    return candidate


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the HTTP service and its database."""

    database_path: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    environment: str = "development"

    @staticmethod
    def from_dict(data: Dict[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""
        environment = str(data.get("environment") or "development")

        raw_db_path = data.get("database_path")
        if raw_db_path:
            db_path = Path(str(raw_db_path)).expanduser()
            if not db_path.is_absolute() and base_path is not None:
                db_path = base_path / db_path
            database_path = db_path.resolve(strict=False)
        else:
            database_path = resolve_database_path(None, environment)

        try:
            port = int(data.get("port", DEFAULT_PORT))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid port in configuration: {data.get('port')!r}") from exc

        return Settings(
            database_path=database_path,
            host=str(data.get("host") or DEFAULT_HOST),
            port=port,
            environment=environment,
        )

    @property
    def is_test(self) -> bool:
        return self.environment == TEST_ENVIRONMENT


def load_settings(config_path: Path) -> Settings:
    """Load settings from a YAML file, falling back to defaults when it is absent."""
    raw: Dict[str, object] = {}
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
        section = loaded.get("users_api", {}) if isinstance(loaded, dict) else None
        if not isinstance(section, dict):
            raise ValueError("Configuration file must define a 'users_api' mapping")
        raw = section
    return Settings.from_dict(raw, base_path=config_path.parent)


def apply_environment(settings: Settings, environ: Mapping[str, str]) -> Settings:
    """Overlay ``USERS_API_*`` environment variables on top of file settings."""

    environment = environ.get("USERS_API_ENV") or settings.environment
    updated = replace(settings, environment=environment)

    db_override = environ.get("USERS_API_DB_PATH")
    if db_override:
        updated = replace(updated, database_path=resolve_database_path(db_override))
    elif environment != settings.environment:
        updated = replace(updated, database_path=resolve_database_path(None, environment))

    host = environ.get("USERS_API_HOST")
    if host:
        updated = replace(updated, host=host.strip())

    port = environ.get("USERS_API_PORT")
    if port:
        try:
            updated = replace(updated, port=int(port))
        except ValueError as exc:
            raise ValueError(f"USERS_API_PORT must be an integer, got {port!r}") from exc

    return updated


def get_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Return settings from the config file with environment overrides applied."""
    if environ is None:
        environ = os.environ
    config_path = resolve_config_path(environ.get("USERS_API_CONFIG"))
    return apply_environment(load_settings(config_path), environ)


__all__ = [
    "Settings",
    "apply_environment",
    "get_settings",
    "load_settings",
    "resolve_config_path",
    "resolve_database_path",
]
