"""
Configuration management for student-dashboard.

Reads config.yaml into frozen dataclasses and checks every value, so
the rest of the package never sees a malformed setting.

Sections:
    - Remote collection endpoint and request timeout
    - Location of the local storage database and the cache slot key
    - Login credentials checked by the session gate
    - Rows per page for the list view
    - Directory for log files

Every section is optional; missing values fall back to the defaults below.
Credentials can also come from the environment (DASHBOARD_USERNAME,
DASHBOARD_PASSWORD), loaded from a .env file when present.

Example config.yaml:
    remote:
      base_url: "https://687b2e57b4bc7cfbda84e292.mockapi.io/users"
      timeout: 10

    storage:
      path: "~/.student-dashboard/storage.db"
      cache_key: "localStudents"

    auth:
      username: "testuser@example.com"
      password: "password123"

    view:
      rows_per_page: 10

    logging:
      directory: "~/.student-dashboard/logs"
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from student_dashboard.core.exceptions import ConfigError


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_BASE_URL = "https://687b2e57b4bc7cfbda84e292.mockapi.io/users"
DEFAULT_TIMEOUT = 10.0
DEFAULT_STORAGE_PATH = "~/.student-dashboard/storage.db"
DEFAULT_CACHE_KEY = "localStudents"
DEFAULT_USERNAME = "testuser@example.com"
DEFAULT_PASSWORD = "password123"
DEFAULT_ROWS_PER_PAGE = 10
DEFAULT_LOG_DIRECTORY = "~/.student-dashboard/logs"

USERNAME_ENV = "DASHBOARD_USERNAME"
PASSWORD_ENV = "DASHBOARD_PASSWORD"


@dataclass(frozen=True)
class RemoteConfig:
    """
    Remote collection endpoint configuration.

    Attributes:
        base_url: Collection URL. Single records live at {base_url}/{id}.
                  Trailing slashes are stripped.
        timeout: Seconds before a request is aborted. Default: 10.
    """
    base_url: str
    timeout: float


@dataclass(frozen=True)
class StorageConfig:
    """
    Local storage configuration.

    Attributes:
        path: SQLite file backing the key-value store, or ":memory:".
        cache_key: Key of the slot holding the cached record array.
    """
    path: Path | str
    cache_key: str


@dataclass(frozen=True)
class AuthConfig:
    """Credentials the session gate compares login attempts against."""
    username: str
    password: str


@dataclass(frozen=True)
class ViewConfig:
    rows_per_page: int


@dataclass(frozen=True)
class LoggingConfig:
    directory: Path


@dataclass(frozen=True)
class Config:
    """
    Every setting, grouped by section.

    Created by load_config() and treated as immutable (frozen dataclass).

    Example:
        config = load_config()
        print(f"Talking to: {config.remote.base_url}")
        print(f"Caching in: {config.storage.path}")
    """
    remote: RemoteConfig
    storage: StorageConfig
    auth: AuthConfig
    view: ViewConfig
    logging: LoggingConfig


def load_config(config_path: Path | None = None, allow_missing: bool = False) -> Config:
    """
    Read config.yaml, apply environment overrides and check each value.

    Args:
        config_path: File to read. Defaults to config.yaml in the
                     working directory.
        allow_missing: If True, a missing file yields the default configuration
                       instead of an error.

    Returns:
        Config with defaults filled in for anything the file omits.

    Raises:
        ConfigError: If the config file is not found (and allow_missing is False),
                     has invalid YAML syntax, or contains invalid values.

    Behavior:
        1. Load .env so credential environment variables are visible
        2. Locate config file (explicit path or CWD/config.yaml)
        3. Read and parse YAML content (empty file counts as {})
        4. Parse each section, applying defaults
        5. Apply environment overrides for credentials
    """
    load_dotenv()

    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    raw_config: Any = {}
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise ConfigError(
                f"Failed to read configuration file: {e}",
                details={"file_path": str(config_path), "original_error": str(e)}
            ) from e

        try:
            raw_config = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Invalid YAML syntax in configuration file: {e}",
                details={"file_path": str(config_path), "original_error": str(e)}
            ) from e

        if raw_config is None:
            raw_config = {}
    elif not allow_missing:
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return Config(
        remote=_parse_remote_config(_section(raw_config, "remote")),
        storage=_parse_storage_config(_section(raw_config, "storage")),
        auth=_parse_auth_config(_section(raw_config, "auth")),
        view=_parse_view_config(_section(raw_config, "view")),
        logging=_parse_logging_config(_section(raw_config, "logging")),
    )


def _section(raw_config: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a section as a dict, {} when absent."""
    section = raw_config.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"Section '{name}' must be a dictionary",
            details={"section": name}
        )
    return section


def _non_empty_string(section: dict[str, Any], key: str, field: str, default: str) -> str:
    value = section.get(key)
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"'{field}' must be a non-empty string",
            details={"field": field}
        )
    return value.strip()


def _parse_remote_config(section: dict[str, Any]) -> RemoteConfig:
    """
    Parse and validate the remote section.

    Raises:
        ConfigError: If base_url is not an http(s) URL or timeout is not positive.
    """
    base_url = _non_empty_string(section, "base_url", "remote.base_url", DEFAULT_BASE_URL)
    if not base_url.startswith(("http://", "https://")):
        raise ConfigError(
            "'remote.base_url' must start with http:// or https://",
            details={"field": "remote.base_url", "value": base_url}
        )

    timeout = section.get("timeout", DEFAULT_TIMEOUT)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError(
            "'remote.timeout' must be a positive number",
            details={"field": "remote.timeout", "value": timeout}
        )

    return RemoteConfig(base_url=base_url.rstrip("/"), timeout=float(timeout))


def _parse_storage_config(section: dict[str, Any]) -> StorageConfig:
    raw_path = _non_empty_string(section, "path", "storage.path", DEFAULT_STORAGE_PATH)
    path: Path | str
    if raw_path == ":memory:":
        path = raw_path
    else:
        path = Path(raw_path).expanduser().resolve()

    cache_key = _non_empty_string(section, "cache_key", "storage.cache_key", DEFAULT_CACHE_KEY)
    return StorageConfig(path=path, cache_key=cache_key)


def _parse_auth_config(section: dict[str, Any]) -> AuthConfig:
    """
    Parse credentials, letting environment variables win over the file.

    Unlike the other string fields, values are not trimmed: the session
    gate trims user input, so configured credentials are compared as given.
    """
    username = os.environ.get(USERNAME_ENV) or section.get("username") or DEFAULT_USERNAME
    password = os.environ.get(PASSWORD_ENV) or section.get("password") or DEFAULT_PASSWORD

    for field, value in (("auth.username", username), ("auth.password", password)):
        if not isinstance(value, str):
            raise ConfigError(
                f"'{field}' must be a string",
                details={"field": field}
            )

    return AuthConfig(username=username, password=password)


def _parse_view_config(section: dict[str, Any]) -> ViewConfig:
    rows_per_page = section.get("rows_per_page", DEFAULT_ROWS_PER_PAGE)
    if isinstance(rows_per_page, bool) or not isinstance(rows_per_page, int) or rows_per_page < 1:
        raise ConfigError(
            "'view.rows_per_page' must be a positive integer",
            details={"field": "view.rows_per_page", "value": rows_per_page}
        )
    return ViewConfig(rows_per_page=rows_per_page)


def _parse_logging_config(section: dict[str, Any]) -> LoggingConfig:
    directory = _non_empty_string(section, "directory", "logging.directory", DEFAULT_LOG_DIRECTORY)
    return LoggingConfig(directory=Path(directory).expanduser().resolve())
