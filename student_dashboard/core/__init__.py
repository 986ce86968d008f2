"""
Core module for student-dashboard.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - storage: Thread-safe SQLite key-value store for persistent state
    - cache: The local record cache kept in that store
    - logger: Logging system with multiple outputs

LocalCache depends on the record model, so it is not re-exported here;
import it from student_dashboard.core.cache.

Usage:
    from student_dashboard.core import (
        Config, load_config,
        KeyValueStore,
        setup_logging, get_logger,
        DashboardError, ConfigError, RemoteError
    )
    from student_dashboard.core.cache import LocalCache
"""

from student_dashboard.core.config import (
    AuthConfig,
    Config,
    LoggingConfig,
    RemoteConfig,
    StorageConfig,
    ViewConfig,
    load_config,
)
from student_dashboard.core.exceptions import (
    AuthError,
    ConfigError,
    DashboardError,
    FetchError,
    InvalidStateError,
    NotFoundError,
    PersistError,
    RemoteError,
    RemoteTimeoutError,
    ValidationError,
    WriteError,
)
from student_dashboard.core.logger import (
    get_logger,
    log_offline_write,
    setup_logging,
    shutdown_logging,
)
from student_dashboard.core.storage import KeyValueStore

__all__ = [
    # Config
    "Config",
    "RemoteConfig",
    "StorageConfig",
    "AuthConfig",
    "ViewConfig",
    "LoggingConfig",
    "load_config",
    # Storage
    "KeyValueStore",
    # Exceptions
    "DashboardError",
    "ConfigError",
    "PersistError",
    "InvalidStateError",
    "AuthError",
    "ValidationError",
    "RemoteError",
    "RemoteTimeoutError",
    "FetchError",
    "WriteError",
    "NotFoundError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_offline_write",
    "shutdown_logging",
]
