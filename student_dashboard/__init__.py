"""
student-dashboard: Student records kept in sync between a server and this machine.

This package manages a collection of student records that lives on a
remote REST endpoint and is mirrored in a local cache, so work done while
the server is unreachable is kept and reconciled later.

Architecture:
    The record store is split into small parts with one job each:

    core/cache.py: Local cache
        - One JSON array of records in the local key-value store
        - Never raises; storage failures degrade to memory-only

    remote/: Remote collection
        - GET/POST/PUT/DELETE against one collection URL
        - HTTP failures mapped to typed errors (404 on update is distinct)

    records/: Pure record logic
        - Student model and field alias table
        - Composite identity "{id}-{mail}"
        - Merge with "last value wins, first position wins"
        - Search, sort and pagination for list views

    store.py: Mutation coordinator
        - add/update/delete/refresh, server first, then local reconciliation
        - Every operation reports a MutationResult instead of raising

    session.py: Session gate for the CLI (credential check + flags)

Modules:
    core/       - Configuration, storage, local cache, logging, exceptions
    remote/     - REST client for the students collection
    records/    - Record model, identity, merge, list view queries
    store.py    - RecordStore
    session.py  - Login / sign-up session flags
    cli.py      - Command-line interface

Usage:
    Command Line:
        student-dashboard login
        student-dashboard list --search an
        student-dashboard add --firstname Jane --mail jane@example.com

    Python API:
        from student_dashboard import (
            KeyValueStore, LocalCache, RecordStore, Student, StudentsApi, load_config
        )

        config = load_config(allow_missing=True)
        storage = KeyValueStore(config.storage.path)
        store = RecordStore(
            StudentsApi(config.remote.base_url, timeout=config.remote.timeout),
            LocalCache(storage, key=config.storage.cache_key),
        )
        store.refresh()
        store.add(Student(firstname="Jane", mail="jane@example.com"))

Configuration:
    Optional config.yaml in the current directory:

        remote:
          base_url: "https://687b2e57b4bc7cfbda84e292.mockapi.io/users"
          timeout: 10

        storage:
          path: "~/.student-dashboard/storage.db"

        auth:
          username: "testuser@example.com"
          password: "password123"

Dependencies:
    - requests: HTTP client for the remote collection
    - click: CLI framework
    - rich-click: CLI colors
    - tqdm: Progress bars
    - pyyaml: Configuration file parsing
    - python-dotenv: Credential overrides from .env
"""

__version__ = "0.1.0"
__author__ = "student-dashboard"
__license__ = "MIT"

# Convenience imports for common usage
from student_dashboard.core import (
    Config,
    ConfigError,
    DashboardError,
    InvalidStateError,
    KeyValueStore,
    PersistError,
    RemoteError,
    get_logger,
    load_config,
    setup_logging,
)
from student_dashboard.core.cache import LocalCache
from student_dashboard.records import Student, key_of, merge
from student_dashboard.remote import StudentsApi
from student_dashboard.session import SessionContext, User
from student_dashboard.store import MutationResult, Outcome, RecordStore

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "KeyValueStore",
    "LocalCache",
    "setup_logging",
    "get_logger",
    # Exceptions
    "DashboardError",
    "ConfigError",
    "PersistError",
    "InvalidStateError",
    "RemoteError",
    # Records
    "Student",
    "key_of",
    "merge",
    # Store
    "StudentsApi",
    "RecordStore",
    "MutationResult",
    "Outcome",
    # Session
    "SessionContext",
    "User",
]
