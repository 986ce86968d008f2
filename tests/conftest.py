"""Test configuration and fixtures"""

import pytest
import tempfile
from pathlib import Path
from unittest.mock import Mock

from student_dashboard.core.cache import LocalCache
from student_dashboard.core.config import AuthConfig
from student_dashboard.core.storage import KeyValueStore
from student_dashboard.records.models import Student
from student_dashboard.remote.client import StudentsApi
from student_dashboard.store import RecordStore


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def storage():
    """In-memory key-value store"""
    store = KeyValueStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def cache(storage):
    """Local cache on the in-memory store"""
    return LocalCache(storage)


@pytest.fixture
def mock_api():
    """Remote client double; every call succeeds with an empty answer by default"""
    api = Mock(spec=StudentsApi)
    api.list.return_value = []
    api.delete.return_value = None
    return api


@pytest.fixture
def record_store(mock_api, cache):
    """RecordStore wired to the mock API and the in-memory cache"""
    return RecordStore(mock_api, cache)


@pytest.fixture
def credentials():
    """Credentials the session gate checks against"""
    return AuthConfig(username="testuser@example.com", password="password123")


@pytest.fixture
def sample_student_data():
    """Sample record as returned by the remote collection"""
    return {
        "createdAt": "2025-07-19T05:52:13.505Z",
        "firstname": "Jane",
        "lastname": "Doe",
        "age": 21,
        "phone": "555-0100",
        "mail": "jane@example.com",
        "role": "student",
        "date": "2025-07-19T05:52:13.505Z",
        "id": "1",
    }


@pytest.fixture
def sample_students():
    """A few records in server order"""
    return [
        Student(id="1", mail="a@x.com", firstname="Anna", lastname="Smith", age=20, role="student"),
        Student(id="2", mail="b@x.com", firstname="bob", lastname="Brown", age=31, role="monitor"),
        Student(id="3", mail="c@x.com", firstname="Andre", lastname="Ames", age=25, role="student"),
    ]
