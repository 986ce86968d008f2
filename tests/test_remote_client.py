# tests/test_remote_client.py
"""Test the REST client for the students collection"""

from unittest.mock import Mock

import pytest
import requests

from student_dashboard.core.exceptions import (
    FetchError,
    NotFoundError,
    RemoteTimeoutError,
    WriteError,
)
from student_dashboard.records.models import Student
from student_dashboard.remote.client import StudentsApi

BASE_URL = "https://example.test/users"


def make_response(status_code=200, body=None, json_error=None):
    """Build a requests.Response double"""
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.url = BASE_URL
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    """requests.Session double"""
    return Mock()


@pytest.fixture
def api(session):
    """Client using the session double"""
    return StudentsApi(BASE_URL + "/", timeout=5, session=session)


class TestList:
    """Test fetching the collection"""

    def test_list(self, api, session, sample_student_data):
        """Test records are parsed in server order"""
        session.request.return_value = make_response(body=[
            sample_student_data,
            {"id": 2, "email": "b@x.com"},
        ])

        students = api.list()

        assert [s.id for s in students] == ["1", "2"]
        assert students[1].mail == "b@x.com"
        session.request.assert_called_once_with("GET", BASE_URL, json=None, timeout=5)

    def test_trailing_slash_stripped(self, api):
        """Test the base URL is normalized"""
        assert api.base_url == BASE_URL

    def test_non_2xx(self, api, session):
        """Test an error status raises FetchError with the status"""
        session.request.return_value = make_response(status_code=500)

        with pytest.raises(FetchError) as exc_info:
            api.list()
        assert exc_info.value.status == 500

    def test_timeout(self, api, session):
        """Test a timeout raises RemoteTimeoutError"""
        session.request.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(RemoteTimeoutError) as exc_info:
            api.list()
        assert exc_info.value.status is None

    def test_connection_error(self, api, session):
        """Test an unreachable host raises RemoteTimeoutError"""
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(RemoteTimeoutError):
            api.list()

    def test_body_not_json(self, api, session):
        """Test an unreadable body raises FetchError"""
        session.request.return_value = make_response(json_error=ValueError("bad json"))

        with pytest.raises(FetchError):
            api.list()

    def test_body_not_a_list(self, api, session):
        """Test an object body raises FetchError"""
        session.request.return_value = make_response(body={"id": "1"})

        with pytest.raises(FetchError):
            api.list()

    def test_invalid_entries_skipped(self, api, session):
        """Test entries that are not records are dropped"""
        session.request.return_value = make_response(body=[{"id": "1"}, "junk", {"mail": True}])

        assert [s.id for s in api.list()] == ["1"]


class TestCreate:
    """Test creating records"""

    def test_create(self, api, session):
        """Test the server record is returned and no id is sent"""
        session.request.return_value = make_response(
            status_code=201,
            body={"id": "42", "mail": "c@x.com", "createdAt": "t"}
        )

        created = api.create(Student(id="1700000000000", mail="c@x.com"))

        assert created.id == "42"
        method, url = session.request.call_args.args
        assert (method, url) == ("POST", BASE_URL)
        assert "id" not in session.request.call_args.kwargs["json"]
        assert session.request.call_args.kwargs["timeout"] == 5

    def test_create_failure(self, api, session):
        """Test an error status raises WriteError"""
        session.request.return_value = make_response(status_code=400)

        with pytest.raises(WriteError) as exc_info:
            api.create(Student(mail="c@x.com"))
        assert exc_info.value.status == 400

    def test_create_unreadable_body(self, api, session):
        """Test a 2xx with a broken body raises WriteError"""
        session.request.return_value = make_response(status_code=201, json_error=ValueError("bad"))

        with pytest.raises(WriteError):
            api.create(Student(mail="c@x.com"))


class TestUpdate:
    """Test updating records"""

    def test_update(self, api, session):
        """Test PUT goes to the record URL"""
        session.request.return_value = make_response(body={"id": "1", "role": "monitor"})

        updated = api.update("1", Student(id="1", role="monitor"))

        assert updated.role == "monitor"
        method, url = session.request.call_args.args
        assert (method, url) == ("PUT", f"{BASE_URL}/1")

    def test_update_not_found(self, api, session):
        """Test 404 raises NotFoundError"""
        session.request.return_value = make_response(status_code=404)

        with pytest.raises(NotFoundError) as exc_info:
            api.update("1", Student(id="1"))
        assert exc_info.value.status == 404

    def test_update_failure(self, api, session):
        """Test other error statuses raise WriteError"""
        session.request.return_value = make_response(status_code=503)

        with pytest.raises(WriteError) as exc_info:
            api.update("1", Student(id="1"))
        assert not isinstance(exc_info.value, NotFoundError)


class TestDelete:
    """Test deleting records"""

    def test_delete(self, api, session):
        """Test DELETE goes to the record URL"""
        session.request.return_value = make_response(body={"id": "1"})

        api.delete("1")

        session.request.assert_called_once_with("DELETE", f"{BASE_URL}/1", json=None, timeout=5)

    def test_delete_not_found_is_success(self, api, session):
        """Test 404 is treated as already deleted"""
        session.request.return_value = make_response(status_code=404)

        assert api.delete("1") is None

    def test_delete_failure(self, api, session):
        """Test other error statuses raise WriteError"""
        session.request.return_value = make_response(status_code=500)

        with pytest.raises(WriteError):
            api.delete("1")

    def test_delete_timeout(self, api, session):
        """Test network failures raise RemoteTimeoutError"""
        session.request.side_effect = requests.exceptions.Timeout()

        with pytest.raises(RemoteTimeoutError):
            api.delete("1")
