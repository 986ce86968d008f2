# tests/test_cli.py
"""Test the command-line interface"""

import json

import pytest
from click.testing import CliRunner

from student_dashboard.cli import cli
from student_dashboard.core.config import PASSWORD_ENV, USERNAME_ENV
from student_dashboard.core.exceptions import RemoteTimeoutError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep credential variables from the environment out of the tests"""
    monkeypatch.delenv(USERNAME_ENV, raising=False)
    monkeypatch.delenv(PASSWORD_ENV, raising=False)


@pytest.fixture
def config_path(temp_dir):
    """config.yaml pointing storage and logs into the temp directory"""
    path = temp_dir / "config.yaml"
    path.write_text(
        f"storage:\n  path: '{temp_dir / 'storage.db'}'\n"
        f"logging:\n  directory: '{temp_dir / 'logs'}'\n"
        "view:\n  rows_per_page: 2\n",
        encoding="utf-8"
    )
    return path


@pytest.fixture
def invoke(config_path, mock_api):
    """Run the CLI with the test config and the mock API"""
    runner = CliRunner()

    def run(*args, input=None):
        return runner.invoke(
            cli,
            ["--config", str(config_path), *args],
            obj={"api": mock_api},
            input=input
        )

    return run


@pytest.fixture
def logged_in(invoke):
    """Start a session before the test body runs"""
    result = invoke("login", "--username", "testuser@example.com", "--password", "password123")
    assert result.exit_code == 0


class TestSessionCommands:
    """Test login, logout and whoami"""

    def test_login(self, invoke):
        """Test a good login greets the user"""
        result = invoke("login", "--username", "testuser@example.com", "--password", "password123")

        assert result.exit_code == 0
        assert "Welcome, testuser!" in result.output

    def test_login_prompts(self, invoke):
        """Test credentials can be typed at the prompt"""
        result = invoke("login", input="testuser@example.com\npassword123\n")

        assert result.exit_code == 0

    def test_bad_login(self, invoke):
        """Test a bad login exits with code 4"""
        result = invoke("login", "--username", "testuser@example.com", "--password", "wrong")

        assert result.exit_code == 4
        assert "Invalid password" in result.output

    def test_whoami_and_logout(self, invoke, logged_in):
        """Test the session persists between invocations until logout"""
        assert "testuser <testuser@example.com>" in invoke("whoami").output

        assert invoke("logout").exit_code == 0
        assert "Not logged in." in invoke("whoami").output

    def test_signup(self, invoke):
        """Test sign-up starts a session"""
        result = invoke(
            "signup",
            "--first-name", "Jane", "--last-name", "Doe", "--email", "jane@example.com",
            "--password", "Secret1!", "--confirm-password", "Secret1!"
        )

        assert result.exit_code == 0
        assert "Password strength: Strong" in result.output
        assert "Welcome, Jane!" in result.output

    def test_signup_rejected(self, invoke):
        """Test rejected values are listed per field"""
        result = invoke(
            "signup",
            "--first-name", "J", "--last-name", "Doe", "--email", "jane@example.com",
            "--password", "Secret1!", "--confirm-password", "Secret1!"
        )

        assert result.exit_code == 4
        assert "first_name: Minimum 2 characters" in result.output


class TestStudentCommands:
    """Test record commands"""

    def test_requires_login(self, invoke):
        """Test record commands exit with code 5 without a session"""
        result = invoke("list")

        assert result.exit_code == 5
        assert "Not logged in" in result.output

    def test_list(self, invoke, logged_in, mock_api, sample_students):
        """Test the first page is printed"""
        mock_api.list.return_value = sample_students

        result = invoke("list")

        assert result.exit_code == 0
        assert "Anna Smith" in result.output
        assert "bob Brown" in result.output
        assert "Andre Ames" not in result.output
        assert "Page 1 of 2 (3 students)" in result.output

    def test_list_search(self, invoke, logged_in, mock_api, sample_students):
        """Test search results are filtered and sorted"""
        mock_api.list.return_value = sample_students

        result = invoke("list", "--search", "an")

        assert result.output.index("Andre Ames") < result.output.index("Anna Smith")
        assert "bob Brown" not in result.output

    def test_list_offline(self, invoke, logged_in, mock_api):
        """Test an unreachable server with nothing cached"""
        mock_api.list.side_effect = RemoteTimeoutError("timed out")

        result = invoke("list")

        assert result.exit_code == 0
        assert "Could not load students" in result.output
        assert "No students found." in result.output

    def test_add(self, invoke, logged_in, mock_api):
        """Test a student is created on the server"""
        mock_api.create.side_effect = lambda record: record.with_updates(id="42")

        result = invoke("add", "--firstname", "Jane", "--mail", "jane@example.com", "--age", "21")

        assert result.exit_code == 0
        assert "Added Jane (id 42)" in result.output
        sent = mock_api.create.call_args.args[0]
        assert sent.age == 21

    def test_add_offline_then_list(self, invoke, logged_in, mock_api):
        """Test an offline add survives into the next invocation"""
        mock_api.create.side_effect = RemoteTimeoutError("timed out")
        mock_api.list.side_effect = RemoteTimeoutError("timed out")

        added = invoke("add", "--mail", "c@x.com")
        listed = invoke("list")

        assert "Could not reach server, saved locally" in added.output
        assert "c@x.com" in listed.output
        assert "showing saved students" in listed.output

    def test_add_needs_a_field(self, invoke, logged_in):
        """Test add without fields is a usage error"""
        assert invoke("add").exit_code == 2

    def test_update(self, invoke, logged_in, mock_api, sample_students):
        """Test the edited record is sent to the server"""
        mock_api.list.return_value = sample_students
        mock_api.update.side_effect = lambda record_id, record: record

        result = invoke("update", "1", "--role", "monitor")

        assert result.exit_code == 0
        record_id, record = mock_api.update.call_args.args
        assert record_id == "1"
        assert record.role == "monitor"
        assert record.firstname == "Anna"

    def test_update_unknown_id(self, invoke, logged_in, mock_api):
        """Test updating an id that is not listed"""
        result = invoke("update", "99", "--role", "monitor")

        assert result.exit_code == 4
        assert "No student with id 99" in result.output

    def test_delete(self, invoke, logged_in, mock_api):
        """Test delete with --yes skips the prompt"""
        result = invoke("delete", "1", "--yes")

        assert result.exit_code == 0
        assert "Deleted student 1" in result.output
        mock_api.delete.assert_called_once_with("1")

    def test_delete_cancelled(self, invoke, logged_in, mock_api):
        """Test answering no leaves everything alone"""
        result = invoke("delete", "1", input="n\n")

        assert "Cancelled." in result.output
        mock_api.delete.assert_not_called()

    def test_delete_offline(self, invoke, logged_in, mock_api):
        """Test a failed delete exits with code 3"""
        mock_api.delete.side_effect = RemoteTimeoutError("timed out")

        result = invoke("delete", "1", "--yes")

        assert result.exit_code == 3
        assert "Delete failed" in result.output

    def test_import(self, invoke, logged_in, mock_api, temp_dir):
        """Test every valid entry of the file is added"""
        mock_api.create.side_effect = lambda record: record
        source = temp_dir / "students.json"
        source.write_text(json.dumps([
            {"first_name": "Jane", "email": "jane@example.com"},
            {"firstname": "John", "mail": "john@example.com"},
            "not a student",
        ]), encoding="utf-8")

        result = invoke("import", str(source))

        assert result.exit_code == 0
        assert "Imported 2 students (0 saved locally only, 1 skipped)" in result.output
        assert mock_api.create.call_count == 2


class TestErrors:
    """Test exit codes for configuration problems"""

    def test_bad_config(self, temp_dir, mock_api):
        """Test an invalid config exits with code 1"""
        path = temp_dir / "broken.yaml"
        path.write_text("remote:\n  timeout: -5\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["--config", str(path), "whoami"], obj={"api": mock_api})

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_version(self):
        """Test --version prints the package version"""
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "student-dashboard" in result.output
