"""
Command-line interface for student-dashboard.

This module implements the CLI using Click; rich-click is used for the
help formatting and colors.

Commands:
    student-dashboard login                  Log in with the configured credentials
    student-dashboard signup                 Create a session from sign-up details
    student-dashboard logout                 End the session
    student-dashboard whoami                 Show the logged-in user
    student-dashboard list                   List students (search, filter, page)
    student-dashboard add                    Add a student
    student-dashboard update <id>            Edit a student
    student-dashboard delete <id>            Delete a student
    student-dashboard import <file.json>     Add every student from a JSON array

Usage:
    student-dashboard login
    student-dashboard list --search an --page 2
    student-dashboard add --firstname Jane --lastname Doe --mail jane@example.com
    student-dashboard update 12 --role monitor
    student-dashboard delete 12 --yes

Configuration:
    Reads config.yaml from the current directory when present (or the file
    given with --config). Every section is optional. Record commands need a
    logged-in session.

Exit Codes:
    0   Success
    1   Configuration error (or unexpected error)
    2   Local storage error
    3   Remote server error
    4   Any other dashboard error (bad credentials, invalid input, ...)
    5   Not logged in
    130 Interrupted by user
"""

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import rich_click as click
from tqdm import tqdm

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.COMMAND_GROUPS = {
    "student-dashboard": [
        {
            "name": "Session",
            "commands": ["login", "signup", "logout", "whoami"],
        },
        {
            "name": "Students",
            "commands": ["list", "add", "update", "delete", "import"],
        },
    ],
}

from student_dashboard import __version__
from student_dashboard.core import (
    AuthError,
    Config,
    ConfigError,
    DashboardError,
    InvalidStateError,
    KeyValueStore,
    PersistError,
    RemoteError,
    ValidationError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from student_dashboard.core.cache import LocalCache
from student_dashboard.records import FILTER_FIELDS, Student, query
from student_dashboard.remote import StudentsApi
from student_dashboard.session import SessionContext, password_strength
from student_dashboard.store import MutationResult, Outcome, RecordStore

logger = get_logger(__name__)


NOT_LOGGED_IN_EXIT_CODE = 5


@dataclass
class App:
    """Objects shared by one command invocation."""
    config: Config
    storage: KeyValueStore
    session: SessionContext
    store: RecordStore

    def close(self) -> None:
        self.storage.close()


def _open_app(options: dict) -> App:
    """
    Load configuration, set up logging and wire the store together.

    A StudentsApi placed in options["api"] is used instead of a real one.

    Raises:
        ConfigError: If configuration is invalid or missing.
        PersistError: If the storage file cannot be opened.
    """
    config_path: Path | None = options.get("config_path")
    config = load_config(config_path, allow_missing=config_path is None)

    setup_logging(config.logging.directory, verbose=options.get("verbose", False))

    storage = KeyValueStore(config.storage.path)
    api = options.get("api") or StudentsApi(config.remote.base_url, timeout=config.remote.timeout)
    cache = LocalCache(storage, key=config.storage.cache_key)

    return App(
        config=config,
        storage=storage,
        session=SessionContext(storage, config.auth),
        store=RecordStore(api, cache),
    )


def _run(ctx: click.Context, action: Callable[[App], None]) -> None:
    """
    Run one command body, mapping errors to exit codes.

    Raises:
        SystemExit: On fatal errors (with appropriate exit code).
    """
    app: App | None = None

    try:
        app = _open_app(ctx.obj)
        action(app)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except PersistError as e:
        click.echo(f"Storage error: {e.message}", err=True)
        logger.error(f"Storage error: {e.message}", exc_info=True)
        sys.exit(2)

    except RemoteError as e:
        click.echo(f"Server error: {e.message}", err=True)
        logger.error(f"Server error: {e.message}", exc_info=True)
        sys.exit(3)

    except DashboardError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}")
        sys.exit(4)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        if app is not None:
            app.close()
        shutdown_logging()


def _require_login(app: App) -> None:
    """Exit with code 5 unless a session is active."""
    user = app.session.current_user()
    if user is None:
        click.echo("Not logged in. Run 'student-dashboard login' first.", err=True)
        sys.exit(NOT_LOGGED_IN_EXIT_CODE)
    logger.debug(f"Session user: {user.email or user.name}")


def _report(result: MutationResult, success: str) -> None:
    """Print the user-facing line for a store result."""
    if result.outcome is Outcome.FAILED:
        click.echo(result.message, err=True)
    elif result.degraded:
        click.echo(result.message)
    else:
        click.echo(success)


def _record_fields(**values: Any) -> dict[str, Any]:
    """Drop options the user did not pass."""
    return {name: value for name, value in values.items() if value is not None}


def _format_row(student: Student) -> str:
    return (
        f"{student.id or '-':<15} "
        f"{student.display_name:<28} "
        f"{student.mail or '-':<30} "
        f"{student.phone or '-':<16} "
        f"{str(student.age) if student.age is not None else '-':<5} "
        f"{student.role or '-'}"
    )


# =============================================================================
# Command Group
# =============================================================================

@click.group()
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml if present)"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug output on the console"
)
@click.version_option(__version__, prog_name="student-dashboard")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """
    student-dashboard: Manage student records online and offline.

    Records are kept on a remote collection and mirrored in a local cache,
    so additions made while the server is unreachable are not lost.

    \b
    GETTING STARTED:
        student-dashboard login
        student-dashboard list
        student-dashboard add --firstname Jane --mail jane@example.com
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


# =============================================================================
# Session Commands
# =============================================================================

@cli.command()
@click.option("--username", prompt="Email", help="Login email")
@click.option("--password", prompt=True, hide_input=True, help="Password")
@click.pass_context
def login(ctx: click.Context, username: str, password: str) -> None:
    """Log in with the configured credentials."""
    def action(app: App) -> None:
        try:
            user = app.session.login(username, password)
        except AuthError as e:
            for field in e.details.get("fields", []):
                click.echo(f"Invalid {field}", err=True)
            raise
        click.echo(f"Welcome, {user.name}!")

    _run(ctx, action)


@cli.command()
@click.option("--first-name", prompt="First name", help="First name")
@click.option("--last-name", prompt="Last name", help="Last name")
@click.option("--email", prompt="Email", help="Email address")
@click.option("--password", prompt=True, hide_input=True, help="Password")
@click.option("--confirm-password", prompt="Confirm password", hide_input=True, help="Repeat the password")
@click.pass_context
def signup(
    ctx: click.Context,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    confirm_password: str
) -> None:
    """Create a session from sign-up details."""
    def action(app: App) -> None:
        strength = password_strength(password)
        if strength:
            click.echo(f"Password strength: {strength}")
        try:
            user = app.session.signup(first_name, last_name, email, password, confirm_password)
        except ValidationError as e:
            for field, message in e.details.get("errors", {}).items():
                click.echo(f"{field}: {message}", err=True)
            raise
        click.echo(f"Account created. Welcome, {user.name}!")

    _run(ctx, action)


@cli.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """End the session."""
    def action(app: App) -> None:
        app.session.logout()
        click.echo("Logged out.")

    _run(ctx, action)


@cli.command()
@click.pass_context
def whoami(ctx: click.Context) -> None:
    """Show the logged-in user."""
    def action(app: App) -> None:
        user = app.session.current_user()
        if user is None:
            click.echo("Not logged in.")
            return
        click.echo(f"{user.name} <{user.email}> (last login {user.last_login})")

    _run(ctx, action)


# =============================================================================
# Student Commands
# =============================================================================

@cli.command("list")
@click.option("--search", "term", default="", help="Search text")
@click.option(
    "--field",
    type=click.Choice(FILTER_FIELDS),
    default="all",
    show_default=True,
    help="Field to search in"
)
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True, help="Page number")
@click.pass_context
def list_students(ctx: click.Context, term: str, field: str, page: int) -> None:
    """List students."""
    def action(app: App) -> None:
        _require_login(app)

        result = app.store.refresh()
        if result.message:
            click.echo(result.message, err=not result.ok)

        shown = query(
            app.store.records,
            term=term,
            field=field,
            page=page,
            rows_per_page=app.config.view.rows_per_page
        )
        if not shown.rows:
            click.echo("No students found.")
            return

        for student in shown.rows:
            click.echo(_format_row(student))
        click.echo(f"Page {shown.page} of {shown.total_pages} ({shown.total} students)")

    _run(ctx, action)


@cli.command()
@click.option("--firstname", default=None, help="First name")
@click.option("--lastname", default=None, help="Last name")
@click.option("--age", type=int, default=None, help="Age")
@click.option("--phone", default=None, help="Phone number")
@click.option("--mail", default=None, help="Email address")
@click.option("--role", default=None, help="Role")
@click.pass_context
def add(ctx: click.Context, **values: Any) -> None:
    """Add a student."""
    fields = _record_fields(**values)
    if not fields:
        raise click.UsageError("Give at least one field, e.g. --firstname or --mail")

    def action(app: App) -> None:
        _require_login(app)
        result = app.store.add(Student.from_dict(fields))
        _report(result, f"Added {result.record.display_name} (id {result.record.id})")

    _run(ctx, action)


@cli.command()
@click.argument("record_id", metavar="ID")
@click.option("--firstname", default=None, help="First name")
@click.option("--lastname", default=None, help="Last name")
@click.option("--age", type=int, default=None, help="Age")
@click.option("--phone", default=None, help="Phone number")
@click.option("--mail", default=None, help="Email address")
@click.option("--role", default=None, help="Role")
@click.pass_context
def update(ctx: click.Context, record_id: str, **values: Any) -> None:
    """Edit a student."""
    changes = _record_fields(**values)
    if not changes:
        raise click.UsageError("Nothing to change; pass at least one field option")

    def action(app: App) -> None:
        _require_login(app)
        app.store.refresh()

        current = app.store.get(record_id)
        if current is None:
            raise InvalidStateError(
                f"No student with id {record_id}",
                details={"record_id": record_id}
            )

        result = app.store.update(current.with_updates(**changes))
        if result.outcome is Outcome.RECONCILED:
            click.echo(f"Student {record_id} no longer exists on the server; removed locally.")
            return
        _report(result, f"Updated {current.display_name}")
        if not result.ok:
            sys.exit(3)

    _run(ctx, action)


@cli.command()
@click.argument("record_id", metavar="ID")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(ctx: click.Context, record_id: str, yes: bool) -> None:
    """Delete a student."""
    if not yes and not click.confirm(f"Delete student {record_id}?"):
        click.echo("Cancelled.")
        return

    def action(app: App) -> None:
        _require_login(app)
        result = app.store.delete(record_id)
        _report(result, f"Deleted student {record_id}")
        if not result.ok:
            sys.exit(3)

    _run(ctx, action)


@cli.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def import_students(ctx: click.Context, file: Path) -> None:
    """Add every student from a JSON array file."""
    def action(app: App) -> None:
        _require_login(app)

        try:
            data = json.loads(file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise InvalidStateError(
                f"Cannot read {file}: {e}",
                details={"file_path": str(file)}
            ) from e
        if not isinstance(data, list):
            raise InvalidStateError(
                f"{file} must contain a JSON array of students",
                details={"file_path": str(file)}
            )

        counts = {"saved": 0, "local": 0, "skipped": 0}
        for index, item in enumerate(tqdm(data, desc="Importing", unit="student")):
            try:
                student = Student.from_dict(item)
            except InvalidStateError as e:
                logger.warning(f"Skipping entry #{index}: {e.message}")
                counts["skipped"] += 1
                continue

            result = app.store.add(student)
            counts["local" if result.degraded else "saved"] += 1

        logger.info("=" * 60)
        logger.info("IMPORT SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Saved on server:   {counts['saved']}")
        logger.info(f"Saved locally:     {counts['local']}")
        logger.info(f"Skipped:           {counts['skipped']}")
        logger.info("=" * 60)
        click.echo(
            f"Imported {counts['saved'] + counts['local']} students "
            f"({counts['local']} saved locally only, {counts['skipped']} skipped)"
        )

    _run(ctx, action)


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `student-dashboard` from the
    command line. It invokes the Click CLI group.
    """
    cli()


if __name__ == "__main__":
    main()
