"""
Session gate for the dashboard.

This is a credential comparison, not an authentication system: login
succeeds when the trimmed input equals the configured username and
password. A successful login or sign-up writes four session flags to the
key-value store; the CLI checks them before running any record command.

Session Flags (stored under the "session." prefix):
    isLoggedIn  - "true" while a user is logged in
    userEmail   - Email the user logged in / signed up with
    userName    - Display name
    lastLogin   - ISO-8601 timestamp of the login

Usage:
    session = SessionContext(KeyValueStore(path), config.auth)
    session.login("testuser@example.com", "password123")
    session.current_user()   # User(name="testuser", ...)
    session.logout()
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone

from student_dashboard.core.config import AuthConfig
from student_dashboard.core.exceptions import AuthError, PersistError, ValidationError
from student_dashboard.core.logger import get_logger
from student_dashboard.core.storage import KeyValueStore

logger = get_logger(__name__)


SESSION_PREFIX = "session."
FLAG_LOGGED_IN = "isLoggedIn"
FLAG_EMAIL = "userEmail"
FLAG_NAME = "userName"
FLAG_LAST_LOGIN = "lastLogin"
SESSION_FLAGS = (FLAG_LOGGED_IN, FLAG_EMAIL, FLAG_NAME, FLAG_LAST_LOGIN)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'
MIN_PASSWORD_LENGTH = 6
STRONG_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class User:
    """
    The logged-in user as restored from the session flags.

    Attributes:
        name: Display name.
        email: Login email (may be empty for a legacy session).
        last_login: ISO-8601 timestamp of the login.
    """
    name: str
    email: str
    last_login: str


def is_valid_email(value: str) -> bool:
    """Loose "something@something.tld" check."""
    return bool(EMAIL_PATTERN.match(value))


def _character_classes(password: str) -> list[bool]:
    return [
        any(c.isupper() for c in password),
        any(c.islower() for c in password),
        any(c.isdigit() for c in password),
        any(c in SPECIAL_CHARACTERS for c in password),
    ]


def password_strength(password: str) -> str:
    """
    Rate a password the way the sign-up form does.

    Returns:
        "" for an empty password, then "Too short" (< 6 characters),
        "Weak" (< 8 characters, or fewer than two character classes),
        "Medium" (two or three classes) or "Strong" (all four).
    """
    if not password:
        return ""
    if len(password) < MIN_PASSWORD_LENGTH:
        return "Too short"
    if len(password) < STRONG_PASSWORD_LENGTH:
        return "Weak"

    score = sum(_character_classes(password))
    if score < 2:
        return "Weak"
    if score < 4:
        return "Medium"
    return "Strong"


def _password_errors(password: str) -> str | None:
    if not password:
        return "Password is required"
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    upper, lower, digit, special = _character_classes(password)
    if not upper:
        return "Must include an uppercase letter"
    if not lower:
        return "Must include a lowercase letter"
    if not digit:
        return "Must include a number"
    if not special:
        return "Must include a special character"
    return None


def validate_signup(
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    confirm_password: str
) -> dict[str, str]:
    """
    Check sign-up values.

    Returns:
        Mapping of field name to message for every rejected field; empty
        when everything is acceptable.
    """
    errors: dict[str, str] = {}

    first_name = first_name.strip()
    if not first_name:
        errors["first_name"] = "First name is required"
    elif len(first_name) < 2:
        errors["first_name"] = "Minimum 2 characters"

    if not last_name.strip():
        errors["last_name"] = "Last name is required"

    email = email.strip()
    if not email:
        errors["email"] = "Email is required"
    elif not is_valid_email(email):
        errors["email"] = "Please enter a valid email address"

    password_error = _password_errors(password)
    if password_error:
        errors["password"] = password_error

    if not confirm_password:
        errors["confirm_password"] = "Please confirm your password"
    elif confirm_password != password:
        errors["confirm_password"] = "Passwords do not match"

    return errors


class SessionContext:
    """
    Login state backed by the key-value store.

    Flag writes are best-effort: a storage failure is logged and the
    returned User is still valid for the current process.
    """

    def __init__(self, store: KeyValueStore, credentials: AuthConfig) -> None:
        self._store = store
        self._credentials = credentials

    def _key(self, flag: str) -> str:
        return f"{SESSION_PREFIX}{flag}"

    def _write(self, user: User) -> None:
        flags = {
            FLAG_LOGGED_IN: "true",
            FLAG_EMAIL: user.email,
            FLAG_NAME: user.name,
            FLAG_LAST_LOGIN: user.last_login,
        }
        try:
            for flag, value in flags.items():
                self._store.set(self._key(flag), value)
        except PersistError as e:
            logger.error(f"Could not save session: {e.message}")

    def login(self, username: str, password: str) -> User:
        """
        Compare credentials and start a session.

        Both inputs are trimmed before comparison.

        Raises:
            AuthError: If either value does not match. details["fields"]
                       lists "username" and/or "password".
        """
        username = username.strip()
        password = password.strip()

        wrong: list[str] = []
        if username != self._credentials.username:
            wrong.append("username")
        if password != self._credentials.password:
            wrong.append("password")
        if wrong:
            logger.debug(f"Login rejected for {username!r}")
            raise AuthError(
                "Invalid email address or password",
                details={"fields": wrong}
            )

        user = User(
            name=username.split("@")[0] or username,
            email=username,
            last_login=datetime.now(timezone.utc).isoformat(),
        )
        self._write(user)
        logger.info(f"Logged in as {user.name}")
        return user

    def signup(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        confirm_password: str
    ) -> User:
        """
        Validate sign-up values and start a session.

        Nothing is registered anywhere; the values only populate the
        session flags.

        Raises:
            ValidationError: If any value is rejected. details["errors"]
                             maps field names to messages.
        """
        errors = validate_signup(first_name, last_name, email, password, confirm_password)
        if errors:
            raise ValidationError(
                "Please correct the highlighted fields",
                details={"errors": errors}
            )

        email = email.strip()
        user = User(
            name=first_name.strip() or email.split("@")[0] or "Guest",
            email=email,
            last_login=datetime.now(timezone.utc).isoformat(),
        )
        self._write(user)
        logger.info(f"Signed up as {user.name}")
        return user

    def current_user(self) -> User | None:
        """
        Restore the user from the session flags.

        A stored email that is not a valid address ends the session.

        Returns:
            The logged-in User, or None.
        """
        try:
            if self._store.get(self._key(FLAG_LOGGED_IN)) != "true":
                return None
            email = self._store.get(self._key(FLAG_EMAIL)) or ""
            name = self._store.get(self._key(FLAG_NAME)) or ""
            last_login = self._store.get(self._key(FLAG_LAST_LOGIN))
        except PersistError as e:
            logger.error(f"Could not read session: {e.message}")
            return None

        if email and not is_valid_email(email):
            logger.warning("Invalid email format in stored session, logging out")
            self.logout()
            return None

        return User(
            name=name,
            email=email,
            last_login=last_login or datetime.now(timezone.utc).isoformat(),
        )

    def logout(self) -> None:
        """Clear every session flag."""
        try:
            for flag in SESSION_FLAGS:
                self._store.delete(self._key(flag))
        except PersistError as e:
            logger.error(f"Could not clear session: {e.message}")
