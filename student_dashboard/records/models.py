"""
Data model for student records.

This module defines the one record type the reconciliation store works
with. Raw dictionaries from the remote API or the local cache are turned
into Student objects exactly once, at the adapter boundary, so merge and
mutation logic can rely on well-typed input.

Design Decisions:
    - Student is frozen (immutable); edits produce a new instance via replace()
    - Every field is optional; identity is derived, see records.identity
    - Field spellings are normalized by one declarative alias table
    - Unknown fields are kept in `extra` so nothing the server sends is lost

Usage:
    from student_dashboard.records.models import Student

    student = Student.from_dict({"id": 7, "email": "jane@example.com"})
    student.id    # "7"
    student.mail  # "jane@example.com"
"""

from dataclasses import dataclass, field, replace
from typing import Any

from student_dashboard.core.exceptions import InvalidStateError


RECORD_FIELDS = ("id", "firstname", "lastname", "age", "phone", "mail", "role", "date")

# Fields a host can edit through the CLI / forms
EDITABLE_FIELDS = ("firstname", "lastname", "age", "phone", "mail", "role")

# canonical name -> alternative spellings seen in older payloads
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "firstname": ("first_name", "firstName", "fname"),
    "lastname": ("last_name", "lastName", "lname", "surname"),
    "mail": ("email", "e-mail", "e_mail", "emailAddress"),
    "phone": ("phone_number", "phoneNumber", "mobile"),
    "age": ("years",),
    "role": ("position", "title"),
    "date": ("created", "created_at"),
}

_ALIAS_TO_CANONICAL = {
    alias: canonical
    for canonical, aliases in FIELD_ALIASES.items()
    for alias in aliases
}


def normalize_fields(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Rename aliased keys of a raw record to their canonical names.

    A canonical key always wins over an alias; among aliases, the first
    one encountered in the input wins.

    Args:
        raw: Record dictionary as received from the API or cache.

    Returns:
        New dictionary with canonical keys. Keys that are neither canonical
        nor aliases are passed through untouched.

    Example:
        normalize_fields({"first_name": "Ann", "firstname": "Anna"})
        # {"firstname": "Anna"}
    """
    normalized: dict[str, Any] = {}
    for key, value in raw.items():
        canonical = _ALIAS_TO_CANONICAL.get(key)
        if canonical is None:
            normalized[key] = value
        elif canonical not in raw and canonical not in normalized:
            normalized[canonical] = value
    return normalized


def _as_optional_str(name: str, value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidStateError(
            f"Field '{name}' must be a string, got a boolean",
            details={"field": name, "value": value}
        )
    if isinstance(value, (str, int, float)):
        return str(value)
    raise InvalidStateError(
        f"Field '{name}' must be a string",
        details={"field": name, "value": repr(value)}
    )


def _as_age(value: Any) -> int | str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidStateError(
            "Field 'age' must be a number or a string, got a boolean",
            details={"field": "age", "value": value}
        )
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else str(value)
    if isinstance(value, str):
        return value
    raise InvalidStateError(
        "Field 'age' must be a number or a string",
        details={"field": "age", "value": repr(value)}
    )


@dataclass(frozen=True)
class Student:
    """
    Immutable representation of one student record.

    Attributes:
        id: Assigned by the remote collection on creation, or a local
            placeholder (epoch milliseconds) until the server confirms.
            Numeric ids from JSON are stored as strings.
        mail: Email address; the fallback identity when id is absent.
        firstname: Given name.
        lastname: Family name.
        age: Numeric or free text, as entered.
        phone: Phone number as entered.
        role: Free-text role (e.g. "student", "monitor").
        date: ISO-8601 creation timestamp.
        extra: Any other fields the server returned (e.g. "createdAt").
    """

    id: str | None = None
    mail: str | None = None
    firstname: str | None = None
    lastname: str | None = None
    age: int | str | None = None
    phone: str | None = None
    role: str | None = None
    date: str | None = None
    extra: dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Student":
        """
        Create a Student from a raw record dictionary.

        Applies the alias table, coerces id to str, validates field types
        and moves unknown keys into `extra`.

        Raises:
            InvalidStateError: If data is not a dict or a field has an
                               unusable type (booleans, lists, objects).
        """
        if not isinstance(data, dict):
            raise InvalidStateError(
                "Student record must be a JSON object",
                details={"value": repr(data)}
            )

        normalized = normalize_fields(data)
        extra = {k: v for k, v in normalized.items() if k not in RECORD_FIELDS}

        return cls(
            id=_as_optional_str("id", normalized.get("id")),
            mail=_as_optional_str("mail", normalized.get("mail")),
            firstname=_as_optional_str("firstname", normalized.get("firstname")),
            lastname=_as_optional_str("lastname", normalized.get("lastname")),
            age=_as_age(normalized.get("age")),
            phone=_as_optional_str("phone", normalized.get("phone")),
            role=_as_optional_str("role", normalized.get("role")),
            date=_as_optional_str("date", normalized.get("date")),
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to a JSON-serializable dictionary for the local cache.

        Absent (None) fields are omitted; extra fields are included.
        """
        data: dict[str, Any] = dict(self.extra)
        for name in RECORD_FIELDS:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data

    def to_payload(self) -> dict[str, Any]:
        """
        Body for create/update requests.

        Contains every editable field (empty string placeholder when
        absent, as the edit form sends them) plus date. The id is never
        part of the body; it travels in the URL.
        """
        payload: dict[str, Any] = {
            name: getattr(self, name) if getattr(self, name) is not None else ""
            for name in EDITABLE_FIELDS
        }
        payload["date"] = self.date
        return payload

    @property
    def display_name(self) -> str:
        """'First Last', falling back to mail, then '(unnamed)'."""
        name = " ".join(part for part in (self.firstname, self.lastname) if part)
        return name or self.mail or "(unnamed)"

    def with_updates(self, **changes: Any) -> "Student":
        """
        Return a copy with the given fields changed.

        Values go through the same validation as from_dict.

        Raises:
            InvalidStateError: If a field name is unknown or a value is invalid.
        """
        unknown = set(changes) - set(RECORD_FIELDS)
        if unknown:
            raise InvalidStateError(
                f"Unknown student field(s): {', '.join(sorted(unknown))}",
                details={"fields": sorted(unknown)}
            )
        merged = {**self.to_dict(), **changes}
        validated = Student.from_dict(merged)
        return replace(self, **{name: getattr(validated, name) for name in changes})
