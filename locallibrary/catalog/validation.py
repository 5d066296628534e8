"""
Field validation for catalog forms.

Each entity kind declares its rules as a mapping from field name to an
ordered list of ``Step`` objects. A step may sanitize the value, check
it, or both; the first failing check records one ``FieldError`` and
stops the remaining steps for that field. One engine, ``validate()``,
runs the declarations for every kind and returns a ``ValidationResult``
holding either the frozen draft or the errors plus an echo of the
submitted values for redisplay.
"""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from ..errors import ValidationFailed
from ..models import DEFAULT_STATUS, DRAFT_TYPES, EntityKind


EMPTY_FIELD = "EmptyField"
INVALID_CHARACTERS = "InvalidCharacters"
INVALID_DATE = "InvalidDate"
DUPLICATE_NAME = "DuplicateName"

# C0 and C1 control characters, minus tab, newline and carriage return.
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
# ASCII letters and digits only; rejects many real names.
_ALPHANUMERIC = re.compile(r"^[A-Za-z0-9]+$")


class FieldError(BaseModel):
    field: str
    code: str
    message: str


class ValidationResult(BaseModel):
    ok: bool
    draft: Optional[BaseModel] = None
    errors: List[FieldError] = Field(default_factory=list)
    echo: Dict[str, Any] = Field(default_factory=dict)


# --- sanitizers -------------------------------------------------------------


def clean_text(value: Any) -> str:
    """Trim a submitted value and drop control characters."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else ""
    if value is None:
        return ""
    return _CONTROL_CHARS.sub("", str(value)).strip()


def normalize_multi(value: Any) -> List[Any]:
    """Absent becomes ``[]``, a single value becomes a one-element list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def clean_ids(values: List[Any]) -> List[str]:
    seen: List[str] = []
    for value in values:
        cleaned = clean_text(value)
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


def parse_date(value: str) -> Optional[datetime.date]:
    """Parse an ISO-8601 date (or datetime) string; blank means not provided."""
    if not value:
        return None
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        # raises ValueError again when this is not a datetime either
        return datetime.datetime.fromisoformat(value).date()


def default_status(value: str) -> str:
    return value or DEFAULT_STATUS


# --- checks -----------------------------------------------------------------


def not_empty(value: str) -> bool:
    return len(value) > 0


def is_alphanumeric(value: str) -> bool:
    return bool(_ALPHANUMERIC.match(value))


def is_optional_date(value: str) -> bool:
    if not value:
        return True
    try:
        parse_date(value)
    except ValueError:
        return False
    return True


# --- rule declarations ------------------------------------------------------


@dataclass(frozen=True)
class Step:
    sanitize: Optional[Callable[[Any], Any]] = None
    check: Optional[Callable[[Any], bool]] = None
    code: str = ""
    message: str = ""


def required_text(message: str) -> List[Step]:
    return [Step(sanitize=clean_text, check=not_empty, code=EMPTY_FIELD, message=message)]


def name_text(label: str) -> List[Step]:
    return required_text(f"{label} must be specified.") + [
        Step(
            check=is_alphanumeric,
            code=INVALID_CHARACTERS,
            message=f"{label} has non-alphanumeric characters.",
        )
    ]


def optional_date(message: str) -> List[Step]:
    return [
        Step(sanitize=clean_text, check=is_optional_date, code=INVALID_DATE, message=message),
        Step(sanitize=parse_date),
    ]


MULTI_REFERENCE: List[Step] = [Step(sanitize=normalize_multi), Step(sanitize=clean_ids)]

RULES: Dict[EntityKind, Dict[str, List[Step]]] = {
    EntityKind.GENRE: {
        "name": required_text("Genre name required"),
    },
    EntityKind.AUTHOR: {
        "first_name": name_text("First name"),
        "family_name": name_text("Family name"),
        "date_of_birth": optional_date("Invalid date of birth"),
        "date_of_death": optional_date("Invalid date of death"),
    },
    EntityKind.BOOK: {
        "title": required_text("Title must not be empty."),
        "author": required_text("Author must not be empty."),
        "summary": required_text("Summary must not be empty."),
        "isbn": required_text("ISBN must not be empty"),
        "genre": MULTI_REFERENCE,
    },
    EntityKind.BOOKINSTANCE: {
        "book": required_text("Book must be specified"),
        "imprint": required_text("Imprint must be specified"),
        # membership is not checked; the form only offers the known states
        "status": [Step(sanitize=clean_text), Step(sanitize=default_status)],
        "due_back": optional_date("Invalid date"),
    },
}

MULTI_VALUED = {"genre"}


# --- engine -----------------------------------------------------------------


def echo_values(kind: EntityKind, raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Rebuild the submitted values of ``kind`` for redisplay."""
    echo: Dict[str, Any] = {}
    for field in RULES[EntityKind(kind)]:
        value = raw.get(field)
        if field in MULTI_VALUED:
            echo[field] = [str(v) for v in normalize_multi(value)]
        elif isinstance(value, (list, tuple)):
            echo[field] = str(value[0]) if value else ""
        else:
            echo[field] = "" if value is None else str(value)
    return echo


def run_steps(field: str, steps: List[Step], value: Any):
    """Run ``steps`` over ``value``; return ``(value, error_or_None)``."""
    for step in steps:
        if step.sanitize is not None:
            value = step.sanitize(value)
        if step.check is not None and not step.check(value):
            return value, FieldError(field=field, code=step.code, message=step.message)
    return value, None


def validate(kind: EntityKind, raw: Mapping[str, Any]) -> ValidationResult:
    """Sanitize and validate ``raw`` form values for ``kind``."""
    kind = EntityKind(kind)
    values: Dict[str, Any] = {}
    errors: List[FieldError] = []
    for field, steps in RULES[kind].items():
        value, error = run_steps(field, steps, raw.get(field))
        if error is not None:
            errors.append(error)
        else:
            values[field] = value

    if errors:
        return ValidationResult(ok=False, errors=errors, echo=echo_values(kind, raw))
    return ValidationResult(ok=True, draft=DRAFT_TYPES[kind](**values))


def clean(kind: EntityKind, raw: Mapping[str, Any]) -> BaseModel:
    """Return the draft for ``raw`` or raise ``ValidationFailed``."""
    result = validate(kind, raw)
    if not result.ok:
        raise ValidationFailed(result.errors, result.echo)
    return result.draft
