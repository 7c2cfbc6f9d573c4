"""Explicit input constraints.

Each check returns a list of messages for one field (empty when the value
is fine). check_* helpers combine them into {field: [messages]} and
raise_for_errors() turns a non-empty result into a ValidationError.
"""

from typing import Any, Optional

from email_validator import EmailNotValidError, validate_email

from listkeeper.db.models import Priority
from listkeeper.errors import ValidationError

MAX_LENGTH = 255
MIN_PASSWORD_LENGTH = 8


def required_string(
    value: Optional[str], field: str, max_length: int = MAX_LENGTH
) -> list[str]:
    if value is None or not str(value).strip():
        return [f"The {field} field is required."]
    if len(value) > max_length:
        return [f"The {field} field must not be greater than {max_length} characters."]
    return []


def check_email(email: Optional[str]) -> list[str]:
    problems = required_string(email, "email")
    if problems:
        return problems
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return ["The email field must be a valid email address."]
    return []


def check_password(password: Optional[str]) -> list[str]:
    if not password:
        return ["The password field is required."]
    if len(password) < MIN_PASSWORD_LENGTH:
        return [f"The password field must be at least {MIN_PASSWORD_LENGTH} characters."]
    if len(password) > MAX_LENGTH:
        return [f"The password field must not be greater than {MAX_LENGTH} characters."]
    return []


def check_registration(name: str, email: str, password: str) -> dict[str, list[str]]:
    errors = {
        "name": required_string(name, "name"),
        "email": check_email(email),
        "password": check_password(password),
    }
    return {field: msgs for field, msgs in errors.items() if msgs}


def check_priority(value: Optional[str]) -> list[str]:
    """Strict check used on update: exact lowercase match only."""
    if value not in Priority.values():
        return ["The selected priority is invalid."]
    return []


def raise_for_errors(errors: dict[str, list[str]]) -> None:
    if errors:
        raise ValidationError(errors)


def errors_from_pydantic(details: list[dict[str, Any]]) -> dict[str, list[str]]:
    """Reshape FastAPI's RequestValidationError.errors() into field → messages."""
    errors: dict[str, list[str]] = {}
    for detail in details:
        loc = [str(part) for part in detail.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        if detail.get("type") == "missing":
            message = f"The {field} field is required."
        else:
            message = detail.get("msg", "Invalid value.")
        errors.setdefault(field, []).append(message)
    return errors
