"""Input constraint helpers and the Priority enum."""

import pytest

from listkeeper.db.models import Priority
from listkeeper.errors import ValidationError
from listkeeper.validation import (
    check_email,
    check_priority,
    check_registration,
    errors_from_pydantic,
    raise_for_errors,
    required_string,
)


def test_priority_normalize():
    assert Priority.normalize("High") is Priority.HIGH
    assert Priority.normalize("low") is Priority.LOW
    assert Priority.normalize("urgent") is Priority.MEDIUM
    assert Priority.normalize(None) is Priority.MEDIUM
    assert Priority.normalize(5) is Priority.MEDIUM
    assert Priority.normalize(["high"]) is Priority.MEDIUM


def test_check_priority_is_strict():
    assert check_priority("medium") == []
    assert check_priority("Medium") == ["The selected priority is invalid."]
    assert check_priority(None) == ["The selected priority is invalid."]


def test_required_string():
    assert required_string("ok", "name") == []
    assert required_string("   ", "name") == ["The name field is required."]
    assert required_string(None, "name") == ["The name field is required."]
    assert required_string("x" * 256, "name") == [
        "The name field must not be greater than 255 characters."
    ]


@pytest.mark.parametrize("email", [
    "plain", "a@b", "a b@c.de", "a@b..com", "ada@.example.com", "",
])
def test_check_email_rejects(email):
    assert check_email(email)


def test_check_email_accepts_ordinary_addresses():
    assert check_email("ada@example.com") == []
    assert check_email("grace.hopper+lists@mail.example.org") == []


def test_check_registration_collects_every_field():
    errors = check_registration("", "bad", "short")
    assert set(errors) == {"name", "email", "password"}
    assert check_registration("Ada", "ada@example.com", "long-enough") == {}


def test_raise_for_errors():
    raise_for_errors({})
    with pytest.raises(ValidationError) as exc:
        raise_for_errors({"name": ["The name field is required."]})
    assert exc.value.message == "The name field is required."
    assert exc.value.to_dict() == {
        "message": "The name field is required.",
        "errors": {"name": ["The name field is required."]},
    }


def test_errors_from_pydantic():
    details = [
        {"loc": ("body", "name"), "type": "missing", "msg": "Field required"},
        {"loc": ("body", "priority"), "type": "string_pattern_mismatch", "msg": "bad"},
        {"loc": ("body",), "type": "json_invalid", "msg": "JSON decode error"},
    ]
    assert errors_from_pydantic(details) == {
        "name": ["The name field is required."],
        "priority": ["bad"],
        "body": ["JSON decode error"],
    }
