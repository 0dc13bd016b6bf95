import pytest

from app.services.custom_fields import (
    get_validation_error,
    public_fields,
    validate_custom_fields,
    validate_date,
    validate_phone,
    validate_url,
)


@pytest.mark.parametrize("url, valid", [
    ("https://obsi.app", True),
    ("http://example.com/path?q=1", True),
    ("ftp://example.com", False),
    ("example.com", False),
    ("", True),
])
def test_validate_url(url, valid):
    assert validate_url(url) is valid


def test_validate_phone():
    assert validate_phone("+33 6 12 34 56 78")
    assert validate_phone("(555) 123-4567")
    assert not validate_phone("12345")
    assert not validate_phone("call me maybe")


def test_validate_date():
    assert validate_date("2026-10-19")
    assert not validate_date("19/10/2026")


def test_get_validation_error():
    assert get_validation_error("text", "", required=True) == "This field is required"
    assert get_validation_error("text", "   ", required=True) == "This field is required"
    assert get_validation_error("email", "") is None
    assert get_validation_error("email", "nope") == "Invalid email"
    assert get_validation_error("email", "jane@obsi.app") is None
    assert get_validation_error("textarea", "anything goes") is None


def test_validate_custom_fields():
    fields = [
        {"id": "a", "type": "url", "value": "https://obsi.app"},
        {"id": "b", "type": "phone", "value": "12"},
        {"id": "a", "type": "text", "value": "dup"},
        {"id": "c", "type": "date", "value": "", "required": True},
    ]
    assert validate_custom_fields(fields) == {
        "b": "Invalid phone number",
        "a": "Duplicate field id",
        "c": "This field is required",
    }


def test_public_fields_sorted_and_filtered():
    fields = [
        {"id": "b", "order": 2, "isPublic": True},
        {"id": "private", "order": 0, "isPublic": False},
        {"id": "a", "order": 1},
        {"id": "legacy", "order": 3, "is_public": False},
    ]
    assert [f["id"] for f in public_fields(fields)] == ["a", "b"]
