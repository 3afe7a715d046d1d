"""
Unit tests for the JSON validator.

Only object-shaped text ("{" first) is parsed up front; everything else
passes through untouched.
"""

from pathlib import Path

import pytest

from mock_fixture_server import FailureKind, decode_fixture, looks_like_json, validate_fixture
from tests.utils.result_assertions import assert_error, assert_ok


FILE = Path("/fixtures/broken.json")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ('{"a": 1}', True),
        ('  \n\t{"a": 1}', True),
        ("{invalid", True),
        ("[1, 2]", False),
        ("42", False),
        ("<html></html>", False),
        ("", False),
    ],
)
def test_looks_like_json(text: str, expected: bool) -> None:
    assert looks_like_json(text) is expected


def test_valid_object_is_returned_unchanged() -> None:
    text = '  {"id": 1,   "name": "a"}\n'

    assert assert_ok(validate_fixture(text, "/users", FILE)) == text


def test_non_object_text_bypasses_parsing() -> None:
    """Arrays and HTML are not checked here, even when broken."""
    assert assert_ok(validate_fixture("[1, 2", "/list", FILE)) == "[1, 2"
    assert assert_ok(validate_fixture("<p>hi</p>", "/page", FILE)) == "<p>hi</p>"


def test_malformed_object_reports_url_and_file() -> None:
    # given / when
    failure = assert_error(validate_fixture("{invalid json", "/broken", FILE))

    # then
    assert failure.kind == FailureKind.MALFORMED_FIXTURE
    assert failure.status == 500
    assert failure.payload["url"] == "/broken"
    assert failure.payload["file"] == str(FILE)
    assert failure.payload["message"].startswith("File looks like JSON, but could not be parsed (")


def test_decode_any_json_value() -> None:
    assert assert_ok(decode_fixture("[1, 2, 3]")) == [1, 2, 3]
    assert assert_ok(decode_fixture('{"a": {"b": null}}')) == {"a": {"b": None}}
    assert assert_ok(decode_fixture("7")) == 7


def test_decode_opaque_text_is_error() -> None:
    assert "Expecting value" in assert_error(decode_fixture("<html></html>"))


@pytest.mark.parametrize("text", ['{"a": NaN}', '{"a": Infinity}', '{"a": -Infinity}'])
def test_non_standard_constants_are_malformed(text: str) -> None:
    """json.loads accepts NaN and Infinity, but they are not JSON."""
    failure = assert_error(validate_fixture(text, "/nan", FILE))

    assert failure.kind == FailureKind.MALFORMED_FIXTURE
    assert failure.payload["url"] == "/nan"


def test_decode_rejects_non_standard_constants() -> None:
    assert "NaN" in assert_error(decode_fixture("[NaN]"))
    assert "Infinity" in assert_error(decode_fixture("Infinity"))
