"""
Tests for the error classes.
"""

from envq.core.errors import EnvqError, KeyNotFound, OperationError, ParseError


def test_envq_error_default_exit_code():
    assert EnvqError("boom").exit_code == 1


def test_envq_error_custom_exit_code():
    error = EnvqError("usage", exit_code=2)
    assert str(error) == "usage"
    assert error.exit_code == 2


def test_parse_error_attributes():
    error = ParseError(4, "oops", "malformed assignment")
    assert error.lineno == 4
    assert error.line == "oops"
    assert error.reason == "malformed assignment"
    assert str(error) == "line 4: malformed assignment: 'oops'"
    assert isinstance(error, EnvqError)


def test_key_not_found_is_operation_error():
    error = KeyNotFound("MISSING")
    assert error.key == "MISSING"
    assert str(error) == "Key 'MISSING' not found"
    assert isinstance(error, OperationError)
    assert error.exit_code == 1
