"""
Error classes for envq.

Every error carries the process exit code the CLI should use for it.
"""


class EnvqError(Exception):
    """Base error for envq operations."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


class ParseError(EnvqError):
    """A line of input could not be classified."""

    def __init__(self, lineno: int, line: str, reason: str):
        super().__init__(f"line {lineno}: {reason}: {line!r}")
        self.lineno = lineno
        self.line = line
        self.reason = reason


class OperationError(EnvqError):
    """An operation was rejected for the given document or arguments."""


class KeyNotFound(OperationError):
    """No entry with the requested key exists."""

    def __init__(self, key: str):
        super().__init__(f"Key '{key}' not found")
        self.key = key
