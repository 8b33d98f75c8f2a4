"""
envq - a jq/yq-like tool for .env files

Reads, queries and edits .env files while keeping comments, blank lines,
quoting and layout exactly as they were.
"""

__version__ = "0.1.0"

from .core import document, errors, lexer
from .core.lexer import Document, parse, serialize
from .core.errors import EnvqError, KeyNotFound, OperationError, ParseError

__all__ = [
    "document",
    "errors",
    "lexer",
    "Document",
    "parse",
    "serialize",
    "EnvqError",
    "KeyNotFound",
    "OperationError",
    "ParseError",
]
