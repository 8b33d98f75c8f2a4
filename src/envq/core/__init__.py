"""
envq core modules.

Includes:
- lexer: Lossless .env parsing and serialization
- document: Read and edit operations on parsed documents
- errors: Error classes shared by the core and the CLI
"""

from . import errors
from . import lexer
from . import document

__all__ = [
    "errors",
    "lexer",
    "document",
]
