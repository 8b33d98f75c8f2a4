"""
Read and edit operations on a parsed .env Document.

Every editing operation returns a new Document and leaves its input as it
was. Keyed operations resolve to the first entry with a matching key; later
duplicates are never touched.
"""

from dataclasses import replace
from typing import List, Optional, Tuple

from .errors import KeyNotFound, OperationError
from .lexer import (
    COMMENT_MARKER,
    Document,
    Line,
    LineType,
    comment_text,
    is_valid_key,
    quote_value,
)


def _find(document: Document, key: str) -> int:
    """Index of the first entry for `key` in document.lines."""
    for index, line in enumerate(document.lines):
        if line.type == LineType.ENTRY and line.key == key:
            return index
    raise KeyNotFound(key)


def _copy(document: Document, header: Optional[List[Line]] = None,
          lines: Optional[List[Line]] = None) -> Document:
    return Document(
        header=list(document.header if header is None else header),
        lines=list(document.lines if lines is None else lines),
        newline=document.newline,
    )


def _replace_line(document: Document, index: int, line: Line) -> Document:
    lines = list(document.lines)
    lines[index] = line
    return _copy(document, lines=lines)


def list_keys(document: Document) -> List[str]:
    """
    List all keys in document order.

    Duplicate keys are listed once per occurrence.
    """
    return [line.key for line in document.lines if line.type == LineType.ENTRY]


def list_values(document: Document) -> List[Tuple[str, str]]:
    """List (key, value) pairs in document order, duplicates included."""
    return [
        (line.key, line.value)
        for line in document.lines
        if line.type == LineType.ENTRY
    ]


def get_value(document: Document, key: str) -> str:
    """
    Get the value of a key.

    Raises:
        KeyNotFound: If no entry has this key.
    """
    return document.lines[_find(document, key)].value


def get_comment(document: Document, key: str) -> Optional[str]:
    """
    Get the inline comment of a key.

    Returns:
        Comment text without the marker, or None if the entry has none

    Raises:
        KeyNotFound: If no entry has this key.
    """
    return document.lines[_find(document, key)].comment


def get_header(document: Document) -> str:
    """Get the header comment block as text, one line per comment."""
    return "\n".join(line.comment for line in document.header)


def set_value(document: Document, key: str, value: str) -> Document:
    """
    Set the value of a key, keeping its inline comment and quote style.

    A key that does not exist yet is appended as a new entry at the end of
    the document.

    Raises:
        OperationError: If a new key is not a valid variable name.
    """
    try:
        index = _find(document, key)
    except KeyNotFound:
        return _append_entry(document, key, value)

    line = document.lines[index]
    value_raw, quote = quote_value(value, line.quote)
    return _replace_line(
        document, index, replace(line, value=value, value_raw=value_raw, quote=quote)
    )


def _append_entry(document: Document, key: str, value: str) -> Document:
    if not is_valid_key(key):
        raise OperationError(f"Invalid key name '{key}'")

    header = list(document.header)
    lines = list(document.lines)
    value_raw, quote = quote_value(value)

    # Keep a missing final newline missing: the old last line gains one
    # and the new entry goes without.
    eol = document.newline
    last = lines or header
    if last and not last[-1].eol:
        last[-1] = replace(last[-1], eol=document.newline)
        eol = ""

    lines.append(Line(
        LineType.ENTRY,
        eol=eol,
        key=key,
        value=value,
        quote=quote,
        head=f"{key}=",
        value_raw=value_raw,
    ))
    return _copy(document, header=header, lines=lines)


def set_comment(document: Document, key: str, text: str) -> Document:
    """
    Set or replace the inline comment of a key.

    Raises:
        KeyNotFound: If no entry has this key.
        OperationError: If the comment spans more than one line.
    """
    index = _find(document, key)
    if "\n" in text or "\r" in text:
        raise OperationError("Inline comment must be a single line")

    line = document.lines[index]
    if line.comment is None:
        spacing = " "
    else:
        spacing = line.tail[:line.tail.find(COMMENT_MARKER)]

    tail = f"{spacing}{COMMENT_MARKER} {text}".rstrip()
    return _replace_line(document, index, replace(line, comment=text.strip(), tail=tail))


def set_header(document: Document, text: str) -> Document:
    """
    Replace the header comment block.

    Each line of `text` becomes one comment line. A document that had no
    header gets a blank line between the new header and its body.
    """
    header = [_header_line(part, document.newline) for part in text.splitlines()]
    lines = list(document.lines)

    if header and not lines and document.header and not document.header[-1].eol:
        header[-1] = replace(header[-1], eol="")

    if header and not document.header and lines and lines[0].type != LineType.BLANK:
        lines.insert(0, Line(LineType.BLANK, eol=document.newline))

    return _copy(document, header=header, lines=lines)


def _header_line(part: str, eol: str) -> Line:
    text = f"{COMMENT_MARKER} {part}".rstrip()
    return Line(LineType.COMMENT, text=text, eol=eol, comment=comment_text(text))


def del_key(document: Document, key: str) -> Document:
    """
    Remove the first entry for a key, inline comment included.

    Raises:
        KeyNotFound: If no entry has this key.
    """
    index = _find(document, key)
    header = list(document.header)
    lines = list(document.lines)
    removed = lines.pop(index)

    # Only the final line lacks a terminator; the new final line inherits that
    if not removed.eol:
        last = lines or header
        if last:
            last[-1] = replace(last[-1], eol="")

    return _copy(document, header=header, lines=lines)


def del_comment(document: Document, key: str) -> Document:
    """
    Remove the inline comment of a key. A key without one is left as is.

    Raises:
        KeyNotFound: If no entry has this key.
    """
    index = _find(document, key)
    line = document.lines[index]
    if line.comment is None:
        return _copy(document)

    return _replace_line(document, index, replace(line, comment=None, tail=""))


def del_header(document: Document) -> Document:
    """
    Remove the header comment block.

    The blank line separating header and body goes with it, unless a
    comment follows that would otherwise become the new header.
    """
    if not document.header:
        return _copy(document)

    lines = list(document.lines)
    if lines and lines[0].type == LineType.BLANK:
        if len(lines) == 1 or lines[1].type != LineType.COMMENT:
            lines.pop(0)

    return _copy(document, header=[], lines=lines)
