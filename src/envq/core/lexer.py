"""
Lossless .env lexer with byte-perfect round-trip guarantee.

This module turns .env content into a Document that keeps every blank line,
comment, quote and whitespace run of the input. The constraint is:
    serialize(parse(content)) == content (byte-identical)

Entries are additionally split into head / value / tail pieces so a single
value or inline comment can be rewritten without touching the rest of the
line.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from itertools import chain
from typing import List, Optional, Tuple

from .errors import ParseError


COMMENT_MARKER = "#"
QUOTES = ('"', "'")

# A physical line is everything up to and including its terminator; the last
# line may have none.
_PHYSICAL_LINE_RE = re.compile(r".*?(?:\r\n|\r|\n)|.+\Z", re.DOTALL)
_ENTRY_RE = re.compile(
    r"""
    ^(?P<head>
        \s*
        (?P<export>export\s+)?
        (?P<key>[^\s=]+)
        \s*=[ \t]*
    )
    (?P<rest>.*)$
    """,
    re.VERBOSE,
)
_KEY_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")

_UNESCAPES = {"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\"}
_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}


class LineType(Enum):
    """Line kinds in a .env document."""
    BLANK = "blank"
    COMMENT = "comment"
    ENTRY = "entry"


@dataclass(frozen=True)
class Line:
    """
    A single line of a .env document.

    BLANK and COMMENT lines keep their body in `text`. ENTRY lines are stored
    as `head + value_raw + tail` so edits can replace one piece in place.
    """
    type: LineType
    text: str = ""
    eol: str = ""
    key: Optional[str] = None
    value: Optional[str] = None
    comment: Optional[str] = None  # comment text, marker stripped
    quote: Optional[str] = None
    has_export: bool = False
    head: str = ""
    value_raw: str = ""
    tail: str = ""

    def render(self) -> str:
        """Return the exact text of this line, terminator included."""
        if self.type == LineType.ENTRY:
            return f"{self.head}{self.value_raw}{self.tail}{self.eol}"
        if self.type in (LineType.BLANK, LineType.COMMENT):
            return f"{self.text}{self.eol}"
        raise ValueError(f"Unknown line type: {self.type}")

    def __repr__(self):
        if self.type == LineType.ENTRY:
            export = "export " if self.has_export else ""
            return f"Line({self.type.value}, {export}{self.key}={self.value!r})"
        return f"Line({self.type.value}, {self.text[:20]!r})"


@dataclass
class Document:
    """
    A parsed .env document.

    `header` holds the leading comment block, `lines` everything after it.
    `newline` is the terminator used for lines the document gains.
    """
    header: List[Line] = field(default_factory=list)
    lines: List[Line] = field(default_factory=list)
    newline: str = "\n"


def is_valid_key(key: str) -> bool:
    """Check whether `key` is a legal variable name."""
    return bool(_KEY_RE.match(key))


def comment_text(body: str) -> str:
    """Strip the comment marker and one following space from a comment line."""
    text = body.strip()[len(COMMENT_MARKER):]
    if text.startswith(" "):
        text = text[1:]
    return text.rstrip()


def inline_comment(tail: str) -> Optional[str]:
    """Extract the inline comment from the text after a value, if any."""
    marker = tail.find(COMMENT_MARKER)
    if marker == -1:
        return None
    return tail[marker + len(COMMENT_MARKER):].strip()


def quote_value(value: str, quote: Optional[str] = None) -> Tuple[str, Optional[str]]:
    """
    Render a value for writing, keeping the requested quote style if possible.

    Args:
        value: Decoded value
        quote: Quote style of the value being replaced (None for bare)

    Returns:
        Tuple of (raw value text, quote style actually used)
    """
    if quote == "'" and "'" not in value and "\n" not in value and "\r" not in value:
        return f"'{value}'", "'"

    if quote is None and not _needs_quotes(value):
        return value, None

    escaped = "".join(_ESCAPES.get(ch, ch) for ch in value)
    return f'"{escaped}"', '"'


def _needs_quotes(value: str) -> bool:
    return any(ch.isspace() or ch in "#'\"\\" for ch in value)


def _split_eol(physical: str) -> Tuple[str, str]:
    for eol in ("\r\n", "\n", "\r"):
        if physical.endswith(eol):
            return physical[:-len(eol)], eol
    return physical, ""


class Lexer:
    """
    Lossless lexer for .env files.

    Classifies every physical line exactly once and collects the leading
    comment block as the document header.
    """

    def __init__(self, content: str):
        self.content = content
        self.lines = _PHYSICAL_LINE_RE.findall(content)

    def tokenize(self) -> Document:
        """
        Parse content into a Document.

        Returns:
            Document representing the file structure.

        Raises:
            ParseError: If any line is not blank, a comment or an assignment.
        """
        document = Document(newline=self._detect_newline())
        in_header = True

        for lineno, physical in enumerate(self.lines, start=1):
            line = self._parse_line(lineno, physical)

            # The header is the unbroken comment run at the top of the file
            if in_header and line.type == LineType.COMMENT:
                document.header.append(line)
                continue

            in_header = False
            document.lines.append(line)

        return document

    def _detect_newline(self) -> str:
        for physical in self.lines:
            _, eol = _split_eol(physical)
            if eol:
                return eol
        return "\n"

    def _parse_line(self, lineno: int, physical: str) -> Line:
        """Parse a single physical line."""
        body, eol = _split_eol(physical)
        stripped = body.strip()

        if not stripped:
            return Line(LineType.BLANK, text=body, eol=eol)

        if stripped.startswith(COMMENT_MARKER):
            return Line(LineType.COMMENT, text=body, eol=eol, comment=comment_text(body))

        match = _ENTRY_RE.match(body)
        if match is None:
            if "=" in body:
                raise ParseError(lineno, body, "malformed assignment")
            raise ParseError(lineno, body, "expected KEY=VALUE, a comment or a blank line")

        key = match.group("key")
        if not is_valid_key(key):
            raise ParseError(lineno, body, f"invalid key {key!r}")

        value, value_raw, quote, tail = self._parse_value(lineno, body, match.group("rest"))

        return Line(
            LineType.ENTRY,
            eol=eol,
            key=key,
            value=value,
            comment=inline_comment(tail),
            quote=quote,
            has_export=match.group("export") is not None,
            head=match.group("head"),
            value_raw=value_raw,
            tail=tail,
        )

    def _parse_value(self, lineno: int, body: str, rest: str) -> Tuple[str, str, Optional[str], str]:
        """
        Split the text after '=' into value and tail.

        Returns:
            Tuple of (decoded value, raw value text, quote style, tail)
        """
        if rest[:1] not in QUOTES:
            # Bare value: a comment marker always starts the inline comment
            marker = rest.find(COMMENT_MARKER)
            token = rest if marker == -1 else rest[:marker]
            value_raw = token.rstrip()
            return value_raw, value_raw, None, rest[len(value_raw):]

        quote = rest[0]
        chars = []
        i = 1
        while i < len(rest):
            ch = rest[i]
            if ch == quote:
                break
            if ch == "\\" and quote == '"' and i + 1 < len(rest):
                nxt = rest[i + 1]
                chars.append(_UNESCAPES.get(nxt, ch + nxt))
                i += 2
                continue
            chars.append(ch)
            i += 1
        else:
            raise ParseError(lineno, body, f"unterminated {quote} quote")

        value_raw = rest[:i + 1]
        tail = rest[i + 1:]
        if tail.strip() and not tail.lstrip().startswith(COMMENT_MARKER):
            raise ParseError(lineno, body, "unexpected text after closing quote")

        return "".join(chars), value_raw, quote, tail


def parse(content: str) -> Document:
    """
    Parse .env file content into a Document.

    Args:
        content: String content of .env file

    Returns:
        Document object

    Raises:
        ParseError: On the first line that cannot be classified.
    """
    lexer = Lexer(content)
    return lexer.tokenize()


def serialize(document: Document) -> str:
    """
    Reconstruct .env file content from a Document.

    Args:
        document: Document object

    Returns:
        String content, byte-identical to the parsed input if unmodified
    """
    return "".join(line.render() for line in chain(document.header, document.lines))
