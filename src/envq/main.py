"""
envq CLI - a jq/yq-like tool for .env files

Main entry point for the envq command-line tool.
"""

import click
import os
import shutil
import sys
from typing import List, Optional, Tuple
from rich.console import Console
from rich.markup import escape

from .core.document import (
    list_keys, list_values, get_value, get_comment, get_header,
    set_value, set_comment, set_header, del_key, del_comment, del_header,
)
from .core.errors import EnvqError
from .core.lexer import Document, parse, serialize


console = Console(stderr=True)

LIST_MODES = ("keys", "values")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


def _fail(error: EnvqError):
    """Report an error on stderr and exit with its code."""
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    sys.exit(error.exit_code)


def read_input(file_path: Optional[str]) -> str:
    """
    Read the document from a file, or from stdin when no file is given.

    Line endings are read untranslated so they survive the round-trip.
    """
    if file_path is not None:
        try:
            with open(file_path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except OSError as e:
            raise EnvqError(f"cannot read file: {e}")
        except UnicodeDecodeError as e:
            raise EnvqError(f"cannot read file: not valid UTF-8 ({e})")

    if sys.stdin.isatty():
        raise EnvqError("Missing file or stdin.")

    try:
        return sys.stdin.buffer.read().decode("utf-8")
    except UnicodeDecodeError as e:
        raise EnvqError(f"cannot read stdin: not valid UTF-8 ({e})")


def write_output(file_path: Optional[str], content: str) -> None:
    """
    Write the document to a file, or to stdout when no file is given.

    Output is written as UTF-8 bytes so nothing in the document is altered
    on the way out. Files are replaced atomically via a sibling temp file,
    keeping the original permissions, unless ENVQ_ATOMIC_WRITE is switched
    off.
    """
    data = content.encode("utf-8")

    if file_path is None:
        sys.stdout.flush()
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return

    if not _env_bool("ENVQ_ATOMIC_WRITE", True):
        try:
            with open(file_path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise EnvqError(f"cannot write file: {e}")
        return

    temp_path = f"{file_path}.tmp"
    try:
        with open(temp_path, "wb") as f:
            f.write(data)
        if os.path.exists(file_path):
            shutil.copymode(file_path, temp_path)
        os.replace(temp_path, file_path)
    except OSError as e:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise EnvqError(f"cannot write file: {e}")


def echo_raw(text: str) -> None:
    """Print one line of document data without stripping escape sequences."""
    click.echo(text, color=True)


def parse_list_args(args: List[str]) -> Tuple[str, Optional[str]]:
    """Parse `[keys|values] [file]` into (mode, file)."""
    if not args:
        return "values", None

    if args[0] in LIST_MODES:
        return args[0], _optional(args, 1)

    # envq list [file] (defaults to values mode)
    return "values", args[0]


def parse_target_args(verb: str, args: List[str]) -> Tuple[str, Optional[str], Optional[str]]:
    """
    Parse `[key|comment|header] [KEY] [file]` for get and del.

    Returns:
        Tuple of (target, key, file)
    """
    if not args:
        raise click.UsageError(
            f"You need to provide what to {verb} [key|comment|header].\n"
            f"Example: envq {verb} key FOO"
        )

    first = args[0]

    if first == "header":
        return "header", None, _optional(args, 1)

    if first in ("comment", "key"):
        if len(args) < 2:
            raise click.UsageError(
                f"You need to provide the name of key.\n"
                f"Example: envq {verb} {first} FOO"
            )
        return first, args[1], _optional(args, 2)

    # envq get/del KEY [file]
    return "key", first, _optional(args, 1)


def parse_set_args(args: List[str]) -> Tuple[str, Optional[str], str, Optional[str]]:
    """
    Parse `[key|comment|header] [KEY] VALUE [file]` for set.

    Returns:
        Tuple of (target, key, value, file)
    """
    if not args:
        raise click.UsageError(
            "You need to provide what to set [key|comment|header].\n"
            "Example: envq set key FOO VALUE"
        )

    first = args[0]

    if first == "header":
        if len(args) < 2:
            raise click.UsageError(
                "You need to provide a value for header.\n"
                "Example: envq set header VALUE"
            )
        return "header", None, args[1], _optional(args, 2)

    if first in ("comment", "key"):
        if len(args) < 3:
            raise click.UsageError(
                "You need to provide the key and value.\n"
                f"Example: envq set {first} FOO VALUE"
            )
        return first, args[1], args[2], _optional(args, 3)

    # envq set KEY VALUE [file]
    if len(args) < 2:
        raise click.UsageError(
            "You need to provide a value.\n"
            "Example: envq set FOO VALUE"
        )
    return "key", first, args[1], _optional(args, 2)


def _optional(args: List[str], index: int) -> Optional[str]:
    return args[index] if len(args) > index else None


@click.group()
@click.version_option(package_name="envq")
def cli():
    """
    envq - query and edit .env files without losing formatting
    """


@cli.command(name="list")
@click.argument("args", nargs=-1)
def list_command(args):
    """
    List entries: [(values)|keys] [FILE]

    Values mode prints KEY=value lines, keys mode prints one key per line.
    """
    mode, file_path = parse_list_args(list(args))

    try:
        document = parse(read_input(file_path))
    except EnvqError as e:
        _fail(e)

    if mode == "keys":
        for key in list_keys(document):
            echo_raw(key)
    else:
        for key, value in list_values(document):
            echo_raw(f"{key}={value}")


@cli.command(name="get")
@click.argument("args", nargs=-1)
def get_command(args):
    """
    Print a value, inline comment or header: [(key)|comment|header] [KEY] [FILE]
    """
    target, key, file_path = parse_target_args("get", list(args))

    try:
        document = parse(read_input(file_path))
        if target == "header":
            result = get_header(document)
        elif target == "comment":
            result = get_comment(document, key)
        else:
            result = get_value(document, key)
    except EnvqError as e:
        _fail(e)

    # A missing inline comment and an empty header print nothing
    if target == "key" or result:
        echo_raw(result)


@cli.command(name="set")
@click.argument("args", nargs=-1)
def set_command(args):
    """
    Set a value, inline comment or header: [(key)|comment|header] [KEY] VALUE [FILE]

    Without FILE the edited document is written to stdout.
    """
    target, key, value, file_path = parse_set_args(list(args))

    try:
        document = parse(read_input(file_path))
        if target == "header":
            document = set_header(document, value)
        elif target == "comment":
            document = set_comment(document, key, value)
        else:
            document = set_value(document, key, value)
        write_output(file_path, serialize(document))
    except EnvqError as e:
        _fail(e)


@cli.command(name="del")
@click.argument("args", nargs=-1)
def del_command(args):
    """
    Delete a key, inline comment or header: [(key)|comment|header] [KEY] [FILE]

    Without FILE the edited document is written to stdout.
    """
    target, key, file_path = parse_target_args("del", list(args))

    try:
        document = parse(read_input(file_path))
        document = _delete(document, target, key)
        write_output(file_path, serialize(document))
    except EnvqError as e:
        _fail(e)


def _delete(document: Document, target: str, key: Optional[str]) -> Document:
    if target == "header":
        return del_header(document)
    if target == "comment":
        return del_comment(document, key)
    return del_key(document, key)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
