"""Command parser for CLI input."""

import shlex

from cli.models import (
    AddCommand,
    CommandRequest,
    DownloadCommand,
    InfoCommand,
    ListCommand,
    QueueCommand,
    ShowCommand,
    UploadCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]
    args = tokens[1:]

    if command_name == "add":
        return _parse_add(args)
    elif command_name == "queue":
        _expect_no_args("queue", args)
        return QueueCommand()
    elif command_name == "upload":
        _expect_no_args("upload", args)
        return UploadCommand()
    elif command_name == "list":
        _expect_no_args("list", args)
        return ListCommand()
    elif command_name == "show":
        return _parse_show(args)
    elif command_name == "download":
        return _parse_download(args)
    elif command_name == "info":
        _expect_no_args("info", args)
        return InfoCommand()
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _expect_no_args(command_name: str, args: list[str]) -> None:
    if args:
        raise ParseError(f"{command_name} takes no arguments")


def _parse_add(args: list[str]) -> AddCommand:
    """Parse 'add <file> [file ...]' command."""
    if not args:
        raise ParseError("add requires at least one file")

    return AddCommand(file_list=tuple(args))


def _parse_show(args: list[str]) -> ShowCommand:
    """Parse 'show <file-id>' command."""
    if len(args) != 1:
        raise ParseError("show requires exactly 1 argument: <file-id>")

    return ShowCommand(file_id=args[0])


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <file-id> [output_path]' command."""
    if len(args) < 1 or len(args) > 2:
        raise ParseError("download requires 1 or 2 arguments: <file-id> [output_path]")

    file_id = args[0]
    output_path = args[1] if len(args) > 1 else None

    return DownloadCommand(file_id=file_id, output_path=output_path)
