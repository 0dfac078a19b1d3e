"""Tests for CLI command parsing."""

import pytest

from cli.models import (
    AddCommand,
    DownloadCommand,
    InfoCommand,
    ListCommand,
    QueueCommand,
    ShowCommand,
    UploadCommand,
)
from cli.parser import ParseError, parse_command


def test_parse_add_multiple_files():
    cmd = parse_command('add a.txt "my photos/cat.png"')
    assert cmd == AddCommand(file_list=('a.txt', 'my photos/cat.png'))


def test_parse_add_requires_file():
    with pytest.raises(ParseError):
        parse_command('add')


@pytest.mark.parametrize('line,expected', [
    ('queue', QueueCommand()),
    ('upload', UploadCommand()),
    ('list', ListCommand()),
    ('info', InfoCommand()),
])
def test_parse_no_arg_commands(line, expected):
    assert parse_command(line) == expected


@pytest.mark.parametrize('line', ['queue x', 'upload now', 'list all', 'info me'])
def test_no_arg_commands_reject_arguments(line):
    with pytest.raises(ParseError):
        parse_command(line)


def test_parse_show():
    assert parse_command('show abc-123') == ShowCommand(file_id='abc-123')
    with pytest.raises(ParseError):
        parse_command('show')


def test_parse_download():
    assert parse_command('download abc') == DownloadCommand(file_id='abc')
    assert parse_command('download abc out/file.bin') == DownloadCommand(file_id='abc', output_path='out/file.bin')
    with pytest.raises(ParseError):
        parse_command('download')
    with pytest.raises(ParseError):
        parse_command('download a b c')


def test_parse_errors():
    with pytest.raises(ParseError):
        parse_command('   ')
    with pytest.raises(ParseError):
        parse_command('frobnicate')
    with pytest.raises(ParseError):
        parse_command('add "unterminated')
