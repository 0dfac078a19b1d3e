"""Tests for BitStoreCompleter."""

import pytest

from prompt_toolkit.document import Document

from cli.completer import BitStoreCompleter
from cli.constants import COMMANDS


@pytest.fixture
def completer():
    """Create a BitStoreCompleter instance."""
    return BitStoreCompleter()


@pytest.fixture
def work_dir(tmp_path, monkeypatch):
    """
    Working directory with a few files and a subdirectory.
    """
    (tmp_path / "report.pdf").write_bytes(b"pdf")
    (tmp_path / "readme.txt").write_text("text")
    (tmp_path / ".hidden").write_text("secret")
    photos = tmp_path / "photos"
    photos.mkdir()
    (photos / "cat.png").write_bytes(b"png")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def get_completions_list(completer, text):
    """Helper to get list of completion texts from completer."""
    doc = Document(text, len(text))
    return [c.text for c in completer.get_completions(doc, None)]


def test_empty_input_lists_all_commands(completer):
    assert get_completions_list(completer, "") == COMMANDS


def test_command_prefix(completer):
    assert get_completions_list(completer, "up") == ["upload"]
    assert get_completions_list(completer, "DO") == ["download"]


def test_add_completes_files_and_directories(completer, work_dir):
    assert get_completions_list(completer, "add ") == ["photos/", "readme.txt", "report.pdf"]


def test_add_completes_prefix(completer, work_dir):
    assert get_completions_list(completer, "add rep") == ["report.pdf"]


def test_add_descends_into_directory(completer, work_dir):
    assert get_completions_list(completer, "add photos/") == ["photos/cat.png"]


def test_add_skips_files_already_listed(completer, work_dir):
    assert get_completions_list(completer, "add report.pdf ") == ["photos/", "readme.txt"]


def test_hidden_files_need_dot_prefix(completer, work_dir):
    assert get_completions_list(completer, "add .h") == [".hidden"]


def test_other_commands_have_no_argument_completion(completer, work_dir):
    assert get_completions_list(completer, "list ") == []
    assert get_completions_list(completer, "download ") == []
