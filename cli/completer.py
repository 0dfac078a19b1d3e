"""Custom completer for BitStore CLI with file path autocompletion."""

import os
from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS


class BitStoreCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Local file path completion for the 'add' command
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command != "add":
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        already_typed = set(tokens[1:] if is_typing_new_token else tokens[1:-1])

        yield from self._complete_paths(current_word, already_typed)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_paths(self, partial: str, exclude: set) -> Iterable[Completion]:
        """
        Complete paths relative to the working directory.

        Directories are offered with a trailing separator so completion can
        descend into them; files already on the command line are skipped.
        """
        directory, prefix = os.path.split(partial)
        base = Path(directory) if directory else Path.cwd()
        if not base.is_dir():
            return

        entries = []
        for item in base.iterdir():
            if not item.name.startswith(prefix):
                continue
            if item.name.startswith(".") and not prefix.startswith("."):
                continue
            candidate = os.path.join(directory, item.name)
            if item.is_dir():
                entries.append(candidate + os.sep)
            elif item.is_file() and candidate not in exclude:
                entries.append(candidate)

        for entry in sorted(entries):
            yield Completion(entry, start_position=-len(partial))
