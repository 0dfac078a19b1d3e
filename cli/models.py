"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class AddCommand:
    """Queue files for upload."""

    file_list: tuple[str, ...]
    command: Literal["add"] = "add"


@dataclass(frozen=True)
class QueueCommand:
    """Show the upload queue."""

    command: Literal["queue"] = "queue"


@dataclass(frozen=True)
class UploadCommand:
    """Upload every queued file."""

    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class ListCommand:
    """List stored files."""

    command: Literal["list"] = "list"


@dataclass(frozen=True)
class ShowCommand:
    """Show one stored file with its block fingerprints."""

    file_id: str
    command: Literal["show"] = "show"


@dataclass(frozen=True)
class DownloadCommand:
    """Download file by id."""

    file_id: str
    output_path: str | None = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class InfoCommand:
    """Show storage settings."""

    command: Literal["info"] = "info"


CommandRequest = (
    AddCommand
    | QueueCommand
    | UploadCommand
    | ListCommand
    | ShowCommand
    | DownloadCommand
    | InfoCommand
)
