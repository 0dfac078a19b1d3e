"""Command handler functions for CLI operations."""

import asyncio
from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from cli.config import Config
from cli.constants import GREEN, RED, RESET
from cli.metadata_client import MetadataClient, MetadataClientError
from cli.models import (
    AddCommand,
    DownloadCommand,
    InfoCommand,
    ListCommand,
    QueueCommand,
    ShowCommand,
    UploadCommand,
)
from cli.orchestrator import BatchStatus, UploadOrchestrator
from cli.utils import format_file_size, print_progress, short_id

logger = get_logger(__name__)


_loop: Optional[asyncio.AbstractEventLoop] = None
_client: Optional[MetadataClient] = None
_orchestrator: Optional[UploadOrchestrator] = None


def get_loop() -> asyncio.AbstractEventLoop:
    """
    Event loop shared by every command, so the HTTP client's connection
    pool survives between prompts.
    """
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop


def get_client() -> MetadataClient:
    """
    Get or create global MetadataClient instance.

    Returns:
        MetadataClient instance
    """
    global _client
    if _client is None:
        logger.debug("Creating new MetadataClient instance")
        config = Config(Path.home() / '.bitstore' / 'config.json')
        _client = MetadataClient(config)
    return _client


def get_orchestrator() -> UploadOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = UploadOrchestrator(get_client())
    return _orchestrator


def shutdown() -> None:
    """Close the HTTP client and the shared event loop."""
    global _client, _loop, _orchestrator
    if _loop is not None and not _loop.is_closed():
        if _client is not None:
            _loop.run_until_complete(_client.close())
        _loop.close()
    _client = None
    _orchestrator = None
    _loop = None


def _run(coro):
    return get_loop().run_until_complete(coro)


def _error(message: str) -> str:
    return f"{RED}Error:{RESET} {message}"


def handle_add(cmd: AddCommand, orchestrator: Optional[UploadOrchestrator] = None) -> str:
    """
    Handle 'add' command.

    Args:
        cmd: AddCommand with file_list
        orchestrator: Optional UploadOrchestrator for dependency injection (testing)

    Returns:
        Summary of queued and rejected files
    """
    if orchestrator is None:
        orchestrator = get_orchestrator()

    lines = []
    for file_path in cmd.file_list:
        try:
            item = orchestrator.enqueue(file_path)
        except FileNotFoundError as e:
            lines.append(_error(str(e)))
            continue
        lines.append(f"Queued {item.name} ({format_file_size(item.size)})")

    lines.append(f"{len(orchestrator.queue)} file(s) in queue")
    return "\n".join(lines)


def handle_queue(cmd: QueueCommand, orchestrator: Optional[UploadOrchestrator] = None) -> str:
    """
    Handle 'queue' command.

    Returns:
        Formatted upload queue
    """
    if orchestrator is None:
        orchestrator = get_orchestrator()

    if not orchestrator.queue:
        return "Upload queue is empty"

    lines = [f"{len(orchestrator.queue)} file(s) queued:"]
    for position, item in enumerate(orchestrator.queue, start=1):
        size = format_file_size(item.size) if item.size is not None else "unknown size"
        lines.append(f"  {position}. {item.name} ({size})")
    return "\n".join(lines)


def handle_upload(cmd: UploadCommand, orchestrator: Optional[UploadOrchestrator] = None) -> str:
    """
    Handle 'upload' command.

    Runs the orchestrator on the shared event loop and draws a progress bar.
    Ctrl-C cancels the in-flight upload.

    Returns:
        Batch outcome message
    """
    if orchestrator is None:
        orchestrator = get_orchestrator()

    if not orchestrator.queue:
        return "Nothing to upload. Use 'add <file>' first."

    logger.info(f"Executing upload command: {len(orchestrator.queue)} file(s)")
    count = len(orchestrator.queue)
    loop = get_loop()

    listener = lambda fraction: print_progress("Uploading", fraction)
    orchestrator.add_listener(listener)
    task = loop.create_task(orchestrator.run())
    try:
        try:
            loop.run_until_complete(task)
        except KeyboardInterrupt:
            orchestrator.cancel()
            try:
                loop.run_until_complete(task)
            except asyncio.CancelledError:
                pass
        except asyncio.CancelledError:
            pass
    finally:
        orchestrator.remove_listener(listener)

    if orchestrator.status == BatchStatus.SUCCESS:
        return f"{GREEN}Uploaded {count} file(s){RESET}"
    if orchestrator.status == BatchStatus.CANCELLED:
        return (
            f"\nUpload cancelled. {len(orchestrator.uploaded)} file(s) uploaded, "
            f"{len(orchestrator.queue)} still queued"
        )
    return (
        f"\n{_error(orchestrator.error)}\n"
        f"{len(orchestrator.uploaded)} file(s) uploaded before the failure; queue kept"
    )


def handle_list(cmd: ListCommand, client: Optional[MetadataClient] = None) -> str:
    """
    Handle 'list' command.

    Args:
        cmd: ListCommand
        client: Optional MetadataClient for dependency injection (testing)

    Returns:
        Formatted list of files
    """
    logger.info("Executing list command")
    if client is None:
        client = get_client()

    try:
        records = _run(client.list_files())
    except (MetadataClientError, ConnectionError) as e:
        return _error(str(e))

    if not records:
        return "No files stored"

    lines = [f"{'ID':<12} {'SIZE':>12} {'BLOCKS':>7}  NAME"]
    for record in records:
        lines.append(
            f"{short_id(record.file_id):<12} {format_file_size(record.size):>12} "
            f"{record.block_count:>7}  {record.file_name}"
        )
    lines.append(f"{len(records)} file(s)")
    return "\n".join(lines)


def handle_show(cmd: ShowCommand, client: Optional[MetadataClient] = None) -> str:
    """
    Handle 'show' command.

    Returns:
        File details with its ordered block fingerprints
    """
    if client is None:
        client = get_client()

    try:
        record = _run(client.get_file(cmd.file_id))
    except (MetadataClientError, ConnectionError) as e:
        return _error(str(e))

    lines = [
        f"ID:      {record.file_id}",
        f"Name:    {record.file_name}",
        f"Size:    {format_file_size(record.size)} ({record.size} bytes)",
        f"Created: {record.created_at.isoformat() if record.created_at else '-'}",
        f"Blocks:  {record.block_count}",
    ]
    for index, fingerprint in enumerate(record.block_hashes):
        lines.append(f"  {index:>4}  {fingerprint}")
    return "\n".join(lines)


def handle_download(cmd: DownloadCommand, client: Optional[MetadataClient] = None) -> str:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with file_id and optional output_path
        client: Optional MetadataClient for dependency injection (testing)

    Returns:
        Success or error message with download results
    """
    logger.info(f"Executing download command: file_id={cmd.file_id} output_path={cmd.output_path}")
    if client is None:
        client = get_client()

    try:
        path = _run(client.download_file(
            cmd.file_id,
            cmd.output_path,
            progress_callback=lambda fraction: print_progress("Downloading", fraction)
        ))
    except (MetadataClientError, ConnectionError) as e:
        return _error(str(e))
    except OSError as e:
        return _error(f"Cannot write file: {e}")

    return f"{GREEN}Downloaded to {path}{RESET}"


def handle_info(cmd: InfoCommand, client: Optional[MetadataClient] = None) -> str:
    """
    Handle 'info' command.

    Returns:
        Server storage settings
    """
    if client is None:
        client = get_client()

    try:
        config = _run(client.get_config())
    except (MetadataClientError, ConnectionError) as e:
        return _error(str(e))

    block_size = config.get('blockSize')
    return (
        f"Server:     {client.config.get_base_url()}\n"
        f"Block size: {format_file_size(block_size)} ({block_size} bytes)"
    )
