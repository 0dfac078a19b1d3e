"""Utility functions for CLI operations."""

import sys
from typing import Callable, Optional

from cli.constants import GREEN, RESET


class ProgressReader:
    """File-like wrapper that reports how much of a stream has been read."""

    def __init__(self, stream, total_size: Optional[int], callback: Optional[Callable[[float], None]] = None):
        """
        Args:
            stream: Readable binary stream
            total_size: Total number of bytes expected, if known
            callback: Receives the fraction read so far (0..1)
        """
        self._stream = stream
        self.total_size = total_size
        self._callback = callback
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._stream.read(size)
        if chunk:
            self.bytes_read += len(chunk)
            self._report()
        return chunk

    def _report(self) -> None:
        if self._callback is None:
            return
        if self.total_size:
            self._callback(min(self.bytes_read / self.total_size, 1.0))


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def render_progress_bar(fraction: float, width: int = 30) -> str:
    """
    Render a text progress bar such as "[#######.......]  45%".
    """
    fraction = min(max(fraction, 0.0), 1.0)
    filled = int(round(fraction * width))
    return f"[{'#' * filled}{'.' * (width - filled)}] {GREEN}{fraction * 100:5.1f}%{RESET}"


def print_progress(label: str, fraction: float) -> None:
    """Redraw a single progress line on stdout."""
    sys.stdout.write(f"\r{label} {render_progress_bar(fraction)}")
    if fraction >= 1.0:
        sys.stdout.write('\n')
    sys.stdout.flush()


def short_id(file_id: str) -> str:
    return f"{file_id[:8]}..."
