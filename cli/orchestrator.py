"""Upload orchestration: a queue of files uploaded one at a time."""

import asyncio
import inspect
import os
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Callable, List, Optional

from common.exceptions import IngestCancelledError
from common.logging_config import get_logger
from common.types import FileRecord

logger = get_logger(__name__)

ProgressListener = Callable[[float], None]


class BatchStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class QueuedFile:
    """A file waiting to be uploaded. opener returns a fresh binary stream."""
    name: str
    size: Optional[int]
    opener: Callable[[], BinaryIO]


class UploadOrchestrator:
    """
    Drives a batch of uploads through an uploader.

    The uploader is anything with async upload_file(name, stream,
    progress_callback=..., total_size=...) and async list_files(); both
    FileService and MetadataClient qualify. Files are uploaded strictly in
    queue order and the first failure stops the batch with the queue intact.
    """

    def __init__(self, uploader):
        self.uploader = uploader
        self.queue: List[QueuedFile] = []
        self.status = BatchStatus.IDLE
        self.progress = 0.0
        self.files: List[FileRecord] = []
        self.error: Optional[str] = None
        self.uploaded: List[FileRecord] = []
        self._listeners: List[ProgressListener] = []
        self._task: Optional[asyncio.Task] = None
        self._cancel_event: Optional[asyncio.Event] = None
        self._accepts_cancel_event = (
            'cancel_event' in inspect.signature(uploader.upload_file).parameters
        )

    def add_listener(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ProgressListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def enqueue(self, path) -> QueuedFile:
        """
        Queue a local file.

        Raises:
            FileNotFoundError: If path is not an existing regular file
        """
        path = os.fspath(path)
        if not os.path.isfile(path):
            raise FileNotFoundError(f"File not found: {path}")
        return self.enqueue_stream(
            os.path.basename(path),
            lambda: open(path, 'rb'),
            os.path.getsize(path),
        )

    def enqueue_stream(self, name: str, opener: Callable[[], BinaryIO], size: Optional[int] = None) -> QueuedFile:
        item = QueuedFile(name=name, size=size, opener=opener)
        self.queue.append(item)
        logger.debug(f"Queued {name} ({size if size is not None else 'unknown'} bytes)")
        return item

    def _set_progress(self, value: float) -> None:
        value = min(max(value, 0.0), 1.0)
        if self.status == BatchStatus.UPLOADING and value < self.progress:
            return
        self.progress = value
        for listener in self._listeners:
            listener(value)

    async def run(self) -> List[FileRecord]:
        """
        Upload every queued file, one at a time.

        Returns:
            Records created by this batch (also those before a failure)

        Raises:
            asyncio.CancelledError: If the running task was cancelled
        """
        if not self.queue:
            return []

        self._task = asyncio.current_task()
        self._cancel_event = asyncio.Event()
        self.uploaded = []
        self.error = None
        self.progress = 0.0
        self.status = BatchStatus.UPLOADING

        total = len(self.queue)
        logger.info(f"Starting batch upload of {total} file(s)")

        try:
            for completed, item in enumerate(list(self.queue)):
                def on_progress(fraction: float, completed=completed) -> None:
                    self._set_progress((completed + min(max(fraction, 0.0), 1.0)) / total)

                try:
                    record = await self._upload_one(item, on_progress)
                except IngestCancelledError:
                    self._mark_cancelled()
                    return list(self.uploaded)
                except Exception as e:
                    self.status = BatchStatus.ERROR
                    self.error = f"{item.name}: {e}"
                    self._set_progress(0.0)
                    logger.error(f"Batch upload stopped at {item.name}: {e}")
                    return list(self.uploaded)

                self.uploaded.append(record)
                self._set_progress((completed + 1) / total)
        except asyncio.CancelledError:
            self._mark_cancelled()
            raise
        finally:
            self._task = None

        self.queue.clear()
        self.status = BatchStatus.SUCCESS
        self._set_progress(1.0)
        logger.info(f"Batch upload finished: {len(self.uploaded)} file(s)")

        try:
            await self.refresh()
        except Exception as e:
            self.error = f"File list refresh failed: {e}"
            logger.warning(f"Batch uploaded but the file list could not be refreshed: {e}")
        return list(self.uploaded)

    async def _upload_one(self, item: QueuedFile, on_progress: ProgressListener) -> FileRecord:
        kwargs = {'progress_callback': on_progress, 'total_size': item.size}
        if self._accepts_cancel_event:
            kwargs['cancel_event'] = self._cancel_event
        logger.info(f"Uploading {item.name}")
        with item.opener() as stream:
            return await self.uploader.upload_file(item.name, stream, **kwargs)

    def _mark_cancelled(self) -> None:
        self.status = BatchStatus.CANCELLED
        self.error = None
        logger.warning(f"Batch upload cancelled after {len(self.uploaded)} file(s)")

    async def refresh(self) -> List[FileRecord]:
        """Reload the stored file listing."""
        self.files = list(await self.uploader.list_files())
        return self.files

    def cancel(self) -> None:
        """Abort the in-flight upload, if any."""
        if self.status != BatchStatus.UPLOADING:
            return
        if self._accepts_cancel_event and self._cancel_event is not None:
            self._cancel_event.set()
        elif self._task is not None:
            self._task.cancel()
