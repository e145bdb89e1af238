"""Upload stager — persists one client upload to scratch storage for the linter.

A staged upload belongs to the request that created it. ``staged()`` guarantees the
file is released exactly once when the request leaves the block, whatever the exit
path; release failures are logged and never replace the primary response.
"""

import os
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import AsyncIterator, Optional, Protocol

import anyio
import structlog

from app.validators.exceptions import InvalidInputError, UploadTooLargeError

logger = structlog.get_logger()

CHUNK_SIZE = 64 * 1024

NO_FILE_ERROR = "No file provided"
INVALID_TYPE_ERROR = "Invalid file type. Only .bpmn files are allowed"


class AsyncReadable(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


@dataclass
class StagedUpload:
    """A client upload persisted for the duration of one request."""

    source_filename: str  # as claimed by the client, untrusted
    path: Path
    size: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    released: bool = False


class UploadStager:
    """Stages uploads into an OS scratch directory and removes them afterwards."""

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        suffix: str = ".bpmn",
        max_bytes: Optional[int] = None,
    ):
        self.upload_dir = upload_dir or tempfile.gettempdir()
        self.suffix = suffix
        self.max_bytes = max_bytes

    def check_filename(self, filename: Optional[str]) -> None:
        """Reject missing or wrongly-suffixed names before any bytes are written."""
        if not filename:
            raise InvalidInputError(NO_FILE_ERROR)
        if not filename.endswith(self.suffix):
            raise InvalidInputError(INVALID_TYPE_ERROR)

    async def stage(self, filename: Optional[str], source: AsyncReadable) -> StagedUpload:
        """Write the upload to a fresh scratch file.

        The storage name is system-assigned; the client's filename only decides
        whether the upload is accepted. Partially written files are removed before
        any error propagates.
        """
        self.check_filename(filename)

        fd, name = await anyio.to_thread.run_sync(
            partial(tempfile.mkstemp, prefix="upload-", suffix=self.suffix, dir=self.upload_dir)
        )
        upload = StagedUpload(source_filename=filename, path=Path(name))

        try:
            handle = os.fdopen(fd, "wb")
            try:
                while True:
                    chunk = await source.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    upload.size += len(chunk)
                    if self.max_bytes is not None and upload.size > self.max_bytes:
                        raise UploadTooLargeError(self.max_bytes)
                    await anyio.to_thread.run_sync(handle.write, chunk)
            finally:
                await anyio.to_thread.run_sync(handle.close)
        except BaseException:
            self.release(upload)
            raise

        logger.info(
            "upload_staged",
            filename=upload.source_filename,
            path=str(upload.path),
            size=upload.size,
        )
        return upload

    def release(self, upload: StagedUpload) -> None:
        """Delete the staged file. Idempotent; failures are logged, not raised."""
        if upload.released:
            return
        upload.released = True

        try:
            upload.path.unlink()
        except FileNotFoundError:
            logger.warning("upload_already_removed", path=str(upload.path))
        except OSError as e:
            logger.error("upload_release_failed", path=str(upload.path), error=str(e))
        else:
            logger.debug("upload_released", path=str(upload.path))

    @asynccontextmanager
    async def staged(self, filename: Optional[str], source: AsyncReadable) -> AsyncIterator[StagedUpload]:
        """Stage an upload for the enclosed block and release it on the way out."""
        upload = await self.stage(filename, source)
        try:
            yield upload
        finally:
            self.release(upload)
