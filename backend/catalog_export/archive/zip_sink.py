"""
ZipArchiveSink — in-memory ZIP container for rendered artifacts.

Entries are written with a fixed timestamp so identical inputs give
identical archives.  A name already in the archive gets a short content
hash appended (``CODE.pdf`` → ``CODE-1a2b3c4d.pdf``).
"""

from __future__ import annotations

import hashlib
import io
import zipfile
from collections.abc import Callable
from datetime import datetime
from pathlib import PurePosixPath

from catalog_export.core.config import settings
from catalog_export.core.logging import get_logger
from catalog_export.pipeline.collaborators import ArchiveHandle
from catalog_export.pipeline.errors import ArchiveError

logger = get_logger(__name__)

ENTRY_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


def archive_filename(prefix: str, moment: datetime) -> str:
    return f"{prefix}_{moment:%Y%m%d%H%M}.zip"


class ZipArchiveSink:
    """Accumulates artifacts; ``finalize`` or ``discard`` ends its life."""

    def __init__(
        self,
        prefix: str | None = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.prefix = prefix or settings.ARCHIVE_NAME_PREFIX
        self._clock = clock
        self._buffer = io.BytesIO()
        self._zip = zipfile.ZipFile(self._buffer, "w", compression=zipfile.ZIP_DEFLATED)
        self._names: list[str] = []
        self._closed = False

    @property
    def entries(self) -> tuple[str, ...]:
        return tuple(self._names)

    def append(self, name: str, content: bytes) -> str:
        self._check_open("append to")
        entry = self._unique_name(name, content)
        info = zipfile.ZipInfo(entry, date_time=ENTRY_TIMESTAMP)
        info.compress_type = zipfile.ZIP_DEFLATED
        self._zip.writestr(info, content)
        self._names.append(entry)
        if entry != name:
            logger.info("Archive entry renamed", requested=name, entry=entry)
        return entry

    def finalize(self) -> ArchiveHandle:
        self._check_open("finalize")
        self._zip.close()
        self._closed = True
        handle = ArchiveHandle(
            filename=archive_filename(self.prefix, self._clock()),
            content=self._buffer.getvalue(),
            entries=tuple(self._names),
        )
        logger.info("Archive finalized", filename=handle.filename, entries=len(self._names), size=len(handle.content))
        return handle

    def discard(self) -> None:
        """Drop everything appended so far.  Safe to call more than once."""
        if self._closed:
            return
        self._zip.close()
        self._closed = True
        self._buffer = io.BytesIO()
        logger.info("Archive discarded", entries=len(self._names))
        self._names.clear()

    def _check_open(self, action: str) -> None:
        if self._closed:
            raise ArchiveError(f"Cannot {action} an archive that is already closed")

    def _unique_name(self, name: str, content: bytes) -> str:
        if name not in self._names:
            return name
        path = PurePosixPath(name)
        digest = hashlib.sha1(content).hexdigest()[:8]
        candidate = f"{path.stem}-{digest}{path.suffix}"
        counter = 2
        while candidate in self._names:
            candidate = f"{path.stem}-{digest}-{counter}{path.suffix}"
            counter += 1
        return candidate
