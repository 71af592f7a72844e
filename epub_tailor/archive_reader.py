"""Unpack an EPUB container into an ordered list of entries."""

import io
import logging
import posixpath
import zipfile
import zlib
from typing import List, Optional

from .errors import FatalArchiveError
from .models import Entry
from .progress import LogCallback, ProgressCallback, emit, report

logger = logging.getLogger(__name__)

READ_CHUNK = 64 * 1024

MEDIA_TYPES = {
    ".xhtml": "application/xhtml+xml",
    ".html": "application/xhtml+xml",
    ".css": "text/css",
    ".xml": "application/xml",
    ".ncx": "application/x-dtbncx+xml",
    ".opf": "application/oebps-package+xml",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
}
DEFAULT_MEDIA_TYPE = "application/octet-stream"


def guess_media_type(path: str) -> str:
    return MEDIA_TYPES.get(posixpath.splitext(path)[1].lower(), DEFAULT_MEDIA_TYPE)


def common_root(names: List[str]) -> Optional[str]:
    """Return the top-level folder every name sits under, if there is one.

    Only the first name's leading segment is considered; a first entry at
    the archive root means there is nothing to strip.
    """
    if not names or "/" not in names[0]:
        return None
    prefix = names[0].split("/", 1)[0] + "/"
    if all(name.startswith(prefix) for name in names):
        return prefix
    return None


class _Progress:
    """Reports strictly increasing percentages for bytes (or entries) consumed."""

    def __init__(self, infos, callback):
        self.callback = callback
        self.total = sum(info.file_size for info in infos)
        self.by_count = self.total == 0
        if self.by_count:
            self.total = len(infos)
        self.done = 0
        self.last = 0.0

    def _emit(self):
        if not self.total:
            return
        value = min(100.0, self.done * 100.0 / self.total)
        if value > self.last:
            self.last = value
            report(self.callback, value)

    def bytes_read(self, n):
        if not self.by_count:
            self.done += n
            self._emit()

    def entry_done(self):
        if self.by_count:
            self.done += 1
            self._emit()

    def finish(self):
        if self.last < 100:
            self.last = 100.0
            report(self.callback, 100.0)


def _read_member(zf: zipfile.ZipFile, info: zipfile.ZipInfo, progress: _Progress) -> bytes:
    if info.flag_bits & 0x1:
        raise FatalArchiveError(f"Encrypted entries are not supported: {info.filename}")
    buf = io.BytesIO()
    with zf.open(info) as src:
        while True:
            chunk = src.read(READ_CHUNK)
            if not chunk:
                break
            buf.write(chunk)
            progress.bytes_read(len(chunk))
    return buf.getvalue()


def read_archive(
    data: bytes,
    on_progress: Optional[ProgressCallback] = None,
    on_log: Optional[LogCallback] = None,
) -> List[Entry]:
    """Unpack ``data`` into entries in central-directory order.

    Directories are used for root detection only. A redundant top-level
    folder shared by every entry is stripped. Raises FatalArchiveError on
    any failure; there is never a partial result.
    """
    emit(on_log, "Unzipping EPUB...")
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            infos = zf.infolist()
            progress = _Progress(infos, on_progress)
            raw = []
            for info in infos:
                content = None if info.is_dir() else _read_member(zf, info, progress)
                raw.append((info.filename, content))
                progress.entry_done()
    except FatalArchiveError:
        raise
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError,
            NotImplementedError, RuntimeError, OSError, ValueError) as e:
        emit(on_log, f"Error during unzipping: {e}")
        raise FatalArchiveError(f"Cannot read archive: {e}") from e

    prefix = common_root([name for name, _ in raw])
    if prefix:
        emit(on_log, f"Stripping common root folder: {prefix}")

    entries: List[Entry] = []
    positions = {}
    for name, content in raw:
        if content is None:
            continue
        path = name[len(prefix):] if prefix else name
        if not path:
            continue
        entry = Entry(path, content, guess_media_type(path))
        if path in positions:
            emit(on_log, f"Warning: duplicate entry {path}, keeping the last copy")
            entries[positions[path]] = entry
            continue
        positions[path] = len(entries)
        entries.append(entry)

    progress.finish()
    logger.debug("read %d entries from %d members", len(entries), len(raw))
    emit(on_log, f"Unzipping complete. {len(entries)} files.")
    return entries
