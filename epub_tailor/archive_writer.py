"""Repackage entries into an EPUB container."""

import io
import logging
import zipfile
import zlib
from typing import BinaryIO, List, Optional, Sequence

from .errors import FatalArchiveError
from .models import MIMETYPE_PATH, Entry
from .progress import LogCallback, ProgressCallback, emit, report

logger = logging.getLogger(__name__)

STORED_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif"})
DEFLATE_LEVEL = 9
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)


def ordered_entries(entries: Sequence[Entry]) -> List[Entry]:
    """``mimetype`` first, everything else in its original relative order."""
    head = [e for e in entries if e.path == MIMETYPE_PATH]
    rest = [e for e in entries if e.path != MIMETYPE_PATH]
    return head[:1] + rest


def compression_for(entry: Entry) -> int:
    if entry.path == MIMETYPE_PATH or entry.extension in STORED_EXTENSIONS:
        return zipfile.ZIP_STORED
    return zipfile.ZIP_DEFLATED


def _member_info(entry: Entry) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(entry.path, date_time=FIXED_DATE_TIME)
    info.compress_type = compression_for(entry)
    info.external_attr = 0o644 << 16
    info.create_system = 3
    return info


def write_archive(
    entries: Sequence[Entry],
    fileobj: BinaryIO,
    on_progress: Optional[ProgressCallback] = None,
    on_log: Optional[LogCallback] = None,
) -> None:
    """Stream ``entries`` into ``fileobj`` one member at a time.

    Raises FatalArchiveError if any member cannot be added or the central
    directory cannot be written.
    """
    emit(on_log, "Starting to repack EPUB...")
    members = ordered_entries(entries)
    total = len(members)
    try:
        with zipfile.ZipFile(fileobj, "w") as z:
            for i, entry in enumerate(members, 1):
                info = _member_info(entry)
                if info.compress_type == zipfile.ZIP_DEFLATED:
                    z.writestr(info, entry.content, compresslevel=DEFLATE_LEVEL)
                else:
                    z.writestr(info, entry.content)
                report(on_progress, i * 100.0 / total)
            emit(on_log, "Finalizing EPUB archive...")
    except (OSError, ValueError, zlib.error, zipfile.LargeZipFile) as e:
        emit(on_log, f"Error during repacking: {e}")
        raise FatalArchiveError(f"Cannot write archive: {e}") from e
    if not total:
        report(on_progress, 100)
    logger.debug("wrote %d members", total)
    emit(on_log, "Repacking complete.")


def pack_archive(
    entries: Sequence[Entry],
    on_progress: Optional[ProgressCallback] = None,
    on_log: Optional[LogCallback] = None,
) -> bytes:
    buf = io.BytesIO()
    write_archive(entries, buf, on_progress=on_progress, on_log=on_log)
    return buf.getvalue()
