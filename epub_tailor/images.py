"""Raster codec helpers and the per-image fan-out shared by the image stages."""

import io
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence

from PIL import Image, UnidentifiedImageError

from .errors import ItemProcessingError
from .models import Entry, ItemOutcome, Kept, Transformed
from .progress import LogCallback, ProgressCallback, emit, report

logger = logging.getLogger(__name__)

PROCESSABLE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png"})
JPEG_QUALITY = 90

_FORMATS = {".jpg": "JPEG", ".jpeg": "JPEG", ".png": "PNG"}


def is_processable(entry: Entry) -> bool:
    return entry.extension in PROCESSABLE_EXTENSIONS


def load_image(entry: Entry) -> Image.Image:
    """Decode an entry's bytes, raising ItemProcessingError on anything unreadable."""
    try:
        img = Image.open(io.BytesIO(entry.content))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ItemProcessingError(entry.path, f"cannot decode image ({e})") from e
    return img


def encode_image(img: Image.Image, entry: Entry) -> bytes:
    """Re-encode ``img`` in the container format the entry's extension names."""
    fmt = _FORMATS.get(entry.extension)
    if fmt is None:
        raise ItemProcessingError(entry.path, f"unsupported image type {entry.extension!r}")
    out = io.BytesIO()
    try:
        if fmt == "JPEG":
            if img.mode not in ("L", "RGB", "CMYK"):
                img = img.convert("RGB")
            img.save(out, format="JPEG", quality=JPEG_QUALITY, optimize=True, progressive=True)
        else:
            img.save(out, format="PNG", optimize=True)
    except (OSError, ValueError) as e:
        raise ItemProcessingError(entry.path, f"cannot encode image ({e})") from e
    return out.getvalue()


def default_workers() -> int:
    return os.cpu_count() or 1


def _guarded(transform: Callable[[Entry], ItemOutcome], entry: Entry) -> ItemOutcome:
    try:
        return transform(entry)
    except ItemProcessingError as e:
        return Kept(entry.content, e.message, failed=True)
    except Exception as e:  # noqa: BLE001
        logger.exception("unexpected failure processing %s", entry.path)
        return Kept(entry.content, str(e) or type(e).__name__, failed=True)


def process_items(
    entries: Sequence[Entry],
    selected: Sequence[int],
    transform: Callable[[Entry], ItemOutcome],
    describe: Callable[[Entry, ItemOutcome], str],
    on_progress: Optional[ProgressCallback] = None,
    on_log: Optional[LogCallback] = None,
    max_workers: Optional[int] = None,
) -> List[Entry]:
    """Run ``transform`` over the entries at the ``selected`` indices.

    Work fans out over a thread pool. Log lines and progress are emitted on
    the calling thread as each image finishes, while the returned list keeps
    the input order. A failing image is kept as-is and never escapes this call.
    """
    result = list(entries)
    if not selected:
        report(on_progress, 100)
        return result

    workers = max(1, min(max_workers or default_workers(), len(selected)))
    done = 0
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(_guarded, transform, entries[i]): i for i in selected}
        for future in as_completed(futures):
            index = futures[future]
            entry = entries[index]
            outcome = future.result()
            emit(on_log, describe(entry, outcome))
            if isinstance(outcome, Transformed):
                result[index] = Entry(entry.path, outcome.content, entry.media_type)
            done += 1
            report(on_progress, done * 100.0 / len(selected))
    return result
