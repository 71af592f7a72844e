"""Downscale oversized raster images to a profile's dimension caps."""

import logging
from typing import List, Optional, Tuple

from PIL import Image

from .images import encode_image, is_processable, load_image, process_items
from .models import Entry, ItemOutcome, Kept, Transformed
from .progress import LogCallback, ProgressCallback, emit, report
from .utils import human

logger = logging.getLogger(__name__)

RESIZE_MIN_BYTES = 50 * 1024


def fit_within(width: int, height: int, max_width: int, max_height: int) -> Tuple[int, int]:
    """Largest size with the same aspect ratio that fits the caps. Never upscales."""
    scale = min(max_width / width, max_height / height, 1.0)
    if scale >= 1.0:
        return width, height
    new_width = min(max_width, max(1, round(width * scale)))
    new_height = min(max_height, max(1, round(height * scale)))
    return new_width, new_height


def resize_entry(entry: Entry, max_width: int, max_height: int) -> ItemOutcome:
    img = load_image(entry)
    size = fit_within(img.width, img.height, max_width, max_height)
    if size == img.size:
        return Kept(entry.content, f"{img.width}x{img.height} already fits")

    resized = img.resize(size, Image.LANCZOS)
    candidate = encode_image(resized, entry)
    if len(candidate) < entry.size:
        return Transformed(candidate)
    return Kept(entry.content, f"resized version not smaller ({human(len(candidate))})")


def _describe(entry: Entry, outcome: ItemOutcome) -> str:
    if isinstance(outcome, Transformed):
        return f"Resized {entry.path}: {human(entry.size)} -> {human(len(outcome.content))}"
    if outcome.failed:
        return f"Error resizing {entry.path}: {outcome.reason}. Keeping original."
    return f"Skipped {entry.path} ({outcome.reason})"


def resize_images(
    entries: List[Entry],
    max_width: int,
    max_height: int,
    on_progress: Optional[ProgressCallback] = None,
    on_log: Optional[LogCallback] = None,
    max_workers: Optional[int] = None,
) -> List[Entry]:
    if max_width <= 0 or max_height <= 0:
        emit(on_log, "Image resizing skipped (pass-through).")
        report(on_progress, 100)
        return list(entries)

    emit(on_log, f"Resizing images to fit within {max_width}x{max_height}...")
    selected = [
        i for i, e in enumerate(entries)
        if is_processable(e) and e.size > RESIZE_MIN_BYTES
    ]
    if not selected:
        emit(on_log, "No images to resize.")
    for i in selected:
        emit(on_log, f"Resizing candidate: {entries[i].path} ({human(entries[i].size)})")

    result = process_items(
        entries,
        selected,
        lambda entry: resize_entry(entry, max_width, max_height),
        _describe,
        on_progress=on_progress,
        on_log=on_log,
        max_workers=max_workers,
    )
    emit(on_log, "Image resizing complete.")
    return result
