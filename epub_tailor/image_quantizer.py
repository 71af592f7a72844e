"""Reduce raster images to a fixed number of evenly spaced gray levels.

Luminance uses the ITU-R BT.601 weights (0.299 R + 0.587 G + 0.114 B),
which is what Pillow's ``"L"`` conversion computes. Alpha is carried over
unchanged; the result is written as ``L`` or ``LA`` so every decoded pixel
has R == G == B.
"""

import logging
from typing import List, Optional

from PIL import Image

from .images import encode_image, is_processable, load_image, process_items
from .models import MAX_GRAYSCALE_LEVELS, MIN_GRAYSCALE_LEVELS, Entry, ItemOutcome, Transformed
from .progress import LogCallback, ProgressCallback, emit, report

logger = logging.getLogger(__name__)


def level_table(levels: int) -> List[int]:
    """Lookup table mapping each luminance 0..255 to one of ``levels`` values."""
    steps = levels - 1
    return [round(round(v * steps / 255) * 255 / steps) for v in range(256)]


def quantize_image(img: Image.Image, levels: int) -> Image.Image:
    has_alpha = img.mode in ("RGBA", "LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    )
    if has_alpha:
        rgba = img.convert("RGBA")
        gray = rgba.convert("L").point(level_table(levels))
        return Image.merge("LA", (gray, rgba.getchannel("A")))
    return img.convert("RGB").convert("L").point(level_table(levels))


def quantize_entry(entry: Entry, levels: int) -> ItemOutcome:
    img = load_image(entry)
    return Transformed(encode_image(quantize_image(img, levels), entry))


def _describe(entry: Entry, outcome: ItemOutcome) -> str:
    if isinstance(outcome, Transformed):
        return f"Grayscaled {entry.path}"
    return f"Error grayscaling {entry.path}: {outcome.reason}. Keeping original."


def quantize_images(
    entries: List[Entry],
    levels: Optional[int],
    on_progress: Optional[ProgressCallback] = None,
    on_log: Optional[LogCallback] = None,
    max_workers: Optional[int] = None,
) -> List[Entry]:
    if not levels or levels <= 1:
        emit(on_log, "Grayscale conversion skipped (pass-through).")
        report(on_progress, 100)
        return list(entries)

    levels = max(MIN_GRAYSCALE_LEVELS, min(MAX_GRAYSCALE_LEVELS, levels))
    emit(on_log, f"Converting images to {levels} levels of gray...")
    selected = [i for i, e in enumerate(entries) if is_processable(e)]
    if not selected:
        emit(on_log, "No images to convert to grayscale.")

    result = process_items(
        entries,
        selected,
        lambda entry: quantize_entry(entry, levels),
        _describe,
        on_progress=on_progress,
        on_log=on_log,
        max_workers=max_workers,
    )
    emit(on_log, "Grayscale conversion complete.")
    return result
