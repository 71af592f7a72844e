"""Value types shared by the pipeline stages."""

import posixpath
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple, Union

MIMETYPE_PATH = "mimetype"
MIN_GRAYSCALE_LEVELS = 2
MAX_GRAYSCALE_LEVELS = 256


@dataclass(frozen=True)
class Entry:
    path: str
    content: bytes
    media_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        """Lower-cased extension including the dot, or '' when there is none."""
        return posixpath.splitext(self.path)[1].lower()


@dataclass(frozen=True)
class TextRule:
    """Replace the first match of ``pattern`` inside ``target_path``."""

    target_path: str
    pattern: str
    replacement: str = ""


@dataclass(frozen=True)
class Profile:
    id: str
    name: str
    description: str = ""
    text_rules: Tuple[TextRule, ...] = ()
    remove_paths: FrozenSet[str] = field(default_factory=frozenset)
    max_width: int = 0
    max_height: int = 0
    grayscale_levels: int = 0

    @property
    def resize_enabled(self) -> bool:
        return self.max_width > 0 and self.max_height > 0

    @property
    def effective_grayscale_levels(self) -> Optional[int]:
        """Levels clamped to [2, 256], or None when quantization is disabled."""
        if not self.grayscale_levels or self.grayscale_levels <= 1:
            return None
        return max(MIN_GRAYSCALE_LEVELS, min(MAX_GRAYSCALE_LEVELS, self.grayscale_levels))


@dataclass(frozen=True)
class PipelineResult:
    final_archive: bytes
    output_name: str


@dataclass(frozen=True)
class Transformed:
    content: bytes


@dataclass(frozen=True)
class Kept:
    """The original bytes, retained. ``failed`` marks an image that could not be processed."""

    content: bytes
    reason: str
    failed: bool = False


ItemOutcome = Union[Transformed, Kept]
