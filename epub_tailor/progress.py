"""Stage table and the mapping of stage-local progress onto the 0-100 run scale."""

from typing import Callable, Optional, Tuple

ProgressCallback = Callable[[float], None]
LogCallback = Callable[[str], None]

# (stage name, share of the global scale); shares sum to 100.
STAGES: Tuple[Tuple[str, int], ...] = (
    ("unpack", 25),
    ("template", 25),
    ("resize", 25),
    ("quantize", 15),
    ("repack", 10),
)


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def stage_range(stage_index: int, stages=STAGES) -> Tuple[float, float]:
    """Return the (start, end) slice of [0, 100] owned by a stage."""
    if not 0 <= stage_index < len(stages):
        raise IndexError(f"No stage at index {stage_index}")
    total = sum(weight for _, weight in stages)
    start = sum(weight for _, weight in stages[:stage_index])
    end = start + stages[stage_index][1]
    return start * 100.0 / total, end * 100.0 / total


def global_progress(stage_index: int, local_progress: float, stages=STAGES) -> float:
    """Map a stage's own 0-100 progress into its slice of the run."""
    start, end = stage_range(stage_index, stages)
    return start + (end - start) * _clamp(local_progress) / 100.0


class MonotonicProgress:
    """Forwards progress values, dropping any that would move backwards."""

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self.value = 0.0
        self._callback = callback

    def update(self, value: float) -> None:
        value = _clamp(value)
        if value <= self.value:
            return
        self.value = value
        if self._callback:
            self._callback(value)

    def finish(self) -> None:
        self.update(100.0)


def report(callback: Optional[ProgressCallback], value: float) -> None:
    if callback:
        callback(value)


def emit(callback: Optional[LogCallback], message: str) -> None:
    if callback:
        callback(message)
