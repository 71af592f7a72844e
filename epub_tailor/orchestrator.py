"""Run the five pipeline stages in order and compose their progress."""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from . import archive_reader, archive_writer, image_quantizer, image_resizer, template_engine
from .errors import EpubTailorError, RunCancelled
from .models import Entry, PipelineResult
from .profiles import ProfileTable
from .progress import STAGES, MonotonicProgress, global_progress

logger = logging.getLogger(__name__)


class RunSink:
    """Receives a run's log lines and progress values as they happen."""

    def on_log(self, message: str) -> None:
        pass

    def on_progress(self, value: float) -> None:
        pass


@dataclass(frozen=True)
class RunOutcome:
    result: Optional[PipelineResult]
    error: Optional[str]
    log: Tuple[str, ...]
    progress: float

    @property
    def succeeded(self) -> bool:
        return self.result is not None


class RunState:
    """Mutable working set of a single run. Never shared between runs."""

    def __init__(self, sink: Optional[RunSink] = None):
        self.sink = sink or RunSink()
        self.entries: List[Entry] = []
        self.log: List[str] = []
        self._progress = MonotonicProgress(self.sink.on_progress)

    @property
    def progress(self) -> float:
        return self._progress.value

    def append_log(self, message: str) -> None:
        self.log.append(message)
        logger.info("%s", message)
        self.sink.on_log(message)

    def stage_progress(self, stage_index: int) -> Callable[[float], None]:
        return lambda local: self._progress.update(global_progress(stage_index, local))

    def finish(self) -> None:
        self._progress.finish()


def output_name(source_name: str) -> str:
    return f"repacked-{source_name}"


class PipelineOrchestrator:
    """Unpack -> ApplyTemplate -> Resize -> Quantize -> Repack."""

    def __init__(self, profiles: ProfileTable, max_workers: Optional[int] = None):
        self.profiles = profiles
        self.max_workers = max_workers

    def run(
        self,
        source_bytes: bytes,
        source_name: str,
        profile_id: str,
        sink: Optional[RunSink] = None,
        is_cancelled: Optional[Callable[[], bool]] = None,
    ) -> RunOutcome:
        """Transform one book. A fresh RunState is built for every call.

        Fatal errors end the run with no result and are the last log line.
        Raises RunCancelled when ``is_cancelled`` turns true between stages.
        """
        state = RunState(sink)
        result = None
        error = None

        def enter(stage_index):
            if is_cancelled and is_cancelled():
                raise RunCancelled(f"Run for {source_name} was superseded")
            logger.debug("stage %s", STAGES[stage_index][0])
            return state.stage_progress(stage_index)

        try:
            profile = self.profiles.get(profile_id)
            state.append_log(f"Processing {source_name} with profile {profile.name}")

            state.entries = archive_reader.read_archive(
                source_bytes, enter(0), state.append_log)
            state.entries = template_engine.apply_template(
                state.entries, profile, enter(1), state.append_log)
            state.entries = image_resizer.resize_images(
                state.entries, profile.max_width, profile.max_height,
                enter(2), state.append_log, max_workers=self.max_workers)
            state.entries = image_quantizer.quantize_images(
                state.entries, profile.effective_grayscale_levels,
                enter(3), state.append_log, max_workers=self.max_workers)
            archive = archive_writer.pack_archive(
                state.entries, enter(4), state.append_log)

            result = PipelineResult(archive, output_name(source_name))
            state.append_log(f"Done: {result.output_name} ({len(archive)} bytes)")
        except RunCancelled:
            raise
        except EpubTailorError as e:
            error = str(e)
            state.append_log(f"Error: {error}")
        finally:
            state.finish()

        return RunOutcome(result, error, tuple(state.log), state.progress)
