"""One user's processing session: last-request-wins runs and the remembered profile."""

import logging
import os
import pathlib
import threading
from typing import Callable, Optional

from .errors import RunCancelled, UnknownProfileError
from .models import PipelineResult
from .orchestrator import PipelineOrchestrator, RunOutcome, RunSink
from .profiles import ProfileTable

logger = logging.getLogger(__name__)

CONFIG_ENV = "EPUB_TAILOR_HOME"


def default_config_dir() -> pathlib.Path:
    override = os.environ.get(CONFIG_ENV)
    if override:
        return pathlib.Path(override)
    return pathlib.Path.home() / ".config" / "epub-tailor"


class ProfilePreferenceStore:
    """Persists the last-used profile id as a single line of text."""

    def __init__(self, path: Optional[pathlib.Path] = None):
        self.path = path or default_config_dir() / "last_profile"

    def load(self) -> Optional[str]:
        try:
            value = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Could not read %s: %s", self.path, e)
            return None
        return value or None

    def save(self, profile_id: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(profile_id + "\n", encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save profile preference to %s: %s", self.path, e)


class _GenerationSink(RunSink):
    """Forwards events only while its run is still the current one."""

    def __init__(self, session, generation):
        self.session = session
        self.generation = generation

    def _current(self):
        return self.session._generation == self.generation

    def on_log(self, message):
        if self._current() and self.session.sink:
            self.session.sink.on_log(message)

    def on_progress(self, value):
        if self._current() and self.session.sink:
            self.session.sink.on_progress(value)


class ProcessingSession:
    """Holds the active profile, the source book and the latest good output.

    Choosing a new source or profile starts a new run and supersedes the one
    in flight: it is cancelled at its next stage boundary and whatever it
    produces is discarded. A failed run leaves the previous output in place.
    """

    def __init__(
        self,
        profiles: ProfileTable,
        store: Optional[ProfilePreferenceStore] = None,
        sink: Optional[RunSink] = None,
        on_profile_change: Optional[Callable[[str], None]] = None,
        max_workers: Optional[int] = None,
    ):
        self.profiles = profiles
        self.store = store
        self.sink = sink
        self.on_profile_change = on_profile_change
        self.orchestrator = PipelineOrchestrator(profiles, max_workers=max_workers)
        self.output: Optional[PipelineResult] = None
        self.last_outcome: Optional[RunOutcome] = None
        self.source = None
        self._generation = 0
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

        stored = store.load() if store else None
        self.profile_id = stored if stored in profiles else profiles.default.id

    def select_profile(self, profile_id: str) -> None:
        if profile_id not in self.profiles:
            raise UnknownProfileError(profile_id)
        self.profile_id = profile_id
        if self.store:
            self.store.save(profile_id)
        if self.on_profile_change:
            self.on_profile_change(profile_id)
        if self.source is not None:
            self._start()

    def submit(self, source_bytes: bytes, source_name: str) -> None:
        self.source = (source_bytes, source_name)
        self._start()

    def _start(self) -> None:
        with self._lock:
            self._generation += 1
            generation = self._generation
        source_bytes, source_name = self.source
        profile_id = self.profile_id
        thread = threading.Thread(
            target=self._run,
            args=(generation, source_bytes, source_name, profile_id),
            name=f"epub-tailor-run-{generation}",
            daemon=True,
        )
        self._thread = thread
        thread.start()

    def _run(self, generation, source_bytes, source_name, profile_id) -> None:
        try:
            outcome = self.orchestrator.run(
                source_bytes,
                source_name,
                profile_id,
                sink=_GenerationSink(self, generation),
                is_cancelled=lambda: self._generation != generation,
            )
        except RunCancelled as e:
            logger.debug("%s", e)
            return
        with self._lock:
            if generation != self._generation:
                logger.debug("discarding result of superseded run %d", generation)
                return
            self.last_outcome = outcome
            if outcome.result is not None:
                self.output = outcome.result

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the most recently started run has finished."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
