"""Adapt EPUB books to reading device profiles."""

from .errors import (
    ConfigurationWarning,
    EpubTailorError,
    FatalArchiveError,
    ItemProcessingError,
    RunCancelled,
    UnknownProfileError,
)
from .models import Entry, Kept, PipelineResult, Profile, TextRule, Transformed
from .orchestrator import PipelineOrchestrator, RunOutcome, RunSink
from .profiles import DEFAULT_PROFILES, ProfileTable
from .session import ProcessingSession, ProfilePreferenceStore

__version__ = "0.1.0"

__all__ = [
    "ConfigurationWarning",
    "DEFAULT_PROFILES",
    "Entry",
    "EpubTailorError",
    "FatalArchiveError",
    "ItemProcessingError",
    "Kept",
    "PipelineOrchestrator",
    "PipelineResult",
    "ProcessingSession",
    "Profile",
    "ProfilePreferenceStore",
    "ProfileTable",
    "RunCancelled",
    "RunOutcome",
    "RunSink",
    "TextRule",
    "Transformed",
    "UnknownProfileError",
]
