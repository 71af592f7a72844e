"""Apply a profile's text rewrites and file removals."""

import logging
import re
from dataclasses import replace
from typing import List, Optional

from .errors import ConfigurationWarning
from .models import Entry, Profile, TextRule
from .progress import LogCallback, ProgressCallback, emit, report
from .text import decode_document

logger = logging.getLogger(__name__)


def _find(entries: List[Entry], path: str) -> int:
    for i, entry in enumerate(entries):
        if entry.path == path:
            return i
    return -1


def apply_rule(entry: Entry, rule: TextRule, on_log: Optional[LogCallback] = None) -> Entry:
    """Replace the first match of ``rule.pattern`` and return the UTF-8 re-encoded entry."""
    try:
        pattern = re.compile(rule.pattern)
    except re.error as e:
        raise ConfigurationWarning(f"Invalid pattern for {rule.target_path}: {e}") from e

    text, warning = decode_document(entry.content)
    if warning:
        emit(on_log, f"Warning: {entry.path}: {warning}")
    try:
        new_text, count = pattern.subn(rule.replacement, text, count=1)
    except (re.error, IndexError) as e:
        raise ConfigurationWarning(f"Invalid replacement for {rule.target_path}: {e}") from e
    if not count:
        logger.debug("pattern %r matched nothing in %s", rule.pattern, entry.path)
    return replace(entry, content=new_text.encode("utf-8"))


def apply_template(
    entries: List[Entry],
    profile: Profile,
    on_progress: Optional[ProgressCallback] = None,
    on_log: Optional[LogCallback] = None,
) -> List[Entry]:
    """Run the profile's text rules in order, then drop its removal paths.

    Nothing here is fatal: a missing target or a bad rule is logged and
    skipped.
    """
    emit(on_log, f"Applying template {profile.name}...")
    result = list(entries)
    removals = [e.path for e in result if e.path in profile.remove_paths]
    total = len(profile.text_rules) + len(removals)
    if total == 0:
        report(on_progress, 100)
        emit(on_log, "Template application complete.")
        return result

    done = 0
    for rule in profile.text_rules:
        index = _find(result, rule.target_path)
        if index < 0:
            emit(on_log, f"Warning: File to modify not found: {rule.target_path}")
        else:
            emit(on_log, f"Modifying {rule.target_path}...")
            try:
                result[index] = apply_rule(result[index], rule, on_log)
            except ConfigurationWarning as w:
                emit(on_log, f"Warning: {w}")
        done += 1
        report(on_progress, done * 100.0 / total)

    kept = []
    for entry in result:
        if entry.path in profile.remove_paths:
            emit(on_log, f"Removing file: {entry.path}")
            done += 1
            report(on_progress, done * 100.0 / total)
        else:
            kept.append(entry)

    emit(on_log, "Template application complete.")
    return kept
