"""epub-tailor: adapt an EPUB to a reading device profile.

Usage:
    epub-tailor INPUT.epub [options]
    epub-tailor --list-profiles

Options:
    -p, --profile ID           Device profile (default: last used, else the first)
    -o, --output FILE          Output file (default: 'repacked-' + input name)
    -r, --remove PATH          Extra archive path to delete (can repeat)
    -j, --jobs N               Image worker threads (default: CPU count)
    -v, --verbose              Print every log line and debug output
    --list-profiles            Show the available profiles and exit
"""

import argparse
import dataclasses
import logging
import os
import pathlib
import sys
import tempfile

from .orchestrator import PipelineOrchestrator, RunSink
from .profiles import DEFAULT_PROFILES, ProfileTable
from .session import ProfilePreferenceStore
from .utils import human


class ConsoleSink(RunSink):
    def __init__(self, verbose=False):
        self.verbose = verbose
        self.last_shown = -1

    def on_log(self, message):
        if self.verbose or message.startswith(("Warning", "Error", "Removing")):
            print(message)

    def on_progress(self, value):
        # one line per 10%
        step = int(value) // 10
        if self.verbose and step > self.last_shown:
            self.last_shown = step
            print(f"[{int(value):3d}%]")


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Tailor an EPUB to a reading device profile")
    p.add_argument("epub", type=pathlib.Path, help="Input .epub file", nargs="?")
    p.add_argument("-p", "--profile", help="Profile id (see --list-profiles)")
    p.add_argument("-o", "--output", type=pathlib.Path,
                   help="Output file (default: 'repacked-' + input name)")
    p.add_argument("-r", "--remove", action="append", default=[],
                   help="Extra archive path to delete (can repeat)")
    p.add_argument("-j", "--jobs", type=int, help="Image worker threads")
    p.add_argument("-v", "--verbose", action="store_true")
    p.add_argument("--list-profiles", action="store_true")

    args = p.parse_args(argv)
    if args.epub is None and not args.list_profiles:
        p.print_help()
        sys.exit(1)

    return args


def list_profiles(table: ProfileTable, current=None):
    for profile in table:
        marker = "*" if profile.id == current else " "
        print(f"{marker} {profile.id:<14} {profile.description}")


def write_output(data: bytes, out_path: pathlib.Path):
    """Write atomically so an existing file is only replaced by a complete one."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".epub-tailor-", suffix=".tmp", dir=out_path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, out_path)
    except BaseException:
        pathlib.Path(tmp).unlink(missing_ok=True)
        raise


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    if args.verbose:
        # only our own loggers; Pillow is chatty at DEBUG
        logging.getLogger("epub_tailor").setLevel(logging.DEBUG)

    table = ProfileTable(DEFAULT_PROFILES)
    store = ProfilePreferenceStore()
    if args.list_profiles:
        list_profiles(table, store.load())
        return 0

    profile_id = args.profile or store.load()
    if profile_id not in table:
        if args.profile:
            print(f"Unknown profile {args.profile!r}. Available: {', '.join(p.id for p in table)}")
            return 1
        profile_id = table.default.id

    if args.remove:
        base = table.get(profile_id)
        extended = dataclasses.replace(base, remove_paths=base.remove_paths | frozenset(args.remove))
        table = ProfileTable(extended if p.id == profile_id else p for p in table)

    input_file = args.epub
    try:
        source = input_file.read_bytes()
    except OSError as e:
        print(f"Cannot read {input_file}: {e}")
        return 1
    original_size = len(source)
    print("Original size:", human(original_size))
    print("Profile:", table.get(profile_id).name)

    orchestrator = PipelineOrchestrator(table, max_workers=args.jobs)
    outcome = orchestrator.run(source, input_file.name, profile_id, sink=ConsoleSink(args.verbose))
    if not outcome.succeeded:
        print(f"Failed: {outcome.error}")
        return 1

    store.save(profile_id)
    out_path = args.output or input_file.with_name(outcome.result.output_name)
    write_output(outcome.result.final_archive, out_path)

    final = len(outcome.result.final_archive)
    saved = (original_size - final) / original_size if original_size else 0.0
    print(f"Final size: {human(final)} (saved {saved:.1%}) of original {human(original_size)}")
    print(f"Output file: {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
