"""Command-line interface for clean_cow.

WHY: The tool is operator-attended: it is run from a terminal over a set
of downloaded files, and it stops to ask about suspicious subtitle text.
The CLI wires together configuration, the decision store, the stopword
registry, the terminal prompt, and the batch runner.

HOW: argparse collects paths and flags. Settings are loaded (a missing
config file writes a template and stops). A StoreClient is opened for the
run; the DecisionCache is loaded once, the StopwordRegistry once. The
BatchRunner processes files one at a time and a summary goes to stderr.

RULES:
- Positional arguments: files or directories
- Missing config → template written, exit status 1, no file touched
- Status output goes to stderr (not stdout)
- Exit status 1 if any file failed, 130 on Ctrl-C, 0 otherwise
- The terminal prompt insists on an explicit answer; EOF stops the run
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from clean_cow.batch import BatchRunner, BatchSummary
from clean_cow.config import ConfigMissingError, load_settings, resolve_config_path
from clean_cow.core.cache import DecisionCache
from clean_cow.core.ir import Cue
from clean_cow.core.stopwords import StopwordRegistry, seed_stopwords
from clean_cow.media.container import ContainerCleaner
from clean_cow.media.tools import MediaTools
from clean_cow.store.client import StoreClient, StoreError
from clean_cow.store.models import Command

logger = logging.getLogger(__name__)

_DELETE_ANSWERS = {"y", "yes", "d", "delete"}
_KEEP_ANSWERS = {"n", "no", "k", "keep"}


def _status(msg: str) -> None:
    """Print a status message to stderr and flush."""
    print(msg, file=sys.stderr, flush=True)


class OperatorAborted(Exception):
    """Raised when the prompt's input stream closes before an answer."""


def prompt_decision(cue: Cue, pattern: str) -> Command:
    """Ask the operator whether a flagged cue's text should be deleted for good.

    WHY: The decision is persisted and applied to every future occurrence
    of the same text, so it is never defaulted; the operator must type
    an answer.

    HOW: Shows the timing, text, and matched pattern on stderr, then reads
    stdin until a recognised answer arrives.

    RULES:
    - y/yes/d/delete → Command.DELETE
    - n/no/k/keep → Command.KEEP
    - Anything else re-asks; EOF raises OperatorAborted
    """
    _status("")
    _status("Matched {!r}:".format(pattern))
    _status(cue.timing_label())
    _status('"{}"'.format(cue.text))
    while True:
        print("Delete this text from now on? [y/n] ", end="", file=sys.stderr, flush=True)
        try:
            answer = input().strip().lower()
        except EOFError:
            raise OperatorAborted("No answer on stdin") from None
        if answer in _DELETE_ANSWERS:
            return Command.DELETE
        if answer in _KEEP_ANSWERS:
            return Command.KEEP


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _print_summary(summary: BatchSummary) -> None:
    _status("")
    _status("Done: {} processed, {} failed, {} cue(s) removed".format(
        summary.processed, summary.failed, summary.cues_removed,
    ))
    for path in summary.failures:
        _status("  Failed: {}".format(path))


def _seed(client: StoreClient, subtitles_db: str, stop_words_db: str) -> None:
    for name in (subtitles_db, stop_words_db):
        if client.use(name).ensure_exists():
            _status("Created database {}".format(name))
    created = seed_stopwords(client.use(stop_words_db))
    _status("Seeded {} new stopword(s)".format(created))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="clean_cow",
        description="Remove unwanted subtitle cues, subtitle tracks, and title metadata "
                    "from subtitle and media files, remembering every decision.",
    )

    parser.add_argument(
        "paths",
        nargs="*",
        help="Files (.vtt, .srt, .mkv, .webm, .mp4) or directories to clean.",
    )

    parser.add_argument(
        "-r", "--recursive",
        action="store_true",
        help="Descend into directories.",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to the config file (default: $CLEAN_COW_CONFIG or ~/.clean_cow.env).",
    )

    parser.add_argument(
        "--seed-stopwords",
        action="store_true",
        help="Create the databases if needed and insert the built-in stopwords.",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging.",
    )

    return parser


def run(args: argparse.Namespace) -> int:
    """Execute one batch run and return the process exit status.

    WHY: Separated from main() so tests can run the whole pipeline and
    inspect the exit status without catching SystemExit.

    HOW: Loads settings, opens the store, loads cache and stopwords,
    optionally seeds, runs the batch, prints a summary.

    RULES:
    - ConfigMissingError → 1 before anything else happens
    - Seeding failure → 1
    - OperatorAborted → 1 (current file left untouched)
    """
    try:
        settings = load_settings(resolve_config_path(args.config))
    except ConfigMissingError as e:
        _status(str(e))
        _status("Fill in COUCHDB_URL and run again.")
        return 1
    except ValueError as e:
        _status("Error: {}".format(e))
        return 1

    tools = MediaTools(
        ffmpeg=settings.ffmpeg_bin,
        mkvpropedit=settings.mkvpropedit_bin,
        mediainfo=settings.mediainfo_bin,
    )

    with StoreClient(settings.couchdb_url) as client:
        if args.seed_stopwords:
            try:
                _seed(client, settings.subtitles_db, settings.stop_words_db)
            except StoreError as e:
                _status("Error: could not seed stopwords: {}".format(e))
                return 1

        if not args.paths:
            return 0

        cache = DecisionCache(client.use(settings.subtitles_db))
        cache.reload()
        stopwords = StopwordRegistry.load(client.use(settings.stop_words_db))
        logger.debug("%d decisions, %d stopwords loaded", len(cache), len(stopwords))

        runner = BatchRunner(cache, stopwords, prompt_decision, ContainerCleaner(tools))
        try:
            summary = runner.run([Path(p) for p in args.paths], recursive=args.recursive)
        except OperatorAborted as e:
            _status("\nStopped: {}".format(e))
            return 1

    _print_summary(summary)
    return 1 if summary.failed else 0


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m clean_cow`` and the ``clean-cow`` script.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.paths and not args.seed_stopwords:
        parser.error("no input paths given")

    _configure_logging(args.verbose)
    try:
        code = run(args)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
