"""Batch runner — dispatch each input file to the right pipeline.

WHY: Operators point the tool at a pile of files and directories. Each
file must be routed by type, and one bad file (unreadable, malformed,
tool failure) must not stop the rest of the batch.

HOW: expand_paths() turns the arguments into a flat, ordered file list.
BatchRunner.process() picks the pipeline from the file extension and
converts every recoverable per-file failure into a log line and a failed
count. Files are processed strictly one after another.

RULES:
- .vtt/.srt → classifier; .mkv/.webm → container cleaner;
  .mp4 → convert to .mkv, then container cleaner
- Unknown extensions are skipped silently (debug log)
- Directories are skipped unless recursive=True
- OSError and CueParseError fail the file, not the batch
- Errors raised by the decision port (operator EOF/interrupt) stop the batch
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List

from clean_cow.config import (
    BACKUP_SUFFIX,
    CONVERTIBLE_EXTENSIONS,
    MATROSKA_EXTENSIONS,
    SUBTITLE_EXTENSIONS,
)
from clean_cow.core.cache import DecisionCache
from clean_cow.core.classifier import DecisionPort, SubtitleReport, clean_subtitle_file
from clean_cow.core.stopwords import StopwordRegistry
from clean_cow.formats.base import CueParseError
from clean_cow.media.container import ContainerCleaner, ContainerReport, convert_to_matroska

logger = logging.getLogger(__name__)

HANDLED_EXTENSIONS = SUBTITLE_EXTENSIONS | MATROSKA_EXTENSIONS | CONVERTIBLE_EXTENSIONS


@dataclass
class BatchSummary:
    """Counts and per-file reports for one run."""

    processed: int = 0
    failed: int = 0
    skipped: int = 0
    subtitles: List[SubtitleReport] = field(default_factory=list)
    containers: List[ContainerReport] = field(default_factory=list)
    failures: List[Path] = field(default_factory=list)

    @property
    def cues_removed(self) -> int:
        return sum(report.removed for report in self.subtitles)


def expand_paths(paths: Iterable[Path], recursive: bool = False) -> Iterator[Path]:
    """Yield files from ``paths``, descending into directories when asked.

    RULES:
    - Argument order is preserved; directory contents are sorted
    - ``.backup`` files are never yielded
    - Missing paths are yielded as-is so the runner can report them
    """
    for path in paths:
        path = Path(path)
        if path.is_dir():
            if not recursive:
                logger.info("Skipping directory %s (use --recursive)", path)
                continue
            for child in sorted(p for p in path.rglob("*") if p.is_file()):
                if not child.name.endswith(BACKUP_SUFFIX):
                    yield child
        elif not path.name.endswith(BACKUP_SUFFIX):
            yield path


class BatchRunner:
    """Processes files one at a time against shared run state.

    WHY: The cache, stopword registry, and decision port are created once
    per run and shared by every subtitle document; the container cleaner
    is shared by every container.
    """

    def __init__(
        self,
        cache: DecisionCache,
        stopwords: StopwordRegistry,
        decide: DecisionPort,
        cleaner: ContainerCleaner,
    ) -> None:
        self.cache = cache
        self.stopwords = stopwords
        self.decide = decide
        self.cleaner = cleaner

    def run(self, paths: Iterable[Path], recursive: bool = False) -> BatchSummary:
        summary = BatchSummary()
        for path in expand_paths(paths, recursive=recursive):
            self.process(path, summary)
        return summary

    def process(self, path: Path, summary: BatchSummary) -> None:
        """Route one file and record its outcome in ``summary``.

        WHY: Central place where per-file failures are contained.

        HOW: Dispatches by lowercase suffix. Subtitle errors (OSError,
        CueParseError) and container failures are logged and counted.

        RULES:
        - Exceptions from the decision port propagate
        """
        ext = path.suffix.lower()
        if ext not in HANDLED_EXTENSIONS:
            logger.debug("Skipping unsupported file %s", path)
            summary.skipped += 1
            return

        try:
            if ext in SUBTITLE_EXTENSIONS:
                ok = self._process_subtitle(path, summary)
            elif ext in CONVERTIBLE_EXTENSIONS:
                ok = self._process_convertible(path, summary)
            else:
                ok = self._process_container(path, summary)
        except CueParseError as e:
            logger.error("Failed to parse %s: %s", path, e)
            ok = False
        except UnicodeDecodeError as e:
            logger.error("Failed to read %s as UTF-8: %s", path, e)
            ok = False
        except OSError as e:
            logger.error("Cannot process %s: %s", path, e)
            ok = False

        if ok:
            summary.processed += 1
        else:
            summary.failed += 1
            summary.failures.append(path)

    def _process_subtitle(self, path: Path, summary: BatchSummary) -> bool:
        report = clean_subtitle_file(path, self.cache, self.stopwords, self.decide)
        summary.subtitles.append(report)
        return True

    def _process_container(self, path: Path, summary: BatchSummary) -> bool:
        if not path.is_file():
            raise FileNotFoundError("No such file: {}".format(path))
        report = self.cleaner.clean(path)
        summary.containers.append(report)
        return report.ok

    def _process_convertible(self, path: Path, summary: BatchSummary) -> bool:
        if not path.is_file():
            raise FileNotFoundError("No such file: {}".format(path))
        converted = convert_to_matroska(path, self.cleaner.tools)
        if converted is None:
            return False
        return self._process_container(converted, summary)
