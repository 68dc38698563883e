"""Cue classification engine — drop cues the operator has marked for deletion.

WHY: Subtitle files carry adverts ("Subtitles by ...", URLs, e-mail
addresses) mixed in with dialogue. Each distinct advert text should be
judged once by a human and then removed automatically everywhere.

HOW: For every cue, in order: fingerprint the trimmed text, consult the
DecisionCache, and only when the text is undecided test it against the
StopwordRegistry. A stopword hit is escalated to the injected decision
port (a blocking callable, usually the terminal prompt), the verdict is
recorded in the store, and then applied. The document is rewritten only
when at least one cue was removed.

RULES:
- Cached delete → drop, cached keep → retain, no prompt and no I/O
- Undecided and no stopword match → retain, nothing recorded
- The decision port is called at most once per fingerprint per run
- Output preserves cue order and timing; payload text is trimmed
- No file write when nothing was removed
- The rewrite goes through a sibling temp file and os.replace(); a failed
  write leaves the original document in place
- A parse error aborts the document before anything is written
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from clean_cow.core.cache import DecisionCache, RecordOutcome
from clean_cow.core.hasher import fingerprint
from clean_cow.core.ir import Cue
from clean_cow.core.stopwords import StopwordRegistry
from clean_cow.formats import format_for_suffix
from clean_cow.formats.base import BaseCueFormat
from clean_cow.store.models import Command

logger = logging.getLogger(__name__)

DecisionPort = Callable[[Cue, str], Command]
"""Blocking callback asked about a flagged cue: (cue, matched_pattern) → Command."""


@dataclass
class ClassificationResult:
    """Outcome of classifying one sequence of cues.

    Attributes:
        kept: Output cues, in document order, with trimmed text.
        removed: Input cues that were dropped.
        prompted: Number of times the decision port was called.
        unsaved: Fingerprints whose decision could not be written to the store.
    """

    kept: List[Cue] = field(default_factory=list)
    removed: List[Cue] = field(default_factory=list)
    prompted: int = 0
    unsaved: List[str] = field(default_factory=list)

    @property
    def removed_count(self) -> int:
        return len(self.removed)

    @property
    def total(self) -> int:
        return len(self.kept) + len(self.removed)


@dataclass
class SubtitleReport:
    """Per-document summary reported to the operator.

    Attributes:
        path: The subtitle file.
        total: Cues seen.
        removed: Cues dropped.
        prompted: Operator prompts shown for this document.
        written: Whether the file was overwritten.
    """

    path: Path
    total: int
    removed: int
    prompted: int
    written: bool


def classify_cues(
    cues: List[Cue],
    cache: DecisionCache,
    stopwords: StopwordRegistry,
    decide: DecisionPort,
) -> ClassificationResult:
    """Split ``cues`` into kept and removed according to stored decisions.

    WHY: This is the heart of the tool. It turns a stream of cues plus
    remembered verdicts into a cleaned stream, asking the operator only
    about text that looks suspicious and has never been judged.

    HOW: Walks cues in order. Cached decisions short-circuit. Undecided
    cues that hit a stopword go to ``decide``; the answer is recorded
    through the cache, which reloads itself, so later cues with the same
    text are handled from the cache. If another writer stored a
    different verdict first, the stored verdict wins.

    RULES:
    - Empty trimmed text is fingerprinted and classified like any text
    - Exceptions raised by ``decide`` propagate (e.g. operator EOF)
    - A failed store write still applies the operator's answer

    Args:
        cues: Parsed cues in document order.
        cache: The run's DecisionCache.
        stopwords: The run's StopwordRegistry.
        decide: Decision port called for flagged, undecided cues.

    Returns:
        ClassificationResult with kept and removed cues.
    """
    result = ClassificationResult()

    for cue in cues:
        text = cue.text.strip()
        fp = fingerprint(text)
        output = cue.with_text(text)

        command = cache.lookup(fp)
        if command is None:
            pattern = stopwords.match(text)
            if pattern is None:
                result.kept.append(output)
                continue

            logger.debug("Cue at %s matches stopword %r", cue.timing_label(), pattern)
            answer = decide(output, pattern)
            result.prompted += 1

            if cache.record(fp, answer) is RecordOutcome.FAILED:
                result.unsaved.append(fp)
            command = cache.lookup(fp) or answer

        if command is Command.DELETE:
            result.removed.append(cue)
        else:
            result.kept.append(output)

    return result


def _atomic_write(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` without ever truncating the original."""
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=path.name + ".", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
            tmp_file.write(text)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        shutil.copymode(path, temp_path)
        os.replace(temp_path, path)
    finally:
        if os.path.exists(temp_path):
            os.unlink(temp_path)


def clean_subtitle_file(
    path: Path,
    cache: DecisionCache,
    stopwords: StopwordRegistry,
    decide: DecisionPort,
    cue_format: Optional[BaseCueFormat] = None,
) -> SubtitleReport:
    """Classify one subtitle file and rewrite it if cues were removed.

    WHY: Entry point used by the batch runner for ``.vtt`` and ``.srt``
    files.

    HOW: Reads the file as UTF-8, parses it with the format matching its
    suffix (or ``cue_format``), runs classify_cues(), and serializes the
    kept cues back over the file when anything was removed.

    RULES:
    - Unsupported suffix without an explicit format → ValueError
    - CueParseError and OSError propagate; the file is untouched
    - Written only when removed > 0

    Args:
        path: Subtitle file to clean in place.
        cache: The run's DecisionCache.
        stopwords: The run's StopwordRegistry.
        decide: Decision port for flagged cues.
        cue_format: Override for the format picked from the suffix.

    Returns:
        SubtitleReport for the document.
    """
    path = Path(path)
    fmt = cue_format or format_for_suffix(path.suffix)
    if fmt is None:
        raise ValueError("Unsupported subtitle format: {}".format(path.suffix))

    logger.info("Processing: %s", path)
    contents = path.read_text(encoding="utf-8-sig")
    cues = fmt.parse(contents)

    result = classify_cues(cues, cache, stopwords, decide)

    written = False
    if result.removed_count > 0:
        logger.info("Removing %d unwanted cue(s) from %s", result.removed_count, path)
        _atomic_write(path, fmt.serialize(result.kept))
        written = True

    if result.unsaved:
        logger.warning(
            "%d decision(s) for %s were not saved and will be asked again next run",
            len(result.unsaved), path,
        )

    logger.info("Cleaned: %s (%d cues, %d removed)", path, result.total, result.removed_count)
    return SubtitleReport(
        path=path,
        total=result.total,
        removed=result.removed_count,
        prompted=result.prompted,
        written=written,
    )
