"""Container mutation state machine — strip subtitle tracks and title metadata safely.

WHY: Media files are often irreplaceable. Removing an embedded subtitle
track means rewriting the whole file with an external tool, and a tool
crash halfway through must never cost the operator the original.

HOW: Each container walks a fixed sequence of states:

  PROBE → NO_SUBS_FOUND → METADATA_CLEANED                       (in place)
  PROBE → SUBS_FOUND → METADATA_CLEANED → BACKED_UP → REWRITTEN → COMMITTED
                                                 ↘ ROLLED_BACK

The original is renamed to ``<path>.backup`` before the transcoder runs;
the backup is deleted only after the tool exited 0, the output exists,
and a re-probe shows no text track. Otherwise the backup is renamed back.

RULES:
- Probe failure → PROBE_FAILED, file untouched
- An existing ``<path>.backup`` is never overwritten → SKIPPED
- Metadata edit failures are logged, never fatal
- From BACKED_UP until COMMITTED/ROLLED_BACK a full copy exists at ``.backup``
- No automatic retries
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from clean_cow.config import BACKUP_SUFFIX
from clean_cow.media.tools import EncodeOptions, MediaTools, ProbeError, ProbeResult

logger = logging.getLogger(__name__)


MP4_STREAM_MAPS = ("0:v", "0:a?")
"""Streams carried over when remuxing MP4 to Matroska."""

class ContainerState(str, enum.Enum):
    """States of the container mutation protocol.

    RULES:
    - Success ends in committed (rewrite) or metadata_cleaned (no subs)
    - rolled_back, probe_failed, skipped: failure, original intact
    """

    PROBE = "probe"
    PROBE_FAILED = "probe_failed"
    NO_SUBS_FOUND = "no_subs_found"
    SUBS_FOUND = "subs_found"
    METADATA_CLEANED = "metadata_cleaned"
    BACKED_UP = "backed_up"
    REWRITTEN = "rewritten"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    SKIPPED = "skipped"


_FAILED_STATES = {ContainerState.PROBE_FAILED, ContainerState.ROLLED_BACK, ContainerState.SKIPPED}


@dataclass
class ContainerReport:
    """Trace of one container through the state machine.

    Attributes:
        path: The container.
        history: Every state entered, in order.
        error: Failure description, if any.
        metadata_edit_ok: Whether the metadata editor exited 0 (None if not run).
    """

    path: Path
    history: List[ContainerState] = field(default_factory=list)
    error: Optional[str] = None
    metadata_edit_ok: Optional[bool] = None

    @property
    def state(self) -> ContainerState:
        return self.history[-1]

    @property
    def ok(self) -> bool:
        return self.state not in _FAILED_STATES


def backup_path_for(path: Path) -> Path:
    """Return the sibling ``<path>.backup``."""
    return path.with_name(path.name + BACKUP_SUFFIX)


class ContainerCleaner:
    """Drives one container at a time through the mutation protocol.

    WHY: Keeps the backup invariant in one place, with the tool adapter
    injected so failures can be simulated in tests.

    HOW: clean() records each transition in a ContainerReport and returns
    it; nothing here raises for tool failures.
    """

    def __init__(self, tools: MediaTools) -> None:
        self.tools = tools

    def _enter(self, report: ContainerReport, state: ContainerState) -> None:
        report.history.append(state)
        logger.debug("%s: %s", report.path.name, state.value)

    def clean(self, path: Path) -> ContainerReport:
        """Strip subtitle tracks and title metadata from ``path``.

        WHY: The single entry point the batch runner calls for Matroska
        containers.

        HOW: Probe first. Without a text track only the in-place metadata
        edit runs. With one, the metadata edit runs, then the file is
        backed up, rewritten, verified, and committed or rolled back.

        RULES:
        - Never raises for tool failures; read report.ok / report.error
        - OSError from the backup rename propagates with the file untouched

        Args:
            path: Container to clean in place.

        Returns:
            ContainerReport with the visited states.
        """
        path = Path(path)
        report = ContainerReport(path=path)
        logger.info("Cleaning %s", path)

        self._enter(report, ContainerState.PROBE)
        try:
            probe = self.tools.probe(path)
        except ProbeError as e:
            logger.error("Failed to get video metadata for %s: %s", path, e)
            if e.stderr:
                logger.debug(e.stderr)
            report.error = str(e)
            self._enter(report, ContainerState.PROBE_FAILED)
            return report

        if not probe.has_text_track:
            self._enter(report, ContainerState.NO_SUBS_FOUND)
            logger.info("No subs found in %s", path)
            self._clean_metadata(path, probe, report)
            logger.info("Cleaned: %s", path)
            return report

        self._enter(report, ContainerState.SUBS_FOUND)
        logger.info("Subs found in %s, removing...", path)
        self._clean_metadata(path, probe, report)
        return self._rewrite(path, report)

    def _clean_metadata(self, path: Path, probe: ProbeResult, report: ContainerReport) -> None:
        tracks = ["a{}".format(i) for i in range(1, probe.audio_track_count + 1)]
        result = self.tools.edit_metadata(path, drop_title=True, drop_track_names=tracks)
        report.metadata_edit_ok = result.ok
        if not result.ok:
            logger.error(
                "Failed to remove video metadata [%s]: %s", result.returncode, path
            )
            if result.stderr:
                logger.debug(result.stderr)
        self._enter(report, ContainerState.METADATA_CLEANED)

    def _rewrite(self, path: Path, report: ContainerReport) -> ContainerReport:
        backup = backup_path_for(path)
        if backup.exists():
            report.error = "Backup already exists: {}".format(backup)
            logger.error("%s; refusing to touch %s", report.error, path)
            self._enter(report, ContainerState.SKIPPED)
            return report

        path.rename(backup)
        self._enter(report, ContainerState.BACKED_UP)

        try:
            result = self.tools.encode(backup, path, EncodeOptions())
            self._enter(report, ContainerState.REWRITTEN)
            failure = self._verify(path, result.ok, result.returncode)
        except Exception:
            self._rollback(path, backup, report, "unexpected error during rewrite")
            raise

        if failure is None:
            backup.unlink()
            self._enter(report, ContainerState.COMMITTED)
            logger.info("Cleaned: %s", path)
            return report

        if result.stderr:
            logger.debug(result.stderr)
        self._rollback(path, backup, report, failure)
        return report

    def _rollback(self, path: Path, backup: Path, report: ContainerReport, reason: str) -> None:
        backup.replace(path)
        report.error = reason
        self._enter(report, ContainerState.ROLLED_BACK)
        logger.error("Failed to clean %s (%s); original restored", path, reason)

    def _verify(self, path: Path, exited_ok: bool, returncode: int) -> Optional[str]:
        """Return None when the rewritten file is trustworthy, else a reason."""
        if not exited_ok:
            return "ffmpeg exited with {}".format(returncode)
        if not path.is_file() or path.stat().st_size == 0:
            return "ffmpeg produced no output"
        try:
            probe = self.tools.probe(path)
        except ProbeError as e:
            return "re-probe failed: {}".format(e)
        if probe.has_text_track:
            return "text track still present after rewrite"
        return None


def convert_to_matroska(path: Path, tools: MediaTools) -> Optional[Path]:
    """Remux an MP4 into a sibling ``.mkv`` and delete the MP4 on success.

    WHY: mkvpropedit only edits Matroska, and MP4 subtitle tracks are
    rarely wanted; converting first lets the normal pipeline finish the job.

    HOW: Stream copy of the video and audio streams only (MP4_STREAM_MAPS),
    with subtitles dropped and the title cleared. MP4 timecode and data
    streams are left behind because Matroska cannot carry them under
    ``-c copy``. The MP4 is removed only after ffmpeg exits 0 and the
    ``.mkv`` exists.

    RULES:
    - An existing ``.mkv`` sibling is never overwritten → None
    - On failure the partial ``.mkv`` is removed and the MP4 kept → None

    Args:
        path: The ``.mp4`` file.
        tools: Media tool adapter.

    Returns:
        Path of the new ``.mkv``, or None on failure.
    """
    path = Path(path)
    target = path.with_suffix(".mkv")
    if target.exists():
        logger.error("Not converting %s: %s already exists", path, target)
        return None

    result = tools.encode(
        path, target, EncodeOptions(copy_all_streams=False, stream_maps=MP4_STREAM_MAPS)
    )
    if not result.ok or not target.is_file():
        logger.error("Failed to convert %s to mkv [%s]", path, result.returncode)
        if target.exists():
            target.unlink()
        return None

    logger.info("Converted to mkv: %s", path)
    path.unlink()
    return target
