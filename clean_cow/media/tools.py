"""Thin wrappers around the external media tools.

WHY: All container inspection and editing is delegated to mediainfo,
mkvpropedit, and ffmpeg. The state machine needs three operations
(probe, edit metadata, stream-copy encode) with an exit status it can
trust, not raw command lines.

HOW: MediaTools builds each command line and runs it with
``subprocess.run`` (blocking, no timeout, stdin closed, output captured).
mediainfo's JSON is checked against PROBE_SCHEMA with jsonschema before
it is trusted.

RULES:
- Every call blocks until the tool exits; there is no timeout
- A missing executable yields ToolResult(returncode=127), never an exception
- probe() raises ProbeError for a non-zero exit or unusable JSON
- encode() never overwrites an existing output (ffmpeg ``-n``)
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import jsonschema

logger = logging.getLogger(__name__)

_MISSING_TOOL_EXIT = 127

PROBE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["media"],
    "properties": {
        "media": {
            "type": "object",
            "required": ["track"],
            "properties": {
                "track": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["@type"],
                        "properties": {"@type": {"type": "string"}},
                    },
                },
            },
        },
    },
}
"""Minimal shape of ``mediainfo --Output=JSON`` that the probe relies on."""


class ProbeError(RuntimeError):
    """Raised when a container cannot be inspected.

    RULES:
    - stderr carries the tool's diagnostic output, if any
    """

    def __init__(self, message: str, stderr: str = "") -> None:
        self.stderr = stderr
        super().__init__(message)


@dataclass
class ToolResult:
    """Exit status and captured output of one tool invocation."""

    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class ProbeResult:
    """Tracks reported by the container inspector.

    Attributes:
        tracks: mediainfo track objects, each with at least ``@type``.
    """

    tracks: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def has_text_track(self) -> bool:
        return any(track.get("@type") == "Text" for track in self.tracks)

    @property
    def audio_track_count(self) -> int:
        return sum(1 for track in self.tracks if track.get("@type") == "Audio")


@dataclass
class EncodeOptions:
    """Switches for a stream-copy rewrite.

    Attributes:
        copy_all_streams: Map every input stream, not just ffmpeg's defaults.
        drop_subtitles: Leave subtitle streams out of the output.
        clear_title: Blank the container title tag.
        stream_maps: Explicit ``-map`` selectors, used when copy_all_streams
            is off. Empty means ffmpeg's default stream selection.
    """

    copy_all_streams: bool = True
    drop_subtitles: bool = True
    clear_title: bool = True
    stream_maps: Tuple[str, ...] = ()


class MediaTools:
    """Runs the container inspector, metadata editor, and transcoder.

    WHY: One object carries the configured executable paths, and tests can
    replace it wholesale with a scripted fake.

    HOW: Each method assembles argv and calls _run().
    """

    def __init__(
        self,
        ffmpeg: str = "ffmpeg",
        mkvpropedit: str = "mkvpropedit",
        mediainfo: str = "mediainfo",
    ) -> None:
        self.ffmpeg = ffmpeg
        self.mkvpropedit = mkvpropedit
        self.mediainfo = mediainfo

    def _run(self, args: Sequence[str]) -> ToolResult:
        argv = [str(a) for a in args]
        logger.debug("Running: %s", " ".join(argv))
        try:
            proc = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except FileNotFoundError:
            logger.error("Executable not found: %s", argv[0])
            return ToolResult(argv, _MISSING_TOOL_EXIT, stderr="{}: not found".format(argv[0]))
        return ToolResult(argv, proc.returncode, proc.stdout, proc.stderr)

    # ------------------------------------------------------------------
    # Inspector
    # ------------------------------------------------------------------

    def probe(self, path: Path) -> ProbeResult:
        """Inspect ``path`` and return its tracks.

        WHY: The state machine must know whether a subtitle track is
        embedded before it decides between an in-place metadata edit and
        a full backup-and-rewrite.

        HOW: ``mediainfo --Output=JSON path``; the JSON is validated
        against PROBE_SCHEMA.

        RULES:
        - Non-zero exit → ProbeError
        - Invalid JSON or unexpected shape → ProbeError

        Args:
            path: Container to inspect.

        Returns:
            ProbeResult with the reported tracks.
        """
        result = self._run([self.mediainfo, "--Output=JSON", path])
        if not result.ok:
            raise ProbeError(
                "mediainfo exited with {} for {}".format(result.returncode, path),
                result.stderr,
            )

        try:
            data = json.loads(result.stdout)
            jsonschema.validate(instance=data, schema=PROBE_SCHEMA)
        except (json.JSONDecodeError, jsonschema.ValidationError) as e:
            raise ProbeError(
                "Failed to parse video metadata for {}: {}".format(path, e),
                result.stderr,
            ) from e

        return ProbeResult(tracks=data["media"]["track"])

    # ------------------------------------------------------------------
    # Metadata editor
    # ------------------------------------------------------------------

    def edit_metadata(
        self,
        path: Path,
        drop_title: bool = True,
        drop_track_names: Sequence[str] = (),
    ) -> ToolResult:
        """Remove the title tag and track names from a Matroska file in place.

        Args:
            path: Container to edit.
            drop_title: Delete the segment title.
            drop_track_names: mkvpropedit track selectors, e.g. ``["a1", "a2"]``.
        """
        args: List[str] = [self.mkvpropedit, str(path)]
        if drop_title:
            args += ["-d", "title"]
        for track in drop_track_names:
            args += ["--edit", "track:{}".format(track), "-d", "name"]
        return self._run(args)

    # ------------------------------------------------------------------
    # Transcoder
    # ------------------------------------------------------------------

    def encode(self, input_path: Path, output_path: Path, options: EncodeOptions) -> ToolResult:
        """Stream-copy ``input_path`` into ``output_path``.

        WHY: Dropping an embedded subtitle track needs a remux; copying
        streams verbatim avoids any quality loss.

        HOW: ``ffmpeg -n -i input [-map 0 [-map -0:s] | -map sel ...] -c copy [-sn]
        [-metadata title=] output``.

        RULES:
        - ``-n``: ffmpeg refuses to overwrite an existing output
        - Streams are copied, never re-encoded
        """
        args: List[str] = [
            self.ffmpeg,
            "-hide_banner",
            "-loglevel", "error",
            "-n",
            "-i", str(input_path),
        ]
        if options.copy_all_streams:
            args += ["-map", "0"]
            if options.drop_subtitles:
                args += ["-map", "-0:s"]
        else:
            for selector in options.stream_maps:
                args += ["-map", selector]
        args += ["-c", "copy"]
        if options.drop_subtitles:
            args.append("-sn")
        if options.clear_title:
            args += ["-metadata", "title="]
        args.append(str(output_path))
        return self._run(args)
