"""SubRip (.srt) reader and writer.

WHY: Most subtitle files found next to downloaded video are SRT. They
carry the same advert cues as WebVTT and go through the same classifier.

HOW: Blank-line separated blocks of an index line, a timing line
(``HH:MM:SS,mmm --> HH:MM:SS,mmm``) and payload lines.

RULES:
- The index line must be an integer → otherwise CueParseError
- Output is renumbered from 1, so removing cues never leaves gaps
- Timestamps are written with a comma decimal separator
"""

from __future__ import annotations

import re
from typing import List

from clean_cow.core.ir import Cue, format_clock
from clean_cow.formats.base import BaseCueFormat, CueParseError, parse_timestamp, split_blocks

_TIMING_RE = re.compile(r"^\s*(\S+)\s*-->\s*(\S+)")


class SRTFormat(BaseCueFormat):
    """Reads and writes ``.srt`` documents."""

    @property
    def name(self) -> str:
        return "SubRip"

    def parse(self, text: str) -> List[Cue]:
        cues: List[Cue] = []
        for start_line, lines in split_blocks(text):
            if not lines[0].strip().isdigit():
                raise CueParseError("expected cue number, got {!r}".format(lines[0]), start_line)
            if len(lines) < 2:
                raise CueParseError("cue without timing line", start_line)

            match = _TIMING_RE.match(lines[1])
            if not match:
                raise CueParseError("bad timing line {!r}".format(lines[1]), start_line + 1)

            start, end = match.groups()
            cues.append(
                Cue(
                    start_ms=parse_timestamp(start, start_line + 1),
                    end_ms=parse_timestamp(end, start_line + 1),
                    text="\n".join(lines[2:]),
                )
            )
        return cues

    def serialize(self, cues: List[Cue]) -> str:
        blocks: List[str] = []
        for index, cue in enumerate(cues, start=1):
            lines = [
                str(index),
                "{} --> {}".format(
                    format_clock(cue.start_ms, ","), format_clock(cue.end_ms, ",")
                ),
            ]
            if cue.text:
                lines.append(cue.text)
            blocks.append("\n".join(lines) + "\n")
        return "\n".join(blocks)
