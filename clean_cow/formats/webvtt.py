"""WebVTT reader and writer.

WHY: Streaming downloads ship WebVTT subtitles; advert cues in them are the
main thing the classifier removes.

HOW: The document is split into blank-line separated blocks. The first
block must start with ``WEBVTT``. NOTE, STYLE, and REGION blocks are
skipped. A cue block is an optional identifier line, a timing line
(``start --> end [settings]``), then payload lines.

RULES:
- Missing WEBVTT signature → CueParseError
- A block without a timing line → CueParseError
- Output always starts with ``WEBVTT`` and a blank line
- Identifiers and cue settings survive a round trip; comments and styles do not
"""

from __future__ import annotations

import re
from typing import List

from clean_cow.core.ir import Cue, format_clock
from clean_cow.formats.base import BaseCueFormat, CueParseError, parse_timestamp, split_blocks

_TIMING_RE = re.compile(r"^\s*(\S+)\s+-->\s+(\S+)(?:\s+(.*))?$")
_SKIPPED_BLOCKS = ("NOTE", "STYLE", "REGION")


class WebVTTFormat(BaseCueFormat):
    """Reads and writes ``.vtt`` documents."""

    @property
    def name(self) -> str:
        return "WebVTT"

    def parse(self, text: str) -> List[Cue]:
        blocks = split_blocks(text)
        if not blocks or not blocks[0][1][0].startswith("WEBVTT"):
            raise CueParseError("missing WEBVTT signature", 1)

        signature = blocks[0][1][0]
        if len(signature) > 6 and signature[6] not in (" ", "\t"):
            raise CueParseError("missing WEBVTT signature", 1)

        cues: List[Cue] = []
        for start_line, lines in blocks[1:]:
            first_word = lines[0].split(" ", 1)[0].split("\t", 1)[0]
            if first_word in _SKIPPED_BLOCKS and "-->" not in lines[0]:
                continue
            cues.append(self._parse_cue(start_line, lines))
        return cues

    def _parse_cue(self, start_line: int, lines: List[str]) -> Cue:
        identifier = None
        timing_index = 0
        if "-->" not in lines[0]:
            identifier = lines[0]
            timing_index = 1
        if timing_index >= len(lines):
            raise CueParseError("cue without timing line", start_line)

        line_number = start_line + timing_index
        match = _TIMING_RE.match(lines[timing_index])
        if not match:
            raise CueParseError("bad timing line {!r}".format(lines[timing_index]), line_number)

        start, end, settings = match.groups()
        return Cue(
            start_ms=parse_timestamp(start, line_number),
            end_ms=parse_timestamp(end, line_number),
            text="\n".join(lines[timing_index + 1:]),
            identifier=identifier,
            settings=(settings or "").strip(),
        )

    def serialize(self, cues: List[Cue]) -> str:
        parts: List[str] = ["WEBVTT\n"]
        for cue in cues:
            block: List[str] = []
            if cue.identifier:
                block.append(cue.identifier)
            timing = "{} --> {}".format(format_clock(cue.start_ms), format_clock(cue.end_ms))
            if cue.settings:
                timing = "{} {}".format(timing, cue.settings)
            block.append(timing)
            if cue.text:
                block.append(cue.text)
            parts.append("\n".join(block) + "\n")
        return "\n".join(parts)
