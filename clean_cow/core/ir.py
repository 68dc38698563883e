"""Intermediate representation for a single subtitle cue.

WHY: WebVTT and SRT differ in header, numbering, and timestamp syntax, but
the classifier only cares about timing and text. One immutable Cue type
decouples the classifier from the document formats.

HOW: A frozen dataclass. Format modules build Cues when parsing and read
them back when serializing.

RULES:
- Times are integer milliseconds so they round-trip exactly
- start_ms <= end_ms is assumed, never validated or corrected
- Cues are never mutated; with_text() returns a new instance
- identifier and settings are WebVTT-only extras; SRT ignores them
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class Cue:
    """A timed text fragment within a subtitle document.

    Attributes:
        start_ms: Start offset in milliseconds.
        end_ms: End offset in milliseconds.
        text: Cue payload; may span several lines.
        identifier: Optional WebVTT cue identifier line.
        settings: Optional WebVTT cue settings (e.g. ``"align:start"``).
    """

    start_ms: int
    end_ms: int
    text: str
    identifier: Optional[str] = None
    settings: str = ""

    def with_text(self, text: str) -> Cue:
        """Return a copy of this cue carrying ``text``, timing unchanged."""
        return replace(self, text=text)

    def timing_label(self) -> str:
        """Human-readable ``HH:MM:SS.mmm --> HH:MM:SS.mmm`` for prompts and logs."""
        return "{} --> {}".format(format_clock(self.start_ms), format_clock(self.end_ms))


def format_clock(ms: int, separator: str = ".") -> str:
    """Format milliseconds as ``HH:MM:SS<sep>mmm``; negative values clamp to zero."""
    if ms < 0:
        ms = 0
    hours, rest = divmod(ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)
    return "{:02d}:{:02d}:{:02d}{}{:03d}".format(hours, minutes, seconds, separator, millis)
