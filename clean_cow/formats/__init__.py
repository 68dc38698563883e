"""Subtitle format registry — file extension → format class.

WHY: The batch runner dispatches subtitle files by extension and needs the
matching reader/writer. A central dict makes adding a format one line.

HOW: FORMATS maps lowercase extensions (with dot) to BaseCueFormat
*classes*. Callers instantiate as needed: ``FORMATS[".vtt"]()``.

RULES:
- Keys are lowercase and include the leading dot
- Values are BaseCueFormat subclasses (not instances)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from clean_cow.formats.base import CueParseError
from clean_cow.formats.srt import SRTFormat
from clean_cow.formats.webvtt import WebVTTFormat

if TYPE_CHECKING:
    from clean_cow.formats.base import BaseCueFormat

FORMATS: dict[str, type[BaseCueFormat]] = {
    ".vtt": WebVTTFormat,
    ".srt": SRTFormat,
}


def format_for_suffix(suffix: str) -> Optional[BaseCueFormat]:
    """Return a format instance for a file suffix, or None if unsupported."""
    cls = FORMATS.get(suffix.lower())
    return cls() if cls else None


__all__ = ["FORMATS", "CueParseError", "SRTFormat", "WebVTTFormat", "format_for_suffix"]
