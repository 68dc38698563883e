"""Abstract base for cue-based subtitle document formats.

WHY: The classifier works on Cue lists and must write a document back in
the same format it was read from. A shared interface lets the batch
runner pick a format by file extension and treat all of them alike.

HOW: BaseCueFormat is an ABC with a ``name`` property, ``parse()`` and
``serialize()``. CueParseError signals a document that cannot be read at
all; there is no partial result.

RULES:
- parse() returns cues in document order
- serialize(parse(x)) preserves cue order, timing, and text
- parse() raises CueParseError, never returns a partial list
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import List

from clean_cow.core.ir import Cue


class CueParseError(ValueError):
    """Raised when a subtitle document is malformed.

    RULES:
    - line is the 1-based line number of the offending line, when known
    """

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = "line {}: {}".format(line, message)
        super().__init__(message)


_TIMESTAMP_RE = re.compile(r"^(?:(\d+):)?(\d{1,2}):(\d{2})[.,](\d{1,3})$")


def parse_timestamp(value: str, line: int | None = None) -> int:
    """Parse ``[HH:]MM:SS.mmm`` (``,`` also accepted) into milliseconds."""
    match = _TIMESTAMP_RE.match(value.strip())
    if not match:
        raise CueParseError("bad timestamp {!r}".format(value.strip()), line)
    hours, minutes, seconds, millis = match.groups()
    if int(minutes) > 59 or int(seconds) > 59:
        raise CueParseError("timestamp out of range {!r}".format(value.strip()), line)
    return (
        int(hours or 0) * 3_600_000
        + int(minutes) * 60_000
        + int(seconds) * 1000
        + int(millis.ljust(3, "0"))
    )


def split_blocks(text: str) -> List[tuple]:
    """Split a document into blank-line separated blocks.

    Returns:
        List of (first_line_number, lines) tuples; line numbers are 1-based.
    """
    text = text.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
    blocks: List[tuple] = []
    current: List[str] = []
    start = 0
    for number, line in enumerate(text.split("\n"), start=1):
        if line.strip() == "":
            if current:
                blocks.append((start, current))
                current = []
            continue
        if not current:
            start = number
        current.append(line)
    if current:
        blocks.append((start, current))
    return blocks


class BaseCueFormat(ABC):
    """Abstract base for all subtitle document formats.

    To add a new format:
    1. Create a new file in formats/
    2. Subclass BaseCueFormat
    3. Implement name, parse() and serialize()
    4. Register the file extension in FORMATS in formats/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'WebVTT'."""

    @abstractmethod
    def parse(self, text: str) -> List[Cue]:
        """Parse a whole document into cues.

        Raises:
            CueParseError: If the document is malformed.
        """

    @abstractmethod
    def serialize(self, cues: List[Cue]) -> str:
        """Render cues back into a complete document."""
