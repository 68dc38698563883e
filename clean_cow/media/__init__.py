"""Media container handling — external tools and the mutation state machine.

WHY: Containers are rewritten by external tools, never by this package.
What lives here is the adapter around those tools and the protocol that
keeps the original file recoverable.

HOW: tools.py runs mediainfo / mkvpropedit / ffmpeg; container.py drives
each file through probe → metadata edit → backup → rewrite → commit or
rollback.
"""

from clean_cow.media.container import (
    ContainerCleaner,
    ContainerReport,
    ContainerState,
    convert_to_matroska,
)
from clean_cow.media.tools import EncodeOptions, MediaTools, ProbeError, ProbeResult, ToolResult

__all__ = [
    "ContainerCleaner",
    "ContainerReport",
    "ContainerState",
    "EncodeOptions",
    "MediaTools",
    "ProbeError",
    "ProbeResult",
    "ToolResult",
    "convert_to_matroska",
]
