"""Content fingerprint for cue text.

WHY: Decisions must follow the *text* of a cue, not where it appears.
The same release-group advert shows up in hundreds of files at different
timestamps; one verdict should cover all of them.

HOW: SHA-256 over the UTF-8 bytes of the stripped text, hex encoded.

RULES:
- Leading/trailing whitespace never changes the fingerprint
- The empty string is a valid, stable key
- Output is 64 lowercase hex characters
"""

from __future__ import annotations

import hashlib


def fingerprint(text: str) -> str:
    """Return the SHA-256 hex digest of ``text`` after stripping whitespace."""
    return hashlib.sha256(text.strip().encode("utf-8")).hexdigest()
