"""Stopword registry — the patterns that flag a cue for operator review.

WHY: Most cues are dialogue and must never be shown to the operator. Only
cues that look like adverts, credits, or contact details (URLs, e-mail
addresses, release-group tags) deserve a prompt. The pattern list is
operator-extensible, so it lives in the store; the built-in defaults are
seed data for that database.

HOW: Patterns are document ids in the stopwords database. They are loaded
once per run, deduplicated in order, and compiled case-insensitively.
Anything that is not a valid regular expression is matched literally.

RULES:
- Matching is case-insensitive, logical OR, first match wins
- Load failure falls back to DEFAULT_STOPWORDS with a warning
- seed_stopwords() is idempotent (conflicts are ignored)
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Tuple

from clean_cow.store.client import Database, StoreError
from clean_cow.store.models import InsertOutcome

logger = logging.getLogger(__name__)

DEFAULT_STOPWORDS: List[str] = [
    r"4KVOD\.TV",
    "explosiveskull",
    "ecOtOne",
    "P@rM!NdeR M@nkÖÖ",
    "@fashionstyles_4u",
    "http",
    "uploaded by",
    r"@gmail\.com",
    r"@hotmail\.com",
    "copyright",
    "subtitle",
]
"""Seed patterns. Regex metacharacters are escaped where a literal is meant."""


def _compile(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.warning("Stopword %r is not a valid regex (%s); matching it literally", pattern, e)
        return re.compile(re.escape(pattern), re.IGNORECASE)


class StopwordRegistry:
    """Ordered, compiled set of stopword patterns.

    WHY: One registry replaces the old hard-coded checks so defaults and
    operator additions go through the same matcher.

    HOW: Keeps (pattern, compiled) pairs in first-seen order.
    """

    def __init__(self, patterns: Iterable[str]) -> None:
        seen: set = set()
        self._matchers: List[Tuple[str, re.Pattern]] = []
        for pattern in patterns:
            if pattern in seen:
                continue
            seen.add(pattern)
            self._matchers.append((pattern, _compile(pattern)))

    def __len__(self) -> int:
        return len(self._matchers)

    @property
    def patterns(self) -> List[str]:
        return [pattern for pattern, _ in self._matchers]

    def match(self, text: str) -> Optional[str]:
        """Return the first pattern found anywhere in ``text``, or None."""
        for pattern, compiled in self._matchers:
            if compiled.search(text):
                return pattern
        return None

    @classmethod
    def load(cls, database: Database) -> StopwordRegistry:
        """Build the registry from the stopwords database.

        WHY: Patterns are read once at process start; later edits to the
        database take effect on the next run.

        HOW: Uses the document ids from ``list()``; bodies are not needed.

        RULES:
        - StoreError → DEFAULT_STOPWORDS, logged as a warning
        - An empty database yields an empty registry (nothing is flagged)
        """
        try:
            rows = database.list(include_docs=False)
        except StoreError as e:
            logger.warning("Could not load stopwords, using built-in defaults: %s", e)
            return cls(DEFAULT_STOPWORDS)

        registry = cls(row.id for row in rows)
        logger.debug("Loaded %d stopword patterns", len(registry))
        return registry


def seed_stopwords(database: Database, patterns: Iterable[str] = DEFAULT_STOPWORDS) -> int:
    """Insert ``patterns`` as stopword documents, skipping ones already there.

    Returns:
        Number of patterns that were newly created.
    """
    created = 0
    for pattern in patterns:
        if database.insert({"_id": pattern}) is InsertOutcome.CREATED:
            created += 1
    return created
