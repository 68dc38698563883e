"""In-process copy of the keep/delete decisions for one batch run.

WHY: The classifier looks up every cue of every document. Hitting the
store per cue would be slow and would make a flaky network abort the
run. Loading all decisions once and consulting a dict is both fast and
tolerant: a store outage just means "nothing decided yet".

HOW: DecisionCache holds a fingerprint → Command mapping loaded from the
subtitles Database. It is an explicitly owned object, created by the
batch runner and passed to the classifier. After every write the whole
mapping is reloaded rather than patched, so decisions made concurrently
by other processes sharing the store are picked up too.

RULES:
- lookup() never does I/O
- reload() failures are logged and leave the previous mapping in place
- record() reports FAILED when the insert did not reach the store; it is
  never reported as persisted
- A recorded decision is visible to lookup() immediately, even when the
  post-write reload fails
"""

from __future__ import annotations

import enum
import logging
from typing import Dict, Optional

from clean_cow.store.client import Database, StoreError
from clean_cow.store.models import Command, Decision, InsertOutcome

logger = logging.getLogger(__name__)


class RecordOutcome(str, enum.Enum):
    """What happened when a decision was written.

    RULES:
    - persisted: the store now holds a document for the fingerprint
      (freshly created, or it already existed)
    - failed: the store could not be written; the decision lives in
      memory for this run only and the prompt recurs next run
    """

    PERSISTED = "persisted"
    FAILED = "failed"


class DecisionCache:
    """Read-through, write-invalidated copy of the decisions database.

    WHY: One source of truth per run, shared by every document the run
    touches, without module-level global state.

    HOW: ``_decisions`` is rebuilt wholesale by reload(). ``_unsaved``
    keeps decisions whose insert failed so a reload cannot forget them
    before the run ends.

    RULES:
    - Construct, then call reload() once at run start
    - invalidate() is a full reload
    """

    def __init__(self, database: Database) -> None:
        self._database = database
        self._decisions: Dict[str, Command] = {}
        self._unsaved: Dict[str, Command] = {}
        self.reload_count = 0

    def __len__(self) -> int:
        return len(self._decisions)

    def __contains__(self, fp: str) -> bool:
        return fp in self._decisions

    def reload(self) -> bool:
        """Replace the mapping with the store's current contents.

        WHY: Called at run start and after each write so every document
        sees the latest decisions, including ones written by other
        processes.

        HOW: ``list(include_docs=True)`` on the decisions database;
        documents that don't parse as a Decision are skipped.

        RULES:
        - Returns False (and keeps the old mapping) on StoreError
        - Decisions that failed to persist this run are layered back on top

        Returns:
            True if the mapping was refreshed from the store.
        """
        logger.debug("Reloading subtitle decision cache from %s", self._database.name)
        try:
            rows = self._database.list(include_docs=True)
        except StoreError as e:
            logger.warning("Could not load decisions, treating cues as undecided: %s", e)
            return False

        decisions: Dict[str, Command] = {}
        for row in rows:
            if row.doc is None:
                continue
            decision = Decision.from_dict(row.doc)
            if decision is None:
                logger.debug("Skipping malformed decision document %s", row.id)
                continue
            decisions[row.id] = decision.command

        for fp, command in self._unsaved.items():
            decisions.setdefault(fp, command)

        self._decisions = decisions
        self.reload_count += 1
        return True

    def invalidate(self) -> bool:
        """Drop the current view and reload it from the store."""
        return self.reload()

    def lookup(self, fp: str) -> Optional[Command]:
        """Return the cached command for ``fp``, or None if undecided."""
        return self._decisions.get(fp)

    def record(self, fp: str, command: Command) -> RecordOutcome:
        """Persist a new decision and refresh the cache.

        WHY: After the operator answers a prompt, the verdict must stick:
        for later cues in the same document, for later documents in the
        run, and for future runs.

        HOW: Inserts ``{_id, hash, command}``. CREATED and CONFLICT both
        mean the store holds a decision, so the cache is invalidated.
        When the reload fails the decision is patched in locally.

        RULES:
        - CONFLICT keeps whatever command the store already holds
        - StoreError on insert → logged, kept in memory, FAILED returned

        Args:
            fp: Fingerprint of the cue text.
            command: The operator's verdict.

        Returns:
            RecordOutcome.PERSISTED or RecordOutcome.FAILED.
        """
        doc = Decision(fingerprint=fp, command=command).to_doc()
        try:
            outcome = self._database.insert(doc)
        except StoreError as e:
            logger.error(
                "Failed to save '%s' decision for %s; it will be asked again next run: %s",
                command.value, fp, e,
            )
            self._unsaved[fp] = command
            self._decisions[fp] = command
            return RecordOutcome.FAILED

        if outcome is InsertOutcome.CONFLICT:
            logger.info("Decision for %s already stored; keeping the stored one", fp)

        if not self.invalidate() or fp not in self._decisions:
            self._decisions.setdefault(fp, command)
        return RecordOutcome.PERSISTED
