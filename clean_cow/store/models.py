"""Document shapes exchanged with the decision store.

WHY: CouchDB returns loosely structured JSON (``_all_docs`` rows, raw
documents). Typed dataclasses make the decision record explicit and keep
field-name typos out of the classifier.

HOW: Each dataclass has a from_dict() factory for store responses and,
where it is written back, a to_doc() for inserts.

RULES:
- A decision document's ``_id`` equals its ``hash`` (the fingerprint)
- command is one of Command's values; anything else is ignored on load
- StoreRow.doc is None unless the list call asked for include_docs
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


class Command(str, enum.Enum):
    """Operator verdict for a fingerprint.

    Inherits from str so values serialize straight into store documents.
    """

    KEEP = "keep"
    DELETE = "delete"


class InsertOutcome(str, enum.Enum):
    """Result of an insert-or-ignore-if-exists write.

    RULES:
    - created: the store accepted a new document
    - conflict: a document with that id already existed; treated as satisfied
    """

    CREATED = "created"
    CONFLICT = "conflict"


@dataclass
class StoreRow:
    """One row from ``GET /{db}/_all_docs``."""

    id: str
    doc: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: dict) -> StoreRow:
        return cls(id=data["id"], doc=data.get("doc"))


@dataclass
class Decision:
    """A persisted keep/delete verdict for one fingerprint.

    WHY: The store holds one decision per cue-text fingerprint, created the
    first time an operator is asked about that text and never updated.

    RULES:
    - fingerprint doubles as the document ``_id``
    - from_dict() returns None for documents without a valid command
    """

    fingerprint: str
    command: Command

    @classmethod
    def from_dict(cls, data: dict) -> Optional[Decision]:
        key = data.get("hash") or data.get("_id")
        try:
            command = Command(data.get("command"))
        except ValueError:
            return None
        if not key:
            return None
        return cls(fingerprint=key, command=command)

    def to_doc(self) -> Dict[str, str]:
        return {
            "_id": self.fingerprint,
            "hash": self.fingerprint,
            "command": self.command.value,
        }
