"""Core cue model, content hashing, decision cache, stopwords, and classifier.

WHY: The cue classifier is the only place where operator decisions are
made and reused. Keeping its pieces together (the Cue IR, the
fingerprint, the cache, the stopword registry) makes the dependency
direction obvious: formats and the CLI depend on core, never the reverse.

HOW: Re-exports the types most callers need.
"""

from clean_cow.core.cache import DecisionCache, RecordOutcome
from clean_cow.core.hasher import fingerprint
from clean_cow.core.ir import Cue
from clean_cow.core.stopwords import StopwordRegistry

__all__ = ["Cue", "DecisionCache", "RecordOutcome", "StopwordRegistry", "fingerprint"]
