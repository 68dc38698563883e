"""Decision store package — HTTP access to the shared CouchDB databases.

WHY: Keep/delete decisions and stopword patterns are shared across runs
and machines. This package is the only place that speaks HTTP.

HOW: StoreClient owns an httpx connection; Database exposes list/get/insert
for one named database. Documents are parsed into the dataclasses in
models.py.

RULES:
- All store HTTP calls go through StoreClient (no direct httpx usage elsewhere)
- Conflicting inserts are an outcome, not an exception
"""

from clean_cow.store.client import Database, StoreClient, StoreError
from clean_cow.store.models import Command, Decision, InsertOutcome, StoreRow

__all__ = [
    "Command",
    "Database",
    "Decision",
    "InsertOutcome",
    "StoreClient",
    "StoreError",
    "StoreRow",
]
