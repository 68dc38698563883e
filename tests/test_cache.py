"""Unit tests for the content hasher and the decision cache.

WHY: Decisions are keyed by fingerprint; a fingerprint that drifts with
whitespace would re-prompt the operator forever. The cache must survive
store outages (undecided, not crashed) and must never report an unsaved
decision as persisted.

HOW: Fingerprint tests are pure. Cache tests run against FakeCouch,
toggling offline / fail_writes to inject store failures.

RULES:
- Cache lookups never hit the network
- record() reloads after every successful or conflicting write
"""

import hashlib

import httpx

from clean_cow.core.cache import DecisionCache, RecordOutcome
from clean_cow.core.hasher import fingerprint
from clean_cow.store.client import StoreClient
from clean_cow.store.models import Command

from tests.conftest import STORE_URL, SUBTITLES_DB


class TestFingerprint:
    def test_is_sha256_of_trimmed_utf8(self):
        expected = hashlib.sha256("visit http://x.com".encode("utf-8")).hexdigest()
        assert fingerprint("  visit http://x.com\n") == expected

    def test_whitespace_around_text_does_not_matter(self):
        assert fingerprint("hello") == fingerprint("\thello  \n")

    def test_inner_text_matters(self):
        assert fingerprint("hello world") != fingerprint("hello  world")

    def test_empty_string_is_stable_key(self):
        assert fingerprint("") == fingerprint("   ")
        assert len(fingerprint("")) == 64

    def test_non_ascii(self):
        assert fingerprint("P@rM!NdeR M@nkÖÖ") == hashlib.sha256(
            "P@rM!NdeR M@nkÖÖ".encode("utf-8")
        ).hexdigest()


class TestReload:
    def test_loads_existing_decisions(self, couch, subtitles_db):
        couch.put_decision("aaa", Command.KEEP)
        couch.put_decision("bbb", Command.DELETE)
        cache = DecisionCache(subtitles_db)
        assert cache.reload() is True
        assert cache.lookup("aaa") is Command.KEEP
        assert cache.lookup("bbb") is Command.DELETE
        assert cache.lookup("ccc") is None
        assert len(cache) == 2

    def test_skips_malformed_documents(self, couch, subtitles_db):
        couch.databases[SUBTITLES_DB]["odd"] = {"_id": "odd", "_rev": "1-a", "command": "maybe"}
        cache = DecisionCache(subtitles_db)
        cache.reload()
        assert cache.lookup("odd") is None

    def test_offline_store_means_undecided(self, couch, subtitles_db):
        couch.put_decision("aaa", Command.DELETE)
        couch.offline = True
        cache = DecisionCache(subtitles_db)
        assert cache.reload() is False
        assert cache.lookup("aaa") is None

    def test_non_json_listing_means_undecided(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>login</html>"))
        with StoreClient(STORE_URL, transport=transport) as client:
            cache = DecisionCache(client.use(SUBTITLES_DB))
            assert cache.reload() is False
            assert len(cache) == 0

    def test_failed_reload_keeps_previous_mapping(self, couch, subtitles_db):
        couch.put_decision("aaa", Command.DELETE)
        cache = DecisionCache(subtitles_db)
        cache.reload()
        couch.offline = True
        assert cache.invalidate() is False
        assert cache.lookup("aaa") is Command.DELETE

    def test_lookup_does_no_io(self, couch, cache):
        before = len(couch.requests)
        cache.lookup("whatever")
        assert len(couch.requests) == before


class TestRecord:
    def test_created_decision_is_persisted_and_visible(self, couch, cache):
        outcome = cache.record("aaa", Command.DELETE)
        assert outcome is RecordOutcome.PERSISTED
        assert couch.databases[SUBTITLES_DB]["aaa"]["command"] == "delete"
        assert couch.databases[SUBTITLES_DB]["aaa"]["hash"] == "aaa"
        assert cache.lookup("aaa") is Command.DELETE

    def test_write_triggers_full_reload(self, couch, cache):
        reloads = cache.reload_count
        cache.record("aaa", Command.KEEP)
        assert cache.reload_count == reloads + 1
        assert couch.count("GET", "/_all_docs") == 2

    def test_reload_picks_up_other_writers(self, couch, cache):
        couch.put_decision("zzz", Command.DELETE)
        cache.record("aaa", Command.KEEP)
        assert cache.lookup("zzz") is Command.DELETE

    def test_conflict_counts_as_persisted(self, couch, cache):
        couch.put_decision("aaa", Command.DELETE)
        assert cache.lookup("aaa") is None
        outcome = cache.record("aaa", Command.DELETE)
        assert outcome is RecordOutcome.PERSISTED
        assert cache.lookup("aaa") is Command.DELETE

    def test_conflict_keeps_stored_command(self, couch, cache):
        couch.put_decision("aaa", Command.KEEP)
        cache.record("aaa", Command.DELETE)
        assert cache.lookup("aaa") is Command.KEEP

    def test_failed_write_is_reported_not_persisted(self, couch, cache):
        couch.fail_writes = True
        outcome = cache.record("aaa", Command.DELETE)
        assert outcome is RecordOutcome.FAILED
        assert "aaa" not in couch.databases[SUBTITLES_DB]

    def test_failed_write_is_remembered_for_the_run(self, couch, cache):
        couch.fail_writes = True
        cache.record("aaa", Command.DELETE)
        assert cache.lookup("aaa") is Command.DELETE
        couch.fail_writes = False
        cache.reload()
        assert cache.lookup("aaa") is Command.DELETE

    def test_failed_reload_after_write_patches_locally(self, couch, cache, monkeypatch):
        def offline_reload():
            return False

        monkeypatch.setattr(cache, "reload", offline_reload)
        assert cache.record("aaa", Command.KEEP) is RecordOutcome.PERSISTED
        assert cache.lookup("aaa") is Command.KEEP
