"""Unit tests for the stopword registry.

WHY: Stopwords decide which cues reach the operator. A matcher that is
case-sensitive, or that crashes on an operator-entered pattern, would
either miss adverts or stop the run.

HOW: Registry behaviour is tested directly; loading and seeding go through
FakeCouch.
"""

import httpx

from clean_cow.core.stopwords import DEFAULT_STOPWORDS, StopwordRegistry, seed_stopwords
from clean_cow.store.client import StoreClient

from tests.conftest import STOP_WORDS_DB, STORE_URL


class TestMatch:
    def test_case_insensitive(self):
        registry = StopwordRegistry(["uploaded by"])
        assert registry.match("UPLOADED BY someone") == "uploaded by"

    def test_no_match(self):
        registry = StopwordRegistry(["http"])
        assert registry.match("just dialogue") is None

    def test_first_match_wins(self):
        registry = StopwordRegistry(["subtitle", "http"])
        assert registry.match("subtitles at http://x") == "subtitle"

    def test_regex_patterns(self):
        registry = StopwordRegistry([r"@gmail\.com"])
        assert registry.match("mail me at foo@GMAIL.com") == r"@gmail\.com"
        assert registry.match("foo@gmailxcom") is None

    def test_invalid_regex_matches_literally(self):
        registry = StopwordRegistry(["(unclosed"])
        assert registry.match("text (unclosed bracket") == "(unclosed"
        assert registry.match("unclosed") is None

    def test_duplicates_are_dropped_in_order(self):
        registry = StopwordRegistry(["b", "a", "b"])
        assert registry.patterns == ["b", "a"]
        assert len(registry) == 2

    def test_empty_registry_matches_nothing(self):
        assert StopwordRegistry([]).match("http://anything") is None

    def test_defaults_flag_known_adverts(self):
        registry = StopwordRegistry(DEFAULT_STOPWORDS)
        assert registry.match("Downloaded from 4kvod.tv") is not None
        assert registry.match("Synced by explosiveskull") is not None
        assert registry.match("Where are you going?") is None


class TestLoad:
    def test_loads_ids_from_store(self, couch, stop_words_db):
        couch.put_stopword("http")
        couch.put_stopword("uploaded by")
        registry = StopwordRegistry.load(stop_words_db)
        assert sorted(registry.patterns) == ["http", "uploaded by"]

    def test_offline_store_falls_back_to_defaults(self, couch, stop_words_db):
        couch.offline = True
        registry = StopwordRegistry.load(stop_words_db)
        assert registry.patterns == DEFAULT_STOPWORDS

    def test_non_json_listing_falls_back_to_defaults(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>login</html>"))
        with StoreClient(STORE_URL, transport=transport) as client:
            registry = StopwordRegistry.load(client.use(STOP_WORDS_DB))
        assert registry.patterns == DEFAULT_STOPWORDS


class TestSeed:
    def test_seed_inserts_defaults(self, couch, stop_words_db):
        created = seed_stopwords(stop_words_db)
        assert created == len(DEFAULT_STOPWORDS)
        assert set(couch.databases[STOP_WORDS_DB]) == set(DEFAULT_STOPWORDS)

    def test_seed_is_idempotent(self, couch, stop_words_db):
        seed_stopwords(stop_words_db, ["http"])
        assert seed_stopwords(stop_words_db, ["http", "copyright"]) == 1
        assert set(couch.databases[STOP_WORDS_DB]) == {"http", "copyright"}
