"""Unit tests for auth/store.py -- CredentialStore.

Covers:
- load_all() degrades to [] on missing/corrupt files and non-list users values
- try_insert_unique() assigns count + 1 ids and refuses duplicates
- append() surfaces StoreError instead of clobbering a corrupt file
- Concurrent registrations of one username produce exactly one record
"""

import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from auth.accounts import register_user
from auth.models import UserRecord
from auth.store import CredentialStore
from core.document import JsonDocument
from core.errors import ConflictError, StoreError


def _write(path, data):
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return CredentialStore(JsonDocument(path))


class TestLoadAll:
    def test_missing_file_is_empty(self, tmp_path):
        assert CredentialStore(JsonDocument(tmp_path / "db.json")).load_all() == []

    def test_corrupt_file_is_empty(self, tmp_path):
        assert _write(tmp_path / "db.json", "{oops").load_all() == []

    def test_non_list_users_ignored(self, tmp_path):
        store = _write(tmp_path / "db.json", {"users": {"id": 1}})
        assert store.load_all() == []

    def test_malformed_entries_skipped(self, tmp_path):
        store = _write(
            tmp_path / "db.json",
            {"users": [{"id": 1, "username": "alice", "password": "h"}, {"username": "no-id"}, "junk"]},
        )
        assert store.load_all() == [UserRecord(id=1, username="alice", password_hash="h")]

    def test_other_collections_untouched(self, tmp_path):
        store = _write(tmp_path / "db.json", {"posts": [{"id": 9}]})
        store.try_insert_unique("alice", "h")
        data = json.loads((tmp_path / "db.json").read_text())
        assert data["posts"] == [{"id": 9}]
        assert data["users"] == [{"id": 1, "username": "alice", "password": "h"}]


class TestInsert:
    def test_ids_are_count_plus_one(self, credentials):
        assert credentials.try_insert_unique("alice", "h1").id == 1
        assert credentials.try_insert_unique("bob", "h2").id == 2
        assert [u.username for u in credentials.load_all()] == ["alice", "bob"]

    def test_duplicate_returns_none(self, credentials):
        assert credentials.try_insert_unique("alice", "h1") is not None
        assert credentials.try_insert_unique("alice", "h2") is None
        assert len(credentials.load_all()) == 1

    def test_username_match_is_case_sensitive(self, credentials):
        credentials.try_insert_unique("alice", "h1")
        assert credentials.try_insert_unique("Alice", "h2") is not None
        assert credentials.get_by_username("ALICE") is None

    def test_non_list_users_replaced_on_write(self, tmp_path):
        store = _write(tmp_path / "db.json", {"users": "nope"})
        record = store.try_insert_unique("alice", "h")
        assert record.id == 1
        assert json.loads((tmp_path / "db.json").read_text())["users"][0]["username"] == "alice"

    def test_append_raises_on_corrupt_file(self, tmp_path):
        store = _write(tmp_path / "db.json", "{oops")
        with pytest.raises(StoreError):
            store.append(UserRecord(id=1, username="alice", password_hash="h"))
        assert (tmp_path / "db.json").read_text() == "{oops"

    def test_insert_raises_on_corrupt_file(self, tmp_path):
        store = _write(tmp_path / "db.json", "{oops")
        with pytest.raises(StoreError):
            store.try_insert_unique("alice", "h")

    def test_append_is_unconditional(self, credentials):
        credentials.append(UserRecord(id=1, username="seed", password_hash="h"))
        assert credentials.get_by_username("seed").id == 1


class TestConcurrentRegistration:
    def test_same_username_registers_exactly_once(self, credentials, hasher):
        def attempt(_):
            try:
                register_user(credentials, hasher, "alice", "pw1")
                return True
            except ConflictError:
                return False

        with ThreadPoolExecutor(max_workers=16) as pool:
            outcomes = list(pool.map(attempt, range(32)))

        assert outcomes.count(True) == 1
        assert outcomes.count(False) == 31
        assert [u.username for u in credentials.load_all()] == ["alice"]

    def test_distinct_usernames_get_distinct_ids(self, credentials):
        with ThreadPoolExecutor(max_workers=16) as pool:
            records = list(pool.map(lambda i: credentials.try_insert_unique(f"user{i}", "h"), range(40)))

        assert sorted(r.id for r in records) == list(range(1, 41))
        assert len(credentials.load_all()) == 40

    def test_separate_store_objects_share_the_lock(self, document):
        stores = [CredentialStore(JsonDocument(document.path)) for _ in range(8)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda s: s.try_insert_unique("alice", "h"), stores))
        assert sum(r is not None for r in results) == 1
