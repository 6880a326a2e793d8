"""Tests for reconcile/baseline.py — baseline snapshot persistence.

Covers:
- save()/load() round trip and file layout
- Missing and corrupt snapshots
- document_hash() stability
"""

import json
import logging

from spec_sync.reconcile.baseline import BaselineStore, document_hash


class TestBaselineStore:
    def test_missing_returns_none(self, tmp_path):
        assert BaselineStore(tmp_path).load("api") is None

    def test_save_then_load(self, tmp_path, base_spec):
        store = BaselineStore(tmp_path / "state")

        path = store.save("api", base_spec)

        assert path == tmp_path / "state" / "api.baseline.json"
        assert store.load("api") == base_spec

    def test_file_layout(self, tmp_path, base_spec):
        store = BaselineStore(tmp_path)

        data = json.loads(store.save("api", base_spec).read_text())

        assert data["version"] == 1
        assert data["hash"] == document_hash(base_spec)
        assert data["document"] == base_spec
        assert "saved_at" in data

    def test_save_overwrites(self, tmp_path):
        store = BaselineStore(tmp_path)
        store.save("api", {"v": 1})
        store.save("api", {"v": 2})

        assert store.load("api") == {"v": 2}
        assert [p.name for p in tmp_path.iterdir()] == ["api.baseline.json"]

    def test_corrupt_file_is_a_miss(self, tmp_path, caplog):
        store = BaselineStore(tmp_path)
        store.path_for("api").write_text("{not json")

        with caplog.at_level(logging.WARNING):
            assert store.load("api") is None
        assert "Could not load baseline" in caplog.text

    def test_unexpected_layout_is_a_miss(self, tmp_path):
        store = BaselineStore(tmp_path)
        store.path_for("api").write_text('{"paths": {}}')

        assert store.load("api") is None

    def test_beside_spec(self, tmp_path):
        store = BaselineStore.beside(tmp_path / "api.yaml", ".sync-baselines")

        assert store.path_for("api") == (
            tmp_path / ".sync-baselines" / "api.baseline.json"
        )


class TestDocumentHash:
    def test_equal_documents_hash_equal(self, base_spec):
        assert document_hash(base_spec) == document_hash(json.loads(json.dumps(base_spec)))

    def test_key_order_matters(self):
        assert document_hash({"a": 1, "b": 2}) != document_hash({"b": 2, "a": 1})

    def test_hex_digest(self):
        digest = document_hash({})

        assert len(digest) == 64
        int(digest, 16)
