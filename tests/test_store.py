# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit Tests for the Registry Store

Tests loading, normalization of legacy/indexed layouts, saving and
corruption handling.
"""

import json

import pytest

from extregistry.core.errors import StoreCorruptError
from extregistry.models.registry_models import Registry
from extregistry.registry.store import RegistryStore, normalize_document


@pytest.fixture
def store(tmp_path):
    return RegistryStore(tmp_path / "packages.json")


class TestLoad:
    """Test suite for RegistryStore.load"""

    def test_missing_document_is_empty_registry(self, store):
        """No document means three empty mappings"""
        registry = store.load()

        assert registry.ext_files == {}
        assert registry.dependencies == {}
        assert registry.system_package_users == {}

    def test_loads_plain_document(self, store):
        """Ordinary mappings load as-is"""
        store.path.write_text(json.dumps({
            "extFiles": {"acme/p": ["p.so"]},
            "dependencies": {"acme/p": []},
            "packages": {"libx": ["acme/p"]},
        }))

        registry = store.load()

        assert registry.ext_files == {"acme/p": ["p.so"]}
        assert registry.dependencies == {"acme/p": []}
        assert registry.system_package_users == {"libx": ["acme/p"]}

    def test_empty_lists_become_mappings(self, store):
        """Empty mappings serialized as [] come back as {}"""
        store.path.write_text(json.dumps({"extFiles": [], "dependencies": [], "packages": []}))

        registry = store.load()

        assert registry.ext_files == {}
        assert registry.dependencies == {}
        assert registry.system_package_users == {}

    def test_legacy_user_objects(self, store):
        """{name: true} user sets become name lists"""
        store.path.write_text(json.dumps({
            "extFiles": {"acme/p": ["p.so"], "acme/q": ["q.so"]},
            "dependencies": {"acme/q": ["acme/p"]},
            "packages": {"libx": {"acme/q": True, "acme/p": True}},
        }))

        registry = store.load()

        assert registry.system_package_users == {"libx": ["acme/p", "acme/q"]}
        assert isinstance(registry.system_package_users["libx"], list)

    def test_index_keyed_lists(self, store):
        """Sparse arrays encoded as {"0": ..., "2": ...} become ordered lists"""
        store.path.write_text(json.dumps({
            "extFiles": {"acme/p": {"2": "b.so", "0": "a.so"}},
            "dependencies": {"acme/p": {"0": "acme/base"}},
            "packages": {},
        }))

        registry = store.load()

        assert registry.ext_files == {"acme/p": ["a.so", "b.so"]}
        assert registry.dependencies == {"acme/p": ["acme/base"]}

    def test_pair_lists_become_mappings(self, store):
        """Lists of [key, value] pairs are materialized into mappings"""
        store.path.write_text(json.dumps({
            "extFiles": [["acme/p", ["p.so"]]],
            "dependencies": [["acme/p", []]],
            "packages": [["libx", ["acme/p"]]],
        }))

        registry = store.load()

        assert registry.ext_files == {"acme/p": ["p.so"]}
        assert registry.system_package_users == {"libx": ["acme/p"]}

    def test_drops_empty_user_sets(self, store):
        """A system package without users is not tracked"""
        store.path.write_text(json.dumps({"extFiles": {}, "dependencies": {}, "packages": {"libx": []}}))

        assert store.load().system_package_users == {}

    def test_missing_fields_default_empty(self, store):
        """Fields absent from the document load as empty mappings"""
        store.path.write_text(json.dumps({"extFiles": {"acme/p": ["p.so"]}}))

        registry = store.load()

        assert registry.dependencies == {}
        assert registry.system_package_users == {}


class TestCorruption:
    """Test suite for StoreCorruptError"""

    @pytest.mark.parametrize("content", [
        "{not json",
        "",
        "42",
        '{"extFiles": "p.so"}',
        '{"extFiles": [1, 2]}',
        '{"packages": {"libx": 7}}',
        '{"extFiles": {"acme/p": [1]}}',
    ])
    def test_unparseable_document_raises(self, store, content):
        """Unreadable or wrongly-shaped documents are rejected, not guessed"""
        store.path.write_text(content)

        with pytest.raises(StoreCorruptError) as exc_info:
            store.load()

        assert exc_info.value.path == str(store.path)

    def test_corrupt_document_left_untouched(self, store):
        """Loading never rewrites the document"""
        store.path.write_text("{not json")

        with pytest.raises(StoreCorruptError):
            store.load()

        assert store.path.read_text() == "{not json"


class TestSave:
    """Test suite for RegistryStore.save"""

    def test_round_trip(self, store):
        """Saved registry loads back equal"""
        registry = Registry(
            ext_files={"acme/q": ["q.so"], "acme/p": ["p2.so", "p1.so"]},
            dependencies={"acme/q": ["acme/p"], "acme/p": []},
            system_package_users={"libx": ["acme/q", "acme/p"]},
        )

        store.save(registry)
        loaded = store.load()

        assert loaded == registry
        assert loaded.ext_files["acme/p"] == ["p2.so", "p1.so"]

    def test_empty_registry_keeps_mappings(self, store):
        """Empty mappings are written as {} not []"""
        store.save(Registry())

        assert json.loads(store.path.read_text()) == {"dependencies": {}, "extFiles": {}, "packages": {}}

    def test_stable_output(self, store, tmp_path):
        """Same state, byte-identical document regardless of insertion order"""
        first = Registry(system_package_users={"b": ["y", "x"], "a": ["z"]})
        second = Registry(system_package_users={"a": ["z"], "b": ["x", "y"]})
        other = RegistryStore(tmp_path / "other.json")

        store.save(first)
        other.save(second)

        assert store.path.read_text() == other.path.read_text()
        assert store.path.read_text().endswith("\n")

    def test_no_temp_files_left(self, store, tmp_path):
        """Atomic write cleans up after itself"""
        store.save(Registry(ext_files={"acme/p": ["p.so"]}))

        assert sorted(p.name for p in tmp_path.iterdir()) == ["packages.json"]

    def test_creates_parent_directory(self, tmp_path):
        """Saving into a missing directory creates it"""
        store = RegistryStore(tmp_path / "nested" / "ext" / "packages.json")
        store.save(Registry())

        assert store.exists()


class TestNormalizeDocument:
    """Test suite for normalize_document"""

    def test_empty_list_root(self):
        """An empty list document is an empty registry"""
        assert normalize_document([]) == {"extFiles": {}, "dependencies": {}, "packages": {}}

    def test_rejects_non_object_root(self):
        with pytest.raises(ValueError):
            normalize_document(["a"])
