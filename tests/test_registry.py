"""Tests for StoreRegistry."""

import logging

import pytest

from valstore import ConfigurationError, Store, StoreRegistry


class TestStoreRegistry:
    def test_create_and_get(self):
        reg = StoreRegistry()
        store = reg.create("test", {"foo": "bar"})
        assert reg.get("test") is store
        assert store.get("foo") == "bar"

    def test_unknown_name(self):
        reg = StoreRegistry()
        with pytest.raises(ConfigurationError, match='"missing" not found'):
            reg.get("missing")

    def test_create_requires_initial_state(self):
        reg = StoreRegistry()
        with pytest.raises(ConfigurationError):
            reg.create("test", None)
        assert "test" not in reg

    def test_register_replaces(self, caplog):
        reg = StoreRegistry()
        first = reg.create("test", {})
        second = Store({"n": 2})
        with caplog.at_level(logging.INFO, logger="valstore.registry"):
            reg.register("test", second)
        assert reg.get("test") is second
        assert reg.get("test") is not first
        assert "Replacing store 'test'" in caplog.text

    def test_remove(self):
        reg = StoreRegistry()
        store = reg.create("test", {})
        assert reg.remove("test") is store
        assert reg.remove("test") is None
        assert len(reg) == 0

    def test_registries_are_independent(self):
        a, b = StoreRegistry(), StoreRegistry()
        a.create("shared", {})
        assert "shared" in a
        assert "shared" not in b

    def test_names(self):
        reg = StoreRegistry()
        reg.create("one", {})
        reg.create("two", {})
        assert reg.names() == ["one", "two"]
        assert list(reg) == ["one", "two"]
