"""Tests for pgmodels.registry."""

import threading
from types import SimpleNamespace

import pytest

from pgmodels.errors import ConfigurationError
from pgmodels.registry import ModelRegistry


class TestModelRegistry:
    """Tests for ModelRegistry."""

    def test_register_and_lookup(self):
        registry = ModelRegistry()
        users = SimpleNamespace(table_name="app_users")
        registry.register("users", users)

        assert registry.get("users") is users
        assert registry["users"] is users
        assert "users" in registry
        assert len(registry) == 1
        assert registry.table_name_of("users") == "app_users"

    def test_reregister_overwrites(self):
        """Test registering a name twice keeps the latest model."""
        registry = ModelRegistry()
        first, second = SimpleNamespace(table_name="a"), SimpleNamespace(table_name="b")
        registry.register("users", first)
        registry.register("users", second)
        assert registry["users"] is second
        assert registry.names() == ["users"]

    def test_unknown_model(self):
        registry = ModelRegistry()
        assert registry.get("books") is None
        with pytest.raises(KeyError):
            registry["books"]
        with pytest.raises(ConfigurationError):
            registry.table_name_of("books")

    def test_unregister_and_clear(self):
        registry = ModelRegistry()
        registry.register("a", SimpleNamespace(table_name="a"))
        registry.register("b", SimpleNamespace(table_name="b"))
        registry.unregister("a")
        assert registry.names() == ["b"]
        registry.clear()
        assert len(registry) == 0

    def test_concurrent_registration(self):
        """Test models registered from many threads are all kept."""
        registry = ModelRegistry()
        threads = [
            threading.Thread(target=registry.register, args=(f"m{i}", SimpleNamespace(table_name=f"t{i}")))
            for i in range(50)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(registry) == 50
