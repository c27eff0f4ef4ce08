"""Tests for pgmodels.options."""

import pytest

from pgmodels.errors import ConfigurationError
from pgmodels.options import GlobalOptions, ModelOptions, TimestampNames, resolve_options


class TestResolveOptions:
    """Tests for option layering."""

    def test_defaults(self):
        """Test built-in defaults."""
        options = resolve_options()
        assert options == ModelOptions()
        assert options.table_schema == "public"
        assert options.primary_key_name == "id"
        assert options.timestamp_names is None

    def test_model_overrides_global(self):
        """Test per-model options win over global options, which win over defaults."""
        options = resolve_options(
            GlobalOptions(table_prefix="app_", paranoid=True),
            {"paranoid": False, "table_name": "people"},
        )
        assert options.table_prefix == "app_"
        assert options.paranoid is False
        assert options.table_name == "people"

    def test_unset_model_fields_keep_global(self):
        """Test only explicitly set per-model fields override."""
        options = resolve_options(
            GlobalOptions(primary_key_name="pk"), ModelOptions(table_name="books")
        )
        assert options.primary_key_name == "pk"

    def test_timestamps_true(self):
        """Test timestamps=True uses the default names."""
        options = resolve_options(None, {"timestamps": True})
        assert options.timestamp_names == TimestampNames()

    def test_timestamps_partial_rename(self):
        """Test a timestamps mapping renames only what it names and enables timestamps."""
        options = resolve_options(None, {"timestamps": {"deleted_at": "removed_on"}})
        names = options.timestamp_names
        assert names.created_at == "created_at"
        assert names.updated_at == "updated_at"
        assert names.deleted_at == "removed_on"

    def test_timestamps_renames_are_layered(self):
        """Test model renames merge onto global renames."""
        options = resolve_options(
            {"timestamps": {"created_at": "born"}}, {"timestamps": {"updated_at": "touched"}}
        )
        assert options.timestamp_names.ordered() == ["born", "deleted_at", "touched"]

    def test_timestamps_true_keeps_global_renames(self):
        options = resolve_options({"timestamps": {"created_at": "born"}}, {"timestamps": True})
        assert options.timestamp_names.created_at == "born"

    def test_invalid_option(self):
        """Test unknown or malformed options raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            resolve_options(None, {"pkName": "id"})
        with pytest.raises(ConfigurationError):
            resolve_options(None, {"timestamps": {"createdAt": "c"}})
