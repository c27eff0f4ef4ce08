"""Tests for pgmodels.compiler."""

import pytest

from pgmodels.columns import normalize_columns
from pgmodels.compiler import assignments_for, compile_schema, placeholders
from pgmodels.errors import ParameterTypeError
from pgmodels.options import TimestampNames


@pytest.fixture
def columns():
    return normalize_columns(
        {
            "fullname": {"schema": "fullname TEXT NOT NULL"},
            "age": {"schema": "age INT"},
        },
        "id",
    )


class TestCompileSchema:
    """Tests for compile_schema."""

    def test_without_timestamps(self, columns):
        """Test fragments for a plain model."""
        compiled = compile_schema("users", columns, "id")

        assert compiled.select_columns == "id,fullname,age"
        assert compiled.select_query == "SELECT id,fullname,age FROM users"
        assert compiled.update_assignments == "fullname=$1,age=$2"
        assert compiled.insert_columns == "fullname,age"
        assert compiled.insert_placeholders == "$1,$2"
        assert compiled.column_count == 2
        assert compiled.create_table_columns == (
            "id SERIAL NOT NULL PRIMARY KEY,fullname TEXT NOT NULL,age INT"
        )
        assert compiled.create_table_query == (
            "CREATE TABLE IF NOT EXISTS users "
            "(id SERIAL NOT NULL PRIMARY KEY,fullname TEXT NOT NULL,age INT)"
        )

    def test_with_timestamps(self, columns):
        """Test timestamp columns are appended in key order."""
        compiled = compile_schema("users", columns, "id", TimestampNames())

        assert compiled.timestamp_columns == ("created_at", "deleted_at", "updated_at")
        assert compiled.select_columns == "id,fullname,age,created_at,deleted_at,updated_at"
        assert compiled.update_assignments == "fullname=$1,age=$2,updated_at=$3"
        assert compiled.insert_columns == "fullname,age,created_at,deleted_at,updated_at"
        assert compiled.insert_placeholders == "$1,$2,$3,$4,$5"
        assert compiled.create_table_columns.endswith(
            "age INT,created_at TIMESTAMP,deleted_at TIMESTAMP,updated_at TIMESTAMP"
        )

    def test_renamed_timestamps_keep_key_order(self, columns):
        """Test renamed timestamps are ordered by key, not by name."""
        names = TimestampNames(created_at="z_created", updated_at="a_updated", deleted_at="m_deleted")
        compiled = compile_schema("users", columns, "id", names)

        assert compiled.timestamp_columns == ("z_created", "m_deleted", "a_updated")
        assert compiled.update_assignments.endswith("a_updated=$3")

    def test_custom_primary_key(self, columns):
        """Test the primary key name is used in select and DDL."""
        compiled = compile_schema("app_users", columns, "user_id")
        assert compiled.select_columns.startswith("user_id,")
        assert compiled.create_table_columns.startswith("user_id SERIAL NOT NULL PRIMARY KEY")

    def test_rejects_non_mapping(self):
        """Test columns must be a mapping."""
        with pytest.raises(ParameterTypeError):
            compile_schema("users", ["fullname"], "id")


class TestFragments:
    """Tests for placeholder helpers."""

    def test_placeholders(self):
        assert placeholders(3) == "$1,$2,$3"
        assert placeholders(2, start=4) == "$4,$5"
        assert placeholders(0) == ""

    def test_assignments_for(self):
        assert assignments_for(["age"]) == "age=$1"
        assert assignments_for(["a", "b"], start=2) == "a=$2,b=$3"
