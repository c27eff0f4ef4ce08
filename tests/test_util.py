"""Tests for pgmodels.util."""

import re

import pytest

from pgmodels.errors import ParameterTypeError
from pgmodels.util import get_timestamp, verify_param_type


class TestGetTimestamp:
    def test_format(self):
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", get_timestamp())


class TestVerifyParamType:
    """Tests for verify_param_type."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("users", "string"),
            (3, "number"),
            (2.5, "number"),
            ({"a": 1}, "object"),
            ([1], "array"),
            ((1,), "array"),
            (len, "function"),
        ],
    )
    def test_accepts(self, value, expected):
        verify_param_type(value, expected, "value", "method")

    def test_bool_is_not_a_number(self):
        with pytest.raises(ParameterTypeError):
            verify_param_type(True, "number", "id", "find_by_id")

    def test_error_details(self):
        """Test the error names the method and parameter."""
        with pytest.raises(ParameterTypeError, match="id must be of type number in find_by_id") as exc_info:
            verify_param_type("1", "number", "id", "find_by_id")
        error = exc_info.value
        assert error.method_name == "find_by_id"
        assert error.param_name == "id"
        assert error.thrown_at == "find_by_id"
        assert isinstance(error, TypeError)

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            verify_param_type(1, "integer", "id", "find_by_id")
