"""Small helpers shared by the model layer."""

import datetime
from collections.abc import Mapping
from typing import Any

from pgmodels.errors import ParameterTypeError


def get_timestamp() -> str:
    """Return the current UTC time as ``YYYY-MM-DD HH:MM:SS``."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.strftime("%Y-%m-%d %H:%M:%S")


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


_CHECKS = {
    "string": lambda v: isinstance(v, str),
    "number": is_number,
    "object": lambda v: isinstance(v, Mapping),
    "array": lambda v: isinstance(v, (list, tuple)),
    "function": callable,
}


def verify_param_type(value: Any, expected: str, param_name: str, method_name: str) -> None:
    """
    Raise :exc:`ParameterTypeError` unless ``value`` has the ``expected`` shape.

    ``expected`` is one of ``string``, ``number``, ``object``, ``array`` or ``function``.
    """
    check = _CHECKS.get(expected)
    if check is None:
        raise ValueError(f"Unknown parameter type: {expected}")
    if not check(value):
        raise ParameterTypeError(method_name, param_name, expected)
