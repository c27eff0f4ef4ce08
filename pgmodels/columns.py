"""
Column descriptors and the validation pipeline.

A model's columns are declared as a mapping from column name to a descriptor::

    {
        "fullname": {
            "schema": "fullname TEXT NOT NULL",
            "validations": [non_empty_string],
        },
        "about": {"schema": "about TEXT"},
    }

Each descriptor is normalized into a :class:`ColumnSpec`. Validators are called
as ``validator(value, column_name, values)`` and reject input by raising.
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from pgmodels.errors import ConfigurationError, ParameterTypeError

logger = logging.getLogger("pgmodels.columns")

Validator = Callable[[Any, str, Mapping], Any]


class ColumnSpec(BaseModel):
    """A declared column: its name, raw DDL fragment and validators."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    ddl: str = Field(alias="schema")
    validations: List[Validator] = Field(default_factory=list)

    @field_validator("ddl")
    @classmethod
    def ddl_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("schema must be a non-empty DDL fragment")
        return value

    @field_validator("validations", mode="before")
    @classmethod
    def default_validations(cls, value: Any) -> Any:
        return [] if value is None else value


ColumnsInput = Union[Mapping[str, Any], Sequence[ColumnSpec]]


def normalize_columns(columns: ColumnsInput, primary_key_name: str) -> Dict[str, ColumnSpec]:
    """
    Turn a column declaration into an ordered ``name -> ColumnSpec`` dict.

    Accepts a mapping of name to descriptor dict (or :class:`ColumnSpec`), or a
    sequence of :class:`ColumnSpec`. Raises :exc:`ParameterTypeError` for any
    other shape and :exc:`ConfigurationError` for malformed descriptors.
    """
    if isinstance(columns, Mapping):
        items = list(columns.items())
    elif isinstance(columns, (list, tuple)) and all(isinstance(c, ColumnSpec) for c in columns):
        items = [(c.name, c) for c in columns]
    else:
        raise ParameterTypeError("define", "columns", "object")

    normalized: Dict[str, ColumnSpec] = {}
    for name, descriptor in items:
        if not isinstance(name, str):
            raise ParameterTypeError("define", "columns", "object")
        if name == primary_key_name:
            raise ConfigurationError(
                f"column {name} clashes with the implicit primary key", "define"
            )
        try:
            if isinstance(descriptor, ColumnSpec):
                spec = descriptor if descriptor.name == name else descriptor.model_copy(update={"name": name})
            elif isinstance(descriptor, Mapping):
                spec = ColumnSpec.model_validate({**descriptor, "name": name})
            else:
                raise ConfigurationError(f"column {name} must be described by a mapping", "define")
        except PydanticValidationError as error:
            raise ConfigurationError(f"Invalid definition for column {name}: {error}", "define") from error
        normalized[name] = spec
    return normalized


def validate(
    columns: Mapping[str, ColumnSpec], values: Mapping[str, Any], names: Optional[Sequence[str]] = None
) -> None:
    """
    Run every validator of every column against ``values``.

    When ``names`` is given only those columns are validated.

    Columns are visited in declaration order and validators in registration
    order. The first validator that raises aborts the run; its exception is
    not caught here.
    """
    for name, spec in columns.items():
        if names is not None and name not in names:
            continue
        for validator in spec.validations:
            validator(values.get(name), name, values)


def arrange_values(columns: Mapping[str, ColumnSpec], values: Mapping[str, Any]) -> List[Any]:
    """Return ``values`` as a list in column order, None for missing keys."""
    return [values.get(name) for name in columns]
