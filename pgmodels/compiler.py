"""
Compile a column declaration into reusable SQL fragments.

Everything here is a pure function of the model configuration; no query is
executed. Positional placeholders (``$1``, ``$2``, ...) follow declaration
order. Timestamp columns always come after the declared columns, in the order
of their keys: ``created_at``, ``deleted_at``, ``updated_at``.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from pgmodels.columns import ColumnSpec
from pgmodels.errors import ParameterTypeError
from pgmodels.options import TimestampNames


@dataclass(frozen=True)
class CompiledSchema:
    """SQL fragments derived from a model's columns."""

    table_name: str
    primary_key_name: str
    column_names: Tuple[str, ...]
    timestamp_columns: Tuple[str, ...]
    select_columns: str
    select_query: str
    update_assignments: str
    insert_columns: str
    insert_placeholders: str
    create_table_columns: str

    @property
    def column_count(self) -> int:
        return len(self.column_names)

    @property
    def create_table_query(self) -> str:
        return f"CREATE TABLE IF NOT EXISTS {self.table_name} ({self.create_table_columns})"


def placeholders(count: int, start: int = 1) -> str:
    """Return ``$start,$start+1,...`` for ``count`` parameters."""
    return ",".join(f"${index}" for index in range(start, start + count))


def assignments_for(names: Iterable[str], start: int = 1) -> str:
    """Return ``a=$start,b=$start+1,...`` for the given column names."""
    return ",".join(f"{name}=${index}" for index, name in enumerate(names, start))


def compile_schema(
    table_name: str,
    columns: Mapping,
    primary_key_name: str,
    timestamps: Optional[TimestampNames] = None,
) -> CompiledSchema:
    """
    Derive select, insert, update and CREATE TABLE fragments for ``columns``.

    ``columns`` is the ordered ``name -> ColumnSpec`` mapping produced by
    :func:`pgmodels.columns.normalize_columns`; ``timestamps`` is None when the
    model has timestamps disabled.
    """
    if not isinstance(columns, Mapping):
        raise ParameterTypeError("define", "columns", "object")

    names: List[str] = list(columns.keys())
    specs: List[ColumnSpec] = list(columns.values())
    count = len(names)
    timestamp_columns = tuple(timestamps.ordered()) if timestamps else ()

    select_columns = ",".join([primary_key_name, *names, *timestamp_columns])

    update_assignments = assignments_for(names)
    if timestamps:
        updated = f"{timestamps.updated_at}=${count + 1}"
        update_assignments = f"{update_assignments},{updated}" if update_assignments else updated

    insert_columns = ",".join([*names, *timestamp_columns])
    insert_placeholders = placeholders(count + len(timestamp_columns))

    create_table_columns = ",".join(
        [
            f"{primary_key_name} SERIAL NOT NULL PRIMARY KEY",
            *(spec.ddl for spec in specs),
            *(f"{column} TIMESTAMP" for column in timestamp_columns),
        ]
    )

    return CompiledSchema(
        table_name=table_name,
        primary_key_name=primary_key_name,
        column_names=tuple(names),
        timestamp_columns=timestamp_columns,
        select_columns=select_columns,
        select_query=f"SELECT {select_columns} FROM {table_name}",
        update_assignments=update_assignments,
        insert_columns=insert_columns,
        insert_placeholders=insert_placeholders,
        create_table_columns=create_table_columns,
    )
