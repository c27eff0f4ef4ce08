"""
Create a model's table and add columns that are missing from it.

Reconciliation is additive only: columns are never dropped or retyped.
"""

import logging
from collections.abc import Mapping
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from pgmodels.columns import ColumnSpec
from pgmodels.compiler import CompiledSchema
from pgmodels.db_util import QueryExecutor
from pgmodels.errors import SchemaOperationError
from pgmodels.options import TimestampNames

logger = logging.getLogger("pgmodels.reconciler")

LIVE_COLUMNS_QUERY = (
    "SELECT column_name FROM information_schema.columns "
    "WHERE table_schema=$1 AND table_name=$2"
)


class ReconcileResult(BaseModel):
    """Outcome of :func:`reconcile` for one table."""

    table_name: str
    missing_columns: List[str] = Field(default_factory=list)
    missing_timestamps: List[str] = Field(default_factory=list)
    altered: bool = False


def build_alter_query(
    table_name: str,
    columns: Mapping[str, ColumnSpec],
    missing_columns: List[str],
    missing_timestamps: List[str],
) -> Optional[str]:
    """Return one ALTER TABLE adding every missing column, or None."""
    clauses = [f"ADD COLUMN {columns[name].ddl}" for name in missing_columns]
    clauses += [f"ADD COLUMN IF NOT EXISTS {name} TIMESTAMP" for name in missing_timestamps]
    if not clauses:
        return None
    return f"ALTER TABLE {table_name} {','.join(clauses)}"


def reconcile(
    executor: QueryExecutor,
    compiled: CompiledSchema,
    columns: Mapping[str, ColumnSpec],
    table_schema: str = "public",
    timestamps: Optional[TimestampNames] = None,
    alter_on_define: bool = False,
    error_logging: bool = False,
    on_created: Optional[Callable[[], None]] = None,
) -> ReconcileResult:
    """
    Create ``compiled.table_name`` if needed, then compare it to ``columns``.

    When ``alter_on_define`` is set, declared columns and enabled timestamp
    columns absent from the live table are added in a single ALTER TABLE.
    ``on_created`` is called once the CREATE TABLE statement succeeded.

    Raises:
        SchemaOperationError: if any statement fails.
    """
    table_name = compiled.table_name
    try:
        executor.execute(compiled.create_table_query)
        if on_created is not None:
            on_created()

        rows = executor.execute(LIVE_COLUMNS_QUERY, [table_schema, table_name])
        live = {row["column_name"] for row in rows}

        result = ReconcileResult(
            table_name=table_name,
            missing_columns=[name for name in columns if name not in live],
            missing_timestamps=[
                name for name in (timestamps.ordered() if timestamps else []) if name not in live
            ],
        )

        if alter_on_define:
            alter_query = build_alter_query(
                table_name, columns, result.missing_columns, result.missing_timestamps
            )
            if alter_query:
                executor.execute(alter_query)
                result.altered = True
                logger.info(
                    "Added columns %s to %s",
                    result.missing_columns + result.missing_timestamps,
                    table_name,
                )
        elif result.missing_columns or result.missing_timestamps:
            logger.warning(
                "Table %s is missing columns %s and alter_on_define is disabled",
                table_name,
                result.missing_columns + result.missing_timestamps,
            )
        return result
    except Exception as error:
        if error_logging:
            logger.error("Error defining model for %s", table_name, exc_info=True)
        raise SchemaOperationError(
            f"Unable to define model for {table_name}: {error}", table_name, "define"
        ) from error
