"""Idempotent creation of foreign-key constraints."""

import logging

from pgmodels.db_util import QueryExecutor
from pgmodels.errors import ConstraintError

logger = logging.getLogger("pgmodels.foreign_keys")

COLUMN_EXISTS_QUERY = (
    "SELECT EXISTS (SELECT 1 FROM information_schema.columns "
    "WHERE table_schema=$1 AND table_name=$2 AND column_name=$3)"
)

CONSTRAINT_EXISTS_QUERY = (
    "SELECT EXISTS (SELECT 1 FROM information_schema.table_constraints "
    "WHERE table_schema=$1 AND table_name=$2 AND constraint_name=$3)"
)


def constraint_name_for(table_name: str, column_name: str) -> str:
    return f"{table_name}_{column_name}_fkey"


def _exists(rows) -> bool:
    return bool(rows) and bool(rows[0].get("exists"))


def add_foreign_key(
    executor: QueryExecutor,
    table_name: str,
    column_name: str,
    parent_table_name: str,
    parent_key_name: str = "id",
    table_schema: str = "public",
    error_logging: bool = False,
) -> bool:
    """
    Reference ``parent_table_name(parent_key_name)`` from ``table_name(column_name)``.

    The column must already exist. Returns True when the constraint was added
    and False when a constraint with the same name was already present.

    Raises:
        ConstraintError: if the column is missing or any statement fails.
    """
    constraint_name = constraint_name_for(table_name, column_name)
    try:
        rows = executor.execute(COLUMN_EXISTS_QUERY, [table_schema, table_name, column_name])
        if not _exists(rows):
            raise ConstraintError(
                f"column {column_name} does not exist in {table_name}", constraint_name
            )

        rows = executor.execute(CONSTRAINT_EXISTS_QUERY, [table_schema, table_name, constraint_name])
        if _exists(rows):
            logger.debug("Constraint %s already exists", constraint_name)
            return False

        executor.execute(
            f"ALTER TABLE {table_name} ADD CONSTRAINT {constraint_name} "
            f'FOREIGN KEY ({column_name}) REFERENCES "{parent_table_name}" ({parent_key_name})'
        )
        logger.info("Added foreign key %s", constraint_name)
        return True
    except Exception as error:
        if error_logging:
            logger.error("Error adding foreign key %s", constraint_name, exc_info=True)
        raise ConstraintError(
            f"Unable to create foreign key {constraint_name}: {error}", constraint_name
        ) from error
