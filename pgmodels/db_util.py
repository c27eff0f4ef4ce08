"""
PostgreSQL connection and query execution utilities.

The model layer only depends on the :class:`QueryExecutor` contract: a SQL
string with ``$1, $2, ...`` positional placeholders plus a parameter list in,
a list of row dicts out. :class:`DbUtil` implements it on top of psycopg2.
Connection parameters can be passed explicitly or read from environment
variables (e.g. ``DATABASE_HOST``, ``DATABASE_NAME``).
"""

import logging
import os
import re
import threading
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, Type, Union

import psycopg2 as psycopg

logger = logging.getLogger("pgmodels.db_util")

ConnectionType: Type[psycopg.extensions.connection] = psycopg.extensions.connection

_POSITIONAL = re.compile(r"\$(\d+)")


class QueryExecutor(Protocol):
    """Anything that can run a SQL statement and return rows as dicts."""

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        ...


def to_pyformat(sql: str, params: Optional[Sequence[Any]] = None) -> Tuple[str, Optional[tuple]]:
    """
    Rewrite ``$n`` placeholders into psycopg2 ``%s`` markers.

    Parameters are reordered (and repeated) to follow the order in which the
    placeholders occur. Literal ``%`` signs are escaped when parameters are
    bound. Without parameters the statement is returned unchanged.
    """
    if not params:
        return sql, None

    ordered: List[Any] = []

    def _replace(match: "re.Match[str]") -> str:
        index = int(match.group(1))
        if index < 1 or index > len(params):
            raise ValueError(f"Placeholder ${index} has no matching parameter")
        ordered.append(params[index - 1])
        return "%s"

    converted = _POSITIONAL.sub(_replace, sql.replace("%", "%%"))
    return converted, tuple(ordered)


class DbUtil:
    """
    PostgreSQL connection manager and query executor.

    Uses psycopg2 under the hood. Parameters not provided in ``params``
    fall back to environment variables: ``DATABASE_HOST``, ``DATABASE_NAME``,
    ``DATABASE_USER``, ``DATABASE_PASS``, ``DATABASE_PORT``.

    A single connection is shared by every caller; cursor use is serialized
    with a lock so that background model operations can use it too.
    """

    connection: Type[psycopg.extensions.connection] = None

    def __init__(self, params: Dict = None):
        """
        Build connection params from ``params`` and env (e.g. DATABASE_*).
        """
        params = params or {}
        self.connection_params = {
            "host": params.get("host") or os.getenv("DATABASE_HOST"),
            "database": params.get("database") or os.getenv("DATABASE_NAME"),
            "user": params.get("user") or os.getenv("DATABASE_USER"),
            "password": params.get("password") or os.getenv("DATABASE_PASS"),
            "port": params.get("port") or os.getenv("DATABASE_PORT"),
        }
        self.connection = None
        self._lock = threading.RLock()

    def connect(self, default_schema: str = None) -> None:
        """
        Open a connection. If ``default_schema`` is set, create the schema
        if needed and set the connection's search_path. Raises on failure.
        """
        try:
            if default_schema:
                self.create_schema(default_schema)
                self.connection_params["options"] = f"-c search_path={default_schema}"
                self.connection.close()

            self.connection = psycopg.connect(**self.connection_params)
        except Exception as error:
            logger.error("DB: Error creating connection", exc_info=True)
            raise RuntimeError("Failed to create DB Connection") from error

    def disconnect(self, do_commit: bool = False) -> None:
        """
        Close the connection. If ``do_commit`` is True, commit before closing.
        """
        if not self.connection:
            return
        try:
            if do_commit:
                self.commit()
            self.connection.close()
        except Exception:
            logger.warning("DB: Error closing connection", exc_info=True)
        finally:
            self.connection = None

    def commit(self) -> None:
        """
        Commit the current transaction. Raises if there is no connection or commit fails.
        """
        if not self.connection:
            raise RuntimeError("No connection found to commit")
        try:
            self.connection.commit()
        except Exception:
            logger.error("DB: Error committing", exc_info=True)
            raise

    def create_schema(self, schema: str) -> None:
        """
        Create schema ``schema`` (IF NOT EXISTS). Connects first if needed. Raises on failure.
        """
        try:
            if not self.connection:
                self.connection = psycopg.connect(**self.connection_params)

            with self.connection.cursor() as cursor:
                cursor.execute(f"CREATE SCHEMA IF NOT EXISTS {schema}")

            self.connection.commit()
        except Exception as error:
            if self.connection:
                self.connection.rollback()
            logger.error("DB: Failed to create schema %s", schema, exc_info=True)
            raise RuntimeError(f"Failed to create Schema: {schema}") from error

    def execute_query(
        self,
        query: str,
        data: tuple = None,
        table_schema: str = None,
        commit: bool = False,
        no_fetch: bool = False,
        get_column_names: bool = False,
        hide_query_execution_log: bool = True,
    ) -> Union[None, list]:
        """
        Execute a query with optional parameters and return format options.

        Args:
            query: SQL string; use ``%s`` placeholders when passing ``data``.
            data: Tuple of values for placeholders (parameterized execution).
            table_schema: If connection is not open, connect with this as default_schema.
            commit: If True, commit after execution; roll back if execution fails.
            no_fetch: If True, do not fetch results (e.g. INSERT/UPDATE); returns None.
            get_column_names: If True, return list of dicts (column name -> value).
            hide_query_execution_log: If False, log the executed query.

        Returns:
            Rows as list or list of dicts per options; None if no_fetch.
            Statements that produce no result set return an empty list.
        Raises:
            Exception: On execution or commit failure.
        """
        with self._lock:
            if not self.connection:
                self.connect(table_schema)

            try:
                with self.connection.cursor() as cursor:
                    if data is not None:
                        cursor.execute(query, data)
                    else:
                        cursor.execute(query)

                    if not hide_query_execution_log:
                        logger.debug("Query executed: %s", cursor.query.decode("utf-8"))

                    result = None
                    column_names: List[str] = []
                    if not no_fetch and cursor.description is not None:
                        result = cursor.fetchall()
                        column_names = [desc[0] for desc in cursor.description]

                if commit:
                    self.commit()

                if no_fetch:
                    return None

                if result is None:
                    return []

                if get_column_names:
                    return [dict(zip(column_names, row)) for row in result]

                return result

            except Exception:
                if commit and self.connection:
                    self.connection.rollback()
                logger.error("DB: Error executing query", exc_info=True)
                raise

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """
        Run one statement with ``$n`` placeholders as its own committed unit.

        This is the :class:`QueryExecutor` contract used by the model layer.
        Returns the rows as dicts, or an empty list.
        """
        query, data = to_pyformat(sql, params)
        return self.execute_query(query, data=data, commit=True, get_column_names=True)
