"""
Table-bound models with generated CRUD queries.

A :class:`PgModel` is bound to one table. :meth:`PgModel.define` declares its
columns, compiles the SQL used by the CRUD methods and creates (or extends)
the table. Example::

    from pgmodels import DbUtil, PgModel

    db = DbUtil()
    db.connect()
    PgModel.use_connection(db)

    Users = PgModel("users", {"timestamps": True, "paranoid": True})
    Users.define({
        "fullname": {
            "schema": "fullname TEXT NOT NULL",
            "validations": [non_empty_string],
        },
        "age": {"schema": "age INT"},
    })

    user = Users.create({"fullname": "Ali", "age": 23})
    Users.update_by_id(user["id"], {"age": 24})
    Users.delete_by_id(user["id"])
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from pgmodels.columns import ColumnsInput, ColumnSpec, arrange_values, normalize_columns, validate
from pgmodels.compiler import CompiledSchema, assignments_for, compile_schema
from pgmodels.db_util import QueryExecutor
from pgmodels.errors import ConfigurationError, ParameterTypeError
from pgmodels.foreign_keys import add_foreign_key
from pgmodels.options import GlobalOptions, ModelOptions, OptionsInput, TimestampNames, resolve_options
from pgmodels.reconciler import ReconcileResult, reconcile
from pgmodels.registry import ModelRegistry
from pgmodels.util import get_timestamp, verify_param_type

logger = logging.getLogger("pgmodels.model")

Hook = Callable[[QueryExecutor, Any], Any]
Rows = List[Dict[str, Any]]


class PgModel:
    """
    A model bound to one PostgreSQL table.

    Options are layered: built-in defaults < :meth:`set_options` < ``options``.
    The connection is ``db`` when given, else the one registered with
    :meth:`use_connection`. Every model registers itself in ``registry``
    (default :attr:`PgModel.models`) under ``model_name``.
    """

    models: ModelRegistry = ModelRegistry()

    _connection: Optional[QueryExecutor] = None
    _global_options: Optional[GlobalOptions] = None
    _background: Optional[ThreadPoolExecutor] = None
    _background_lock = threading.Lock()

    def __init__(
        self,
        model_name: str,
        options: OptionsInput = None,
        db: Optional[QueryExecutor] = None,
        registry: Optional[ModelRegistry] = None,
    ):
        verify_param_type(model_name, "string", "model_name", "constructor")
        if options is not None and not isinstance(options, (Mapping, GlobalOptions)):
            raise ParameterTypeError("constructor", "options", "object")

        self.name = model_name
        self.options: ModelOptions = resolve_options(PgModel._global_options, options)
        self.timestamps: Optional[TimestampNames] = self.options.timestamp_names
        self.table_name = self.options.table_name or model_name

        self.columns: Dict[str, ColumnSpec] = {}
        self.custom_queries: Dict[str, Callable] = {}
        self.is_table_created = False

        self._db = db
        self._compiled: Optional[CompiledSchema] = None
        self._before_create: Optional[Hook] = None
        self._before_update: Optional[Hook] = None
        self._before_destroy: Optional[Hook] = None

        self.registry = registry if registry is not None else PgModel.models
        self.registry.register(model_name, self)

    def __repr__(self) -> str:
        return f"PgModel(name={self.name!r}, table_name={self.table_name!r})"

    @property
    def table_name(self) -> str:
        """Table name including the configured prefix."""
        return self._table_name

    @table_name.setter
    def table_name(self, table_name: str) -> None:
        self._table_name = self.options.table_prefix + table_name

    @property
    def primary_key_name(self) -> str:
        return self.options.primary_key_name

    @property
    def db(self) -> QueryExecutor:
        """The execution handle used by this model."""
        db = self._db if self._db is not None else PgModel._connection
        if db is None:
            raise ConfigurationError(
                "No database connection, pass db= or call PgModel.use_connection()", "db"
            )
        return db

    @property
    def compiled(self) -> CompiledSchema:
        """SQL fragments compiled by :meth:`define`."""
        return self._require_defined("compiled")

    def _require_defined(self, method_name: str) -> CompiledSchema:
        if self._compiled is None:
            raise ConfigurationError(f"Model {self.name} must be defined before {method_name}", method_name)
        return self._compiled

    @staticmethod
    def use_connection(db_connection: QueryExecutor) -> None:
        """Register the connection shared by models created without ``db``."""
        PgModel._connection = db_connection

    @staticmethod
    def set_options(options: OptionsInput) -> None:
        """
        Set options applied to every model constructed afterwards.

        Existing models keep the options they were created with.
        """
        if isinstance(options, GlobalOptions):
            PgModel._global_options = options
        elif isinstance(options, Mapping):
            try:
                PgModel._global_options = GlobalOptions.model_validate(dict(options))
            except PydanticValidationError as error:
                raise ConfigurationError(f"Invalid global options: {error}", "set_options") from error
        else:
            raise ParameterTypeError("set_options", "options", "object")

    @staticmethod
    def reset_options() -> None:
        """Forget options set with :meth:`set_options`."""
        PgModel._global_options = None

    @classmethod
    def _submit(cls, fn: Callable[[], Any]) -> Future:
        with cls._background_lock:
            if cls._background is None:
                cls._background = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pgmodels")
            return cls._background.submit(fn)

    def _run_in_background(self, fn: Callable[[], Any], method_name: str) -> Future:
        future = self._submit(fn)

        def _report(done: Future) -> None:
            error = done.exception()
            if error is not None:
                logger.warning("Background %s for %s failed: %s", method_name, self.table_name, error)
                if self.options.error_logging:
                    logger.error("Background %s for %s traceback", method_name, self.table_name, exc_info=error)

        future.add_done_callback(_report)
        return future

    def _execute(self, sql: str, params: Optional[Sequence[Any]], method_name: str) -> Rows:
        try:
            return self.db.execute(sql, params)
        except Exception:
            if self.options.error_logging:
                logger.error("Error in %s on %s", method_name, self.table_name, exc_info=True)
            raise

    def _soft_delete_filter(self, start_with: str = "AND") -> str:
        if self.options.paranoid and self.timestamps is not None:
            return f" {start_with} {self.timestamps.deleted_at} IS NULL"
        return ""

    def _mark_created(self) -> None:
        self.is_table_created = True

    def _reconcile(self) -> ReconcileResult:
        return reconcile(
            self.db,
            self.compiled,
            self.columns,
            table_schema=self.options.table_schema,
            timestamps=self.timestamps,
            alter_on_define=self.options.alter_on_define,
            error_logging=self.options.error_logging,
            on_created=self._mark_created,
        )

    def define(self, columns: ColumnsInput, background: bool = False) -> Union[ReconcileResult, Future]:
        """
        Declare the model's columns, then create or extend its table.

        ``columns`` maps column names to ``{"schema": <DDL>, "validations": [...]}``.
        The SQL used by the CRUD methods is compiled immediately. The table is
        created if missing; with ``alter_on_define`` missing columns are added.

        Returns the :class:`ReconcileResult`, or a :class:`~concurrent.futures.Future`
        resolving to it when ``background`` is True. Failures are raised (or
        stored in the future) as :exc:`SchemaOperationError`.
        """
        self.columns = normalize_columns(columns, self.primary_key_name)
        self._compiled = compile_schema(
            self.table_name, self.columns, self.primary_key_name, self.timestamps
        )
        if background:
            return self._run_in_background(self._reconcile, "define")
        return self._reconcile()

    def find_all(self, as_frame: bool = False) -> Union[Rows, pd.DataFrame]:
        """Return every row (not soft-deleted), or an empty list."""
        select_query = self._require_defined("find_all").select_query
        rows = self._execute(f"{select_query}{self._soft_delete_filter('WHERE')}", None, "find_all")
        return pd.DataFrame(rows) if as_frame else rows

    def find_all_where(
        self, where_clause: str, params: Sequence[Any], as_frame: bool = False
    ) -> Union[Rows, pd.DataFrame]:
        """
        Return rows matching a raw ``WHERE ...`` fragment.

        ``where_clause`` is appended verbatim and must use ``$n`` placeholders
        bound from ``params``; the caller is responsible for its correctness.
        A blank clause selects every row, like :meth:`find_all`.
        Example: ``Users.find_all_where("WHERE age>=$1", [20])``.
        """
        verify_param_type(where_clause, "string", "where_clause", "find_all_where")
        verify_param_type(params, "array", "params", "find_all_where")
        select_query = self._require_defined("find_all_where").select_query

        if where_clause.strip():
            query = f"{select_query} {where_clause}{self._soft_delete_filter()}"
        else:
            query = f"{select_query}{self._soft_delete_filter('WHERE')}"

        rows = self._execute(
            query,
            list(params),
            "find_all_where",
        )
        return pd.DataFrame(rows) if as_frame else rows

    def find_one(self, column: str, value: Any) -> Optional[Dict[str, Any]]:
        """Return the first row where ``column`` equals ``value``, or None."""
        verify_param_type(column, "string", "column", "find_one")
        if column not in self.columns:
            raise ConfigurationError(f"Invalid column name {column}", "find_one")
        select_query = self._require_defined("find_one").select_query

        rows = self._execute(
            f"{select_query} WHERE {column}=$1{self._soft_delete_filter()}",
            [value],
            "find_one",
        )
        return rows[0] if rows else None

    def find_by_id(self, record_id: Union[int, float]) -> Optional[Dict[str, Any]]:
        """Return the row with primary key ``record_id``, or None."""
        verify_param_type(record_id, "number", "record_id", "find_by_id")
        select_query = self._require_defined("find_by_id").select_query

        rows = self._execute(
            f"{select_query} WHERE {self.primary_key_name}=$1"
            f"{self._soft_delete_filter()}",
            [record_id],
            "find_by_id",
        )
        return rows[0] if rows else None

    def create(self, values: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Validate and insert a new row; return it, or None.

        Declared columns missing from ``values`` are stored as NULL. Keys that
        are not declared columns are ignored.
        """
        verify_param_type(values, "object", "values", "create")
        compiled = self._require_defined("create")

        validate(self.columns, values)
        if self._before_create is not None:
            self._before_create(self.db, values)

        insert_values = arrange_values(self.columns, values)
        if self.timestamps is not None:
            timestamp = get_timestamp()
            insert_values += [timestamp, None, timestamp]

        if insert_values:
            query = (
                f"INSERT INTO {self.table_name} ({compiled.insert_columns}) "
                f"VALUES ({compiled.insert_placeholders}) RETURNING *"
            )
        else:
            query = f"INSERT INTO {self.table_name} DEFAULT VALUES RETURNING *"

        rows = self._execute(query, insert_values, "create")
        return rows[0] if rows else None

    def update_by_id(self, record_id: Union[int, float], values: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Validate and update the row with primary key ``record_id``; return it, or None.

        Only declared columns present in ``values`` are written, so other
        columns keep their current value. A key mapped to None writes NULL.
        Validators run only for the declared columns present in ``values``.
        """
        verify_param_type(record_id, "number", "record_id", "update_by_id")
        verify_param_type(values, "object", "values", "update_by_id")
        self._require_defined("update_by_id")

        validate(self.columns, values, [name for name in self.columns if name in values])
        if self._before_update is not None:
            self._before_update(self.db, values)

        names = [name for name in self.columns if name in values]
        params: List[Any] = [values[name] for name in names]
        assignments = assignments_for(names)

        if self.timestamps is not None:
            params.append(get_timestamp())
            updated = f"{self.timestamps.updated_at}=${len(params)}"
            assignments = f"{assignments},{updated}" if assignments else updated

        if not assignments:
            return self.find_by_id(record_id)

        params.append(record_id)
        query = (
            f"UPDATE {self.table_name} SET {assignments} "
            f"WHERE {self.primary_key_name}=${len(params)} RETURNING *"
        )
        rows = self._execute(query, params, "update_by_id")
        return rows[0] if rows else None

    def delete_by_id(self, record_id: Union[int, float]) -> bool:
        """
        Delete the row with primary key ``record_id``.

        Paranoid models set the deleted-at timestamp instead of removing the
        row. Returns False, without writing, when no such row exists.
        """
        verify_param_type(record_id, "number", "record_id", "delete_by_id")
        if self.options.paranoid and self.timestamps is None:
            raise ConfigurationError(
                "timestamps need to be enabled for paranoid to work", "delete_by_id"
            )

        if self._before_destroy is not None:
            self._before_destroy(self.db, record_id)

        if self.find_by_id(record_id) is None:
            return False

        if self.options.paranoid:
            self._execute(
                f"UPDATE {self.table_name} SET {self.timestamps.deleted_at}=$1 "
                f"WHERE {self.primary_key_name}=$2",
                [get_timestamp(), record_id],
                "delete_by_id",
            )
        else:
            self._execute(
                f"DELETE FROM {self.table_name} WHERE {self.primary_key_name}=$1",
                [record_id],
                "delete_by_id",
            )
        return True

    def before_create(self, fn: Hook) -> None:
        """
        Register ``fn(db, values)`` to run before every :meth:`create`.

        The hook may query through ``db`` and rejects the record by raising.
        """
        verify_param_type(fn, "function", "fn", "before_create")
        self._before_create = fn

    def before_update(self, fn: Hook) -> None:
        """Register ``fn(db, values)`` to run before every :meth:`update_by_id`."""
        verify_param_type(fn, "function", "fn", "before_update")
        self._before_update = fn

    def before_destroy(self, fn: Hook) -> None:
        """Register ``fn(db, record_id)`` to run before every :meth:`delete_by_id`."""
        verify_param_type(fn, "function", "fn", "before_destroy")
        self._before_destroy = fn

    def add_query_method(self, method_name: str, factory: Callable[[QueryExecutor], Callable]) -> Callable:
        """
        Attach a custom query as ``custom_queries[method_name]``.

        ``factory`` receives the execution handle and returns the query function::

            Users.add_query_method(
                "by_age",
                lambda db: lambda age: db.execute("SELECT * FROM users WHERE age=$1", [age]),
            )
            Users.custom_queries["by_age"](23)
        """
        verify_param_type(method_name, "string", "method_name", "add_query_method")
        verify_param_type(factory, "function", "factory", "add_query_method")

        query = factory(self.db)
        verify_param_type(query, "function", "factory()", "add_query_method")
        self.custom_queries[method_name] = query
        return query

    def add_foreign_key(
        self, column_name: str, parent: Union[str, "PgModel"], background: bool = False
    ) -> Union[bool, Future]:
        """
        Make ``column_name`` reference the primary key of ``parent``.

        ``parent`` is another :class:`PgModel`, the name of a model in
        ``registry``, or a raw table name. Returns True
        when the constraint was added and False when it already existed, or a
        future resolving to that value when ``background`` is True. Failures
        are raised (or stored in the future) as :exc:`ConstraintError`.
        """
        verify_param_type(column_name, "string", "column_name", "add_foreign_key")
        if isinstance(parent, PgModel):
            parent_table_name, parent_key_name = parent.table_name, parent.primary_key_name
        else:
            verify_param_type(parent, "string", "parent", "add_foreign_key")
            if parent in self.registry:
                parent_table_name = self.registry.table_name_of(parent)
                parent_key_name = self.registry[parent].primary_key_name
            else:
                parent_table_name, parent_key_name = parent, self.primary_key_name

        def _add() -> bool:
            return add_foreign_key(
                self.db,
                self.table_name,
                column_name,
                parent_table_name,
                parent_key_name=parent_key_name,
                table_schema=self.options.table_schema,
                error_logging=self.options.error_logging,
            )

        if background:
            return self._run_in_background(_add, "add_foreign_key")
        return _add()
