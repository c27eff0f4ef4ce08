"""
pgmodels: table-bound PostgreSQL models with generated CRUD queries.

Example::

    from pgmodels import DbUtil, PgModel
    db = DbUtil()
    db.connect()
    PgModel.use_connection(db)
    Users = PgModel("users", {"timestamps": True})
    Users.define({"fullname": {"schema": "fullname TEXT NOT NULL"}})
    user = Users.create({"fullname": "Jane"})
"""

__version__ = "0.1.0"

from pgmodels.columns import ColumnSpec
from pgmodels.compiler import CompiledSchema, compile_schema
from pgmodels.db_util import DbUtil, QueryExecutor
from pgmodels.errors import (
    ConfigurationError,
    ConstraintError,
    ParameterTypeError,
    PgModelError,
    SchemaOperationError,
    ValidationError,
)
from pgmodels.model import PgModel
from pgmodels.options import GlobalOptions, ModelOptions, TimestampNames
from pgmodels.reconciler import ReconcileResult
from pgmodels.registry import ModelRegistry

__all__ = [
    "DbUtil",
    "QueryExecutor",
    "PgModel",
    "ColumnSpec",
    "CompiledSchema",
    "compile_schema",
    "GlobalOptions",
    "ModelOptions",
    "TimestampNames",
    "ReconcileResult",
    "ModelRegistry",
    "PgModelError",
    "ParameterTypeError",
    "ValidationError",
    "ConfigurationError",
    "SchemaOperationError",
    "ConstraintError",
    "__version__",
]
