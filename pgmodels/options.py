"""
Layered model configuration.

Options are resolved in three layers: built-in defaults, then the process-wide
options set with :meth:`pgmodels.PgModel.set_options`, then the options passed
to a single model. Only fields that a layer sets explicitly override the layer
below. The result is a :class:`ModelOptions` snapshot owned by the model.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from pgmodels.errors import ConfigurationError, ParameterTypeError

logger = logging.getLogger("pgmodels.options")

TIMESTAMP_KEYS = ("created_at", "deleted_at", "updated_at")


class TimestampNames(BaseModel):
    """Column names used for the created/updated/deleted timestamps."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    created_at: str = "created_at"
    updated_at: str = "updated_at"
    deleted_at: str = "deleted_at"

    def ordered(self) -> List[str]:
        """Return the column names sorted by key (created, deleted, updated)."""
        return [getattr(self, key) for key in TIMESTAMP_KEYS]


class GlobalOptions(BaseModel):
    """Options that may be applied to every model at once."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    table_prefix: str = ""
    table_schema: str = "public"
    primary_key_name: str = "id"
    timestamps: Union[bool, TimestampNames] = False
    paranoid: bool = False
    alter_on_define: bool = False
    error_logging: bool = False

    @property
    def timestamp_names(self) -> Optional[TimestampNames]:
        """The timestamp column names, or None when timestamps are disabled."""
        if isinstance(self.timestamps, TimestampNames):
            return self.timestamps
        return TimestampNames() if self.timestamps else None


class ModelOptions(GlobalOptions):
    """All global options plus an explicit table name."""

    table_name: str = ""


OptionsInput = Union[None, GlobalOptions, Mapping[str, Any]]


def _explicit_fields(options: OptionsInput, method_name: str) -> Dict[str, Any]:
    if options is None:
        return {}
    if isinstance(options, GlobalOptions):
        return options.model_dump(exclude_unset=True)
    if isinstance(options, Mapping):
        return dict(options)
    raise ParameterTypeError(method_name, "options", "object")


def _merge_timestamps(current: Any, override: Any) -> Any:
    if isinstance(override, Mapping):
        base = current if isinstance(current, TimestampNames) else TimestampNames()
        return TimestampNames(**{**base.model_dump(), **override})
    if override is True and isinstance(current, TimestampNames):
        return current
    return override


def resolve_options(
    global_options: OptionsInput = None,
    model_options: OptionsInput = None,
) -> ModelOptions:
    """
    Merge built-in defaults < ``global_options`` < ``model_options``.

    A ``timestamps`` mapping renames only the names it provides and enables
    timestamps for the model.
    """
    merged: Dict[str, Any] = {}
    try:
        for layer in (
            _explicit_fields(global_options, "set_options"),
            _explicit_fields(model_options, "constructor"),
        ):
            for key, value in layer.items():
                if key == "timestamps":
                    if isinstance(value, TimestampNames):
                        value = value.model_dump()
                    value = _merge_timestamps(merged.get("timestamps"), value)
                merged[key] = value
        resolved = ModelOptions(**merged)
    except PydanticValidationError as error:
        raise ConfigurationError(f"Invalid model options: {error}", "constructor") from error

    if resolved.paranoid and resolved.timestamp_names is None:
        logger.warning(
            "paranoid is enabled without timestamps, delete_by_id will fail for table %s",
            resolved.table_name or "<model name>",
        )
    return resolved
