"""Process-wide lookup of models by name."""

import logging
import threading
from typing import Any, Dict, List, Optional

from pgmodels.errors import ConfigurationError

logger = logging.getLogger("pgmodels.registry")


class ModelRegistry:
    """
    Thread-safe mapping from model name to model instance.

    Registering an existing name replaces the previous model.
    """

    def __init__(self):
        self._models: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def register(self, name: str, model: Any) -> None:
        with self._lock:
            if name in self._models:
                logger.debug("Replacing registered model %s", name)
            self._models[name] = model

    def unregister(self, name: str) -> None:
        with self._lock:
            self._models.pop(name, None)

    def get(self, name: str) -> Optional[Any]:
        with self._lock:
            return self._models.get(name)

    def names(self) -> List[str]:
        with self._lock:
            return list(self._models)

    def clear(self) -> None:
        with self._lock:
            self._models.clear()

    def table_name_of(self, name: str) -> str:
        """Return the table name of the model registered as ``name``."""
        model = self.get(name)
        if model is None:
            raise ConfigurationError(f"No model registered as {name}", "table_name_of")
        return model.table_name

    def __getitem__(self, name: str) -> Any:
        model = self.get(name)
        if model is None:
            raise KeyError(name)
        return model

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._models

    def __len__(self) -> int:
        with self._lock:
            return len(self._models)
