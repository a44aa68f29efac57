"""
Transformer registry.

Sub-transforms may reference their child transformer by key instead of by
object. Named transformers register themselves here on construction.
"""

import logging
import threading
from typing import Any, Optional

from django.utils.module_loading import import_string

from .config_proxy import get_setting
from .exceptions import TransformerNotFound

logger = logging.getLogger(__name__)


class TransformerRegistry:
    """Central registry mapping names to transformers."""

    def __init__(self):
        self._transformers: dict[str, Any] = {}
        self._lock = threading.Lock()

    def register(self, name: str, transformer: Any) -> None:
        """Register a transformer under ``name``, replacing any previous one."""
        if not name:
            raise ValueError("Transformer name must not be empty")
        with self._lock:
            previous = self._transformers.get(name)
            self._transformers[name] = transformer
        if previous is not None and previous is not transformer:
            logger.warning("Transformer '%s' re-registered, replacing previous", name)
        else:
            logger.info(f"Transformer '{name}' registered")

    def unregister(self, name: str) -> bool:
        """Remove a transformer. Returns False when it was not registered."""
        with self._lock:
            removed = self._transformers.pop(name, None)
        if removed is not None:
            logger.debug("Transformer '%s' unregistered", name)
        return removed is not None

    def get(self, name: str) -> Optional[Any]:
        with self._lock:
            return self._transformers.get(name)

    def resolve(self, key: str) -> Any:
        """
        Resolve a transformer by registry key or dotted import path.

        Raises:
            TransformerNotFound: if nothing matches ``key``.
        """
        transformer = self.get(key)
        if transformer is not None:
            return transformer

        if "." in key and get_setting("transform_settings.allow_import_paths", True):
            try:
                return import_string(key)
            except ImportError as exc:
                logger.debug("Could not import transformer '%s': %s", key, exc)
        raise TransformerNotFound(key)

    def list_names(self) -> list[str]:
        with self._lock:
            return sorted(self._transformers)

    def clear(self) -> None:
        with self._lock:
            self._transformers.clear()

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._transformers

    def __len__(self) -> int:
        with self._lock:
            return len(self._transformers)


# Global transformer registry instance
transformer_registry = TransformerRegistry()


def register_transformer(name: str, transformer: Any) -> None:
    """Register a transformer using the global registry."""
    transformer_registry.register(name, transformer)


def get_transformer(name: str) -> Optional[Any]:
    """Get a transformer from the global registry."""
    return transformer_registry.get(name)
