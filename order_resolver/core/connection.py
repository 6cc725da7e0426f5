"""Backend configuration and loading.

BackendConfig is a Pydantic model for type-safe backend config.
open_backend resolves the adapter class by driver name and connects it.
"""

from __future__ import annotations

import importlib
from typing import Any

from pydantic import BaseModel

from order_resolver.core.exceptions import AdapterError


class BackendConfig(BaseModel):
    """Configuration for a backend connection."""

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str = ":memory:"
    extra: dict[str, Any] = {}


# Adapter module mapping: driver name -> (module_path, class_name)
_ADAPTER_MAP: dict[str, tuple[str, str]] = {
    "memory": ("order_resolver.adapters.memory", "MemoryBackend"),
    "sqlite": ("order_resolver.adapters.sqlite", "SqliteBackend"),
    "postgresql": ("order_resolver.adapters.postgresql", "PostgresqlBackend"),
}


def _load_adapter_class(driver: str) -> Any:
    """Load a backend class by driver name."""
    driver_lower = driver.lower()
    if driver_lower not in _ADAPTER_MAP:
        raise AdapterError(f"Unsupported backend driver: {driver}")

    module_path, cls_name = _ADAPTER_MAP[driver_lower]
    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load backend for '{driver}': {e}") from e


async def open_backend(config: BackendConfig) -> Any:
    """Create and connect the backend described by *config*."""
    backend_cls = _load_adapter_class(config.driver)
    return await backend_cls.connect(config)
