"""Repository base class.

Thin holder of a backend plus configuration for the components that read
and write through a resolved binding.
"""

from __future__ import annotations

from order_resolver.adapters.protocol import AsyncBackend
from order_resolver.core.config import ResolverConfig


class AsyncRepository:
    """Base class for binding-driven data access.

    Subclasses define concrete read/write methods that delegate to the
    backend.
    """

    def __init__(
        self,
        backend: AsyncBackend,
        config: ResolverConfig | None = None,
    ) -> None:
        self.backend = backend
        self.config = config or ResolverConfig()
