"""
Registration table for security providers.

Provider references in a document's service declarations are looked up
here by name before any import is attempted.
"""
from __future__ import annotations

from typing import TypeVar, Generic, Callable, Any
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PluginRegistry(Generic[T]):
    """
    Name -> factory table.

    Example usage:
    ```python
    security_providers.register("volos-oauth-redis", create_redis_oauth)

    factory = security_providers.factory("volos-oauth-redis")
    oauth = factory({"encryptionKey": "..."})
    ```
    """

    def __init__(self, name: str):
        self.name = name
        self._factories: dict[str, Callable[..., T]] = {}

    def register(self, name: str, factory: Callable[..., T]) -> None:
        """
        Register a factory under a provider name.

        Args:
            name: Identifier used as ``provider`` in service declarations
            factory: Callable taking the declaration options, returning the resource
        """
        if name in self._factories:
            logger.warning(f"Overwriting existing {self.name} provider: {name}")

        self._factories[name] = factory
        logger.info(f"Registered {self.name} provider: {name}")

    def provider(self, name: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
        """
        Decorator form of :meth:`register`.

        Usage:
            @security_providers.provider("memory-oauth")
            def create(options):
                ...
        """
        def decorator(factory: Callable[..., T]) -> Callable[..., T]:
            self.register(name, factory)
            return factory
        return decorator

    def unregister(self, name: str) -> bool:
        """Unregister a provider."""
        return self._factories.pop(name, None) is not None

    def factory(self, name: str) -> Callable[..., T] | None:
        """Get the factory registered under ``name``, if any."""
        return self._factories.get(name)

    def list(self) -> list[str]:
        """List all registered provider names."""
        return list(self._factories.keys())

    def has(self, name: str) -> bool:
        """Check if provider is registered."""
        return name in self._factories


# Global table consulted by the resource registry
security_providers = PluginRegistry[Any]("security")
