"""
Service Container: the dependency graph of one application.

The container is filled once while the application is assembled; every
component receives its collaborators through its constructor. Nothing looks
the container up at request time.

Usage:
    container = ServiceContainer()
    container.register("config", config)
    container.register_factory("file_system", FileSystemService)
    container.register_factory("logger", lambda: LoggerService(..., container.file_system))

    # In tests, before the server is built:
    container.override("mail", fake_mail)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("lantern.container")


class ServiceContainer:
    """
    Stores instances and factories by name.

    Factories are shared by default: the first resolution builds the instance
    and later resolutions return the same one.
    """

    def __init__(self):
        self._singletons: dict[str, Any] = {}
        self._factories: dict[str, tuple[Callable, bool]] = {}

    def register(self, name: str, instance: Any) -> None:
        self._singletons[name] = instance
        logger.debug(f"Service registered (instance): {name}")

    def register_factory(self, name: str, factory: Callable[[], Any], shared: bool = True) -> None:
        self._factories[name] = (factory, shared)
        logger.debug(f"Service registered (factory): {name}")

    def resolve(self, name: str) -> Any:
        """
        Resolves a service by name.

        Priority: instances > factories

        Raises:
            KeyError: if nothing is registered under ``name``
        """
        if name in self._singletons:
            return self._singletons[name]

        if name in self._factories:
            factory, shared = self._factories[name]
            instance = factory()
            if shared:
                self._singletons[name] = instance
            return instance

        raise KeyError(f"Service '{name}' is not registered")

    def has(self, name: str) -> bool:
        return name in self._singletons or name in self._factories

    def override(self, name: str, instance: Any) -> None:
        """Replaces a service, typically with a test double."""
        self._singletons[name] = instance
        self._factories.pop(name, None)

    def __getattr__(self, name: str) -> Any:
        if name.startswith('_'):
            raise AttributeError(name)
        try:
            return self.resolve(name)
        except KeyError as exc:
            raise AttributeError(f"Service '{name}' not found in container") from exc

    def registered_services(self) -> list[str]:
        return sorted(set(self._singletons) | set(self._factories))
