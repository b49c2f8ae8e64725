"""
Controller Registry - Factory catalog and ordered controller registry.

The catalog is the static table of controller factories, built at startup
from explicit registration and entry points. The registry holds the
controller instances a broker drives, in registration order.
"""

import logging
import os
from contextlib import contextmanager
from importlib.metadata import entry_points
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from controllers.base import Controller, ControllerFactory, controller_name
from errors import RegistrationError

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "operator_broker.controllers"


class ControllerCatalog:
    """
    Table of controller factories keyed by logical name or path.

    A discovered path resolves to a factory by exact key, then by its
    absolute path, then by its file stem.
    """

    def __init__(self):
        self._factories: Dict[str, ControllerFactory] = {}

    def register(self, name: str, factory: ControllerFactory) -> None:
        """
        Register a controller factory.

        Args:
            name: Logical name (usually the file stem) or exact path
            factory: Callable taking the broker and returning a controller

        Raises:
            TypeError: If factory is not callable
        """
        if not callable(factory):
            raise TypeError(f"Controller factory for '{name}' is not callable")

        if name in self._factories:
            logger.warning(f"Overwriting existing controller factory: {name}")

        self._factories[name] = factory
        logger.info(f"Registered controller factory: {name}")

    def resolve(self, path: str) -> Optional[ControllerFactory]:
        """Find the factory for a discovered path, or None."""
        for key in _candidate_keys(path):
            factory = self._factories.get(key)
            if factory is not None:
                return factory
        return None

    def key_for(self, path: str) -> Optional[str]:
        """Return the catalog key a path resolves to, or None."""
        for key in _candidate_keys(path):
            if key in self._factories:
                return key
        return None

    def has(self, name: str) -> bool:
        return name in self._factories

    def list_names(self) -> List[str]:
        """List all registered factory names."""
        return list(self._factories.keys())

    def load_entry_points(self, group: str = ENTRY_POINT_GROUP) -> int:
        """
        Register factories advertised by installed packages.

        Args:
            group: Entry point group to scan

        Returns:
            Number of factories registered
        """
        count = 0
        for ep in entry_points(group=group):
            try:
                self.register(ep.name, ep.load())
                count += 1
            except Exception as e:
                logger.warning(f"Could not load controller factory {ep.name}: {e}")
        return count

    def __len__(self) -> int:
        return len(self._factories)


def _candidate_keys(path: str) -> List[str]:
    stem = os.path.splitext(os.path.basename(os.path.normpath(path)))[0]
    return [path, os.path.abspath(path), stem]


class ControllerRegistry:
    """
    Ordered collection of controller instances.

    Insertion order is preserved and is the order every lifecycle phase
    uses. The registry is locked while a phase iterates it.
    """

    def __init__(self):
        self._controllers: List[Controller] = []
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def append(self, controller: Controller) -> None:
        """
        Append a controller.

        Raises:
            RegistrationError: If a lifecycle phase is running
        """
        if self._locked:
            raise RegistrationError(
                f"Cannot register controller {controller_name(controller)} "
                f"while a lifecycle phase is running"
            )
        self._controllers.append(controller)

    def snapshot(self) -> Tuple[Controller, ...]:
        return tuple(self._controllers)

    @contextmanager
    def lock(self) -> Iterator[Tuple[Controller, ...]]:
        """Lock the registry and yield the controllers to drive."""
        if self._locked:
            raise RegistrationError("Controller registry is already locked")
        self._locked = True
        try:
            yield self.snapshot()
        finally:
            self._locked = False

    def __iter__(self) -> Iterator[Controller]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._controllers)

    def __getitem__(self, index: int) -> Controller:
        return self._controllers[index]


# Global catalog instance
_catalog: Optional[ControllerCatalog] = None


def get_catalog() -> ControllerCatalog:
    """Get the global controller catalog singleton."""
    global _catalog
    if _catalog is None:
        _catalog = ControllerCatalog()
    return _catalog


def reset_catalog() -> None:
    """Reset the global catalog (mainly for testing)."""
    global _catalog
    _catalog = None


def controller(name: str) -> Callable[[ControllerFactory], ControllerFactory]:
    """
    Decorator registering a controller class or factory in the global catalog.

    Example::

        @controller("ingress")
        class IngressController(Controller):
            ...
    """

    def decorator(factory: ControllerFactory) -> ControllerFactory:
        get_catalog().register(name, factory)
        return factory

    return decorator
