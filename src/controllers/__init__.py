"""
Controller system for the Operator Broker.

This package provides the controller contract, the factory catalog used
for discovery, and the ordered registry the broker drives.
"""

from controllers.base import Controller, ControllerFactory, is_controller
from controllers.discovery import expand_braces, resolve_pattern
from controllers.registry import (
    ControllerCatalog,
    ControllerRegistry,
    controller,
    get_catalog,
)

__all__ = [
    "Controller",
    "ControllerFactory",
    "is_controller",
    "expand_braces",
    "resolve_pattern",
    "ControllerCatalog",
    "ControllerRegistry",
    "controller",
    "get_catalog",
]
