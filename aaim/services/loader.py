"""
aaim.services.loader — Dynamic loading of services and situation factories.

Components are referenced as ``"package.module:attribute"``. The module is
imported with importlib; classes are instantiated without arguments, any
other attribute (e.g. a ready-made service instance) is returned as is.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any

from aaim.errors import ComponentLoadError

logger = logging.getLogger(__name__)


def split_reference(reference: str) -> tuple[str, str]:
    """Split ``"module:attribute"`` into its two non-empty halves."""
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name.strip() or not attribute.strip():
        raise ComponentLoadError(
            f"Invalid component reference '{reference}', expected 'module:attribute'"
        )
    return module_name.strip(), attribute.strip()


def load_component(reference: str, instantiate: bool = True) -> Any:
    """Import and return the component named by ``reference``."""
    module_name, attribute = split_reference(reference)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ComponentLoadError(f"Cannot import module '{module_name}': {e}") from e

    try:
        component = getattr(module, attribute)
    except AttributeError as e:
        raise ComponentLoadError(
            f"Module '{module_name}' has no attribute '{attribute}'"
        ) from e

    if instantiate and isinstance(component, type):
        try:
            component = component()
        except Exception as e:
            raise ComponentLoadError(
                f"Cannot instantiate '{reference}': {e}"
            ) from e

    logger.info("Component '%s' loaded (%s)", reference, type(component).__name__)
    return component
