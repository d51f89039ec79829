"""
Load a strategy plug-in from a ``package.module:ClassName`` reference.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any

from strategy.base import StrategyPort

logger = logging.getLogger("gauntlet.strategy")


class StrategyLoadError(ImportError):
    """Raised when a strategy reference cannot be resolved or instantiated."""


def load_strategy(reference: str, **params: Any) -> StrategyPort:
    """Import ``module:attr`` and instantiate it with ``params``.

    The attribute must be a class (or factory) whose instances have an
    ``evaluate(tick, bars)`` method.
    """
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise StrategyLoadError(f"Strategy reference must look like 'package.module:ClassName', got {reference!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise StrategyLoadError(f"Cannot import strategy module {module_name!r}: {exc}") from exc
    try:
        factory = getattr(module, attr)
    except AttributeError as exc:
        raise StrategyLoadError(f"Module {module_name!r} has no attribute {attr!r}") from exc
    try:
        instance = factory(**params)
    except TypeError as exc:
        raise StrategyLoadError(f"Cannot instantiate {reference!r} with {params!r}: {exc}") from exc
    if not isinstance(instance, StrategyPort):
        raise StrategyLoadError(f"{reference!r} does not provide evaluate(tick, bars)")
    logger.info("Loaded strategy %s", reference)
    return instance
