"""
Strategy port: evaluated once per tick, returns a desired signed position.

The driver treats strategies as opaque. A strategy sees the current tick and
the rolling bars of that tick's symbol; it never sees the broker.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, NamedTuple, Protocol, Sequence, runtime_checkable

from trade_core.bars import BarList
from trade_core.contracts import Tick


class Decision(NamedTuple):
    """Desired signed position for the tick's symbol, plus optional indicator values."""

    target: int
    indicators: Sequence[Any] | None = None


@runtime_checkable
class StrategyPort(Protocol):
    def evaluate(self, tick: Tick, bars: BarList) -> Decision | int | tuple: ...


class Strategy(ABC):
    """Convenience base class for strategy plug-ins.

    Subclasses implement :meth:`evaluate`. ``indicator_names`` labels the
    values returned in ``Decision.indicators`` (used as export headers).
    """

    name: str = ""
    indicator_names: Sequence[str] = ()

    def __init__(self, **params: Any) -> None:
        self.params = params
        if not self.name:
            self.name = type(self).__name__

    def reset(self) -> None:
        """Called by the driver before each run."""

    @abstractmethod
    def evaluate(self, tick: Tick, bars: BarList) -> Decision | int | tuple:
        """Desired signed position for ``tick.symbol`` after this tick."""


def as_decision(result: Decision | int | tuple | None) -> Decision:
    """Normalize a strategy return value."""
    if isinstance(result, Decision):
        return result
    if result is None:
        raise TypeError("Strategy returned None; return a target size")
    if isinstance(result, tuple):
        return Decision(int(result[0]), result[1] if len(result) > 1 else None)
    return Decision(int(result))
