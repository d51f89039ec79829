"""
Strategy port and plug-in loading.
"""

from strategy.base import Decision, Strategy, StrategyPort, as_decision
from strategy.loader import StrategyLoadError, load_strategy

__all__ = [
    "Decision",
    "Strategy",
    "StrategyLoadError",
    "StrategyPort",
    "as_decision",
    "load_strategy",
]
