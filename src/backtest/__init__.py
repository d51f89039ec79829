"""
Backtest driver: replay tick sources through the Broker and a Strategy, with progress and cancellation.
"""

from backtest.runner import BacktestDriver, BacktestResult, RunState

__all__ = ["BacktestDriver", "BacktestResult", "RunState"]
