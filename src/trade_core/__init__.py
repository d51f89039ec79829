"""
Value types for the matching engine: ticks, bars, accounts, orders, positions.

No I/O. Consumed by execution (Broker), strategy and backtest.
"""

from trade_core.bars import BarList
from trade_core.contracts import (
    DEFAULT_ACCOUNT,
    Account,
    Bar,
    Currency,
    OrderStatus,
    OrderType,
    Security,
    Side,
    Tick,
    normalize_symbol,
)
from trade_core.errors import (
    BacktestStateError,
    OrderFormatError,
    OrderStateError,
    OrderValidationError,
    StrategyFault,
    UnknownAccountError,
)
from trade_core.order import Order, OrderField
from trade_core.position import Position, close_pl, close_pt, open_pl, open_pt

__all__ = [
    "Account",
    "BacktestStateError",
    "Bar",
    "BarList",
    "Currency",
    "DEFAULT_ACCOUNT",
    "Order",
    "OrderField",
    "OrderFormatError",
    "OrderStateError",
    "OrderStatus",
    "OrderType",
    "OrderValidationError",
    "Position",
    "Security",
    "Side",
    "StrategyFault",
    "Tick",
    "UnknownAccountError",
    "close_pl",
    "close_pt",
    "normalize_symbol",
    "open_pl",
    "open_pt",
]
