"""
Position accounting: signed size and weighted-average cost per symbol.

``Position.adjust`` is the single state transition. It returns the realized
PnL of the fill and updates size/average cost:

- same direction (or from flat): average cost is the size-weighted blend
- partial close: PnL on the closed portion; average cost unchanged
- full close: PnL on everything; size and average cost go to 0
- close and reverse: PnL on the closing portion; the remainder opens a new
  position on the other side at the fill price
"""

from __future__ import annotations

from dataclasses import dataclass

from trade_core.contracts import normalize_symbol
from trade_core.order import Order


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


@dataclass
class Position:
    symbol: str
    size: int = 0
    avg_price: float = 0.0

    def __post_init__(self) -> None:
        self.symbol = normalize_symbol(self.symbol)

    @property
    def is_long(self) -> bool:
        return self.size > 0

    @property
    def is_short(self) -> bool:
        return self.size < 0

    @property
    def is_flat(self) -> bool:
        return self.size == 0

    @property
    def flat_size(self) -> int:
        """Signed size of the order that would flatten this position."""
        return -self.size

    def adjust(self, trade: Order) -> float:
        """Apply a filled order; return the PnL it realized (currency)."""
        if normalize_symbol(trade.symbol) != self.symbol:
            raise ValueError(f"Trade for {trade.symbol} cannot adjust a {self.symbol} position")
        fill = trade.signed_fill_size
        price = trade.fill_price
        realized = close_pl(self, trade)

        new_size = self.size + fill
        if self.size == 0 or _sign(self.size) == _sign(fill):
            if new_size != 0:
                self.avg_price = (self.avg_price * abs(self.size) + price * abs(fill)) / abs(new_size)
        elif new_size == 0:
            self.avg_price = 0.0
        elif _sign(new_size) != _sign(self.size):
            self.avg_price = price
        self.size = new_size
        return realized


def closed_size(position: Position, trade: Order) -> int:
    """Units of ``position`` that ``trade`` closes (0 if it adds or the position is flat)."""
    fill = trade.signed_fill_size
    if position.size == 0 or _sign(position.size) == _sign(fill):
        return 0
    return min(abs(position.size), abs(fill))


def close_pt(position: Position, trade: Order) -> float:
    """Per-unit points realized by ``trade`` against ``position``; 0 unless it closes something."""
    if closed_size(position, trade) == 0:
        return 0.0
    return (trade.fill_price - position.avg_price) * _sign(position.size)


def close_pl(position: Position, trade: Order) -> float:
    """Currency PnL realized by ``trade`` against ``position``."""
    return close_pt(position, trade) * closed_size(position, trade)


def open_pt(last_price: float, avg_price: float, size: int) -> float:
    """Unrealized points per unit at ``last_price``."""
    if size == 0:
        return 0.0
    return (last_price - avg_price) * _sign(size)


def open_pl(last_price: float, avg_price: float, size: int) -> float:
    """Unrealized currency PnL at ``last_price``."""
    return open_pt(last_price, avg_price, size) * abs(size)
