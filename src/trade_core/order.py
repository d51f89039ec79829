"""
Order: a trading intent that becomes a trade when filled.

One record type with a lifecycle tag (PENDING -> FILLED). Fill data is only
readable once the order is FILLED; reading it earlier raises OrderStateError.

Text record (positional, comma delimited, extensions append only):
    symbol,B|S,size,price,stop,comment,exchange,account,security,currency
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from trade_core.contracts import (
    Currency,
    OrderStatus,
    OrderType,
    Security,
    Side,
    Tick,
    normalize_symbol,
)
from trade_core.errors import OrderFormatError, OrderStateError, OrderValidationError

DELIMITER = ","


class OrderField(IntEnum):
    """Field positions in the order text record."""

    SYMBOL = 0
    SIDE = 1
    SIZE = 2
    PRICE = 3
    STOP = 4
    COMMENT = 5
    EXCHANGE = 6
    ACCOUNT = 7
    SECURITY = 8
    CURRENCY = 9


@dataclass(eq=False)
class Order:
    """Order to buy or sell ``size`` units of ``symbol``.

    ``price`` is the limit price and ``stop`` the stop trigger; 0 means unset.
    Both unset is a market order. Both set (stop-limit) is not supported and
    makes the order invalid.

    Orders compare by identity: two orders with equal fields are still two
    separate entries on a blotter.
    """

    symbol: str
    side: Side
    size: int
    price: float = 0.0
    stop: float = 0.0
    comment: str = ""
    date: int = 0
    time: int = 0
    account: str = ""
    exchange: str = ""
    security: Security = Security.STK
    currency: Currency = Currency.USD
    status: OrderStatus = OrderStatus.PENDING
    _fill_price: float = field(default=0.0, repr=False)
    _fill_size: int = field(default=0, repr=False)
    _fill_date: int = field(default=0, repr=False)
    _fill_time: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        self.symbol = normalize_symbol(self.symbol)
        self.side = Side(self.side)
        if self.size < 0:
            raise OrderValidationError(
                f"Order size must not be negative (got {self.size}); use side to express direction"
            )
        self.size = int(self.size)
        self.price = float(self.price)
        self.stop = float(self.stop)
        self.security = Security(self.security)
        self.currency = Currency(self.currency)

    @classmethod
    def from_signed(cls, symbol: str, signed_size: int, **kwargs) -> Order:
        """Build an order whose side comes from the sign of ``signed_size``."""
        return cls(symbol, Side.from_sign(signed_size), abs(int(signed_size)), **kwargs)

    # -- classification -----------------------------------------------------

    @property
    def is_valid(self) -> bool:
        return bool(self.symbol) and self.size != 0 and not (self.price != 0 and self.stop != 0)

    @property
    def is_market(self) -> bool:
        return self.price == 0 and self.stop == 0

    @property
    def is_limit(self) -> bool:
        return self.price != 0 and self.stop == 0

    @property
    def is_stop(self) -> bool:
        return self.stop != 0 and self.price == 0

    @property
    def order_type(self) -> OrderType:
        if self.is_limit:
            return OrderType.LIMIT
        if self.is_stop:
            return OrderType.STOP
        return OrderType.MARKET

    @property
    def is_buy(self) -> bool:
        return self.side is Side.BUY

    @property
    def signed_size(self) -> int:
        return self.size * self.side.sign

    # -- lifecycle ----------------------------------------------------------

    @property
    def is_filled(self) -> bool:
        return self.status is OrderStatus.FILLED

    def fill(self, tick: Tick) -> Order:
        """Transition to FILLED at the tick's price, date and time. Irreversible."""
        if self.is_filled:
            raise OrderStateError(f"Order already filled: {self}")
        self._fill_price = float(tick.price)
        self._fill_size = self.size
        self._fill_date = tick.date
        self._fill_time = tick.time
        self.status = OrderStatus.FILLED
        return self

    def _require_filled(self, name: str) -> None:
        if not self.is_filled:
            raise OrderStateError(f"{name} is only defined once the order is filled")

    @property
    def fill_price(self) -> float:
        self._require_filled("fill_price")
        return self._fill_price

    @property
    def fill_size(self) -> int:
        self._require_filled("fill_size")
        return self._fill_size

    @property
    def signed_fill_size(self) -> int:
        return self.fill_size * self.side.sign

    @property
    def fill_date(self) -> int:
        self._require_filled("fill_date")
        return self._fill_date

    @property
    def fill_time(self) -> int:
        self._require_filled("fill_time")
        return self._fill_time

    def __str__(self) -> str:
        action = "BUY" if self.is_buy else "SELL"
        if self.is_filled:
            return f"{self._fill_date}:{self._fill_time} {action} {self._fill_size} {self.symbol}@{self._fill_price}"
        if self.is_stop:
            where = f"{self.stop} stop"
        elif self.is_limit:
            where = f"{self.price}"
        else:
            where = "Market"
        return f"{self.date}:{self.time} {action} {self.size} {self.symbol}@{where}"

    # -- text record --------------------------------------------------------

    def serialize(self) -> str:
        """Render the canonical text record. The lifecycle tag is not part of it."""
        for name in ("symbol", "comment", "exchange", "account"):
            if DELIMITER in getattr(self, name):
                raise OrderFormatError(f"Order {name} must not contain {DELIMITER!r}: {getattr(self, name)!r}")
        fields = [
            self.symbol,
            self.side.value,
            str(self.size),
            repr(self.price),
            repr(self.stop),
            self.comment,
            self.exchange,
            self.account,
            self.security.value,
            self.currency.value,
        ]
        return DELIMITER.join(fields)

    @classmethod
    def deserialize(cls, message: str) -> Order:
        """Parse a text record. The result is always PENDING, even if a fill was serialized."""
        if message.endswith(DELIMITER):
            message = message[:-1]
        rec = message.split(DELIMITER)
        if len(rec) < len(OrderField):
            raise OrderFormatError(f"Order record needs {len(OrderField)} fields, got {len(rec)}: {message!r}")
        try:
            return cls(
                symbol=rec[OrderField.SYMBOL],
                side=Side(rec[OrderField.SIDE]),
                size=int(rec[OrderField.SIZE]),
                price=float(rec[OrderField.PRICE]),
                stop=float(rec[OrderField.STOP]),
                comment=rec[OrderField.COMMENT],
                exchange=rec[OrderField.EXCHANGE],
                account=rec[OrderField.ACCOUNT],
                security=Security(rec[OrderField.SECURITY]),
                currency=Currency(rec[OrderField.CURRENCY]),
            )
        except ValueError as exc:
            raise OrderFormatError(f"Malformed order record {message!r}: {exc}") from exc
