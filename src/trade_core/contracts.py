"""
Data contracts for the matching engine: enums, Tick, Bar, Account.

Ticks are decoded market events (trade prints and top-of-book quotes).
No I/O; these are plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


def normalize_symbol(symbol: str | None) -> str:
    """Symbols are compared case-insensitively; the canonical form is uppercase."""
    return (symbol or "").strip().upper()


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Side(str, Enum):
    """Order side. Values are the single-letter codes of the order text record."""

    BUY = "B"
    SELL = "S"

    @property
    def sign(self) -> int:
        return 1 if self is Side.BUY else -1

    @classmethod
    def from_sign(cls, value: int | float) -> Side:
        return cls.BUY if value > 0 else cls.SELL


class OrderStatus(str, Enum):
    """Lifecycle tag. An order moves PENDING -> FILLED exactly once."""

    PENDING = "PENDING"
    FILLED = "FILLED"


class OrderType(str, Enum):
    """Derived from which of price/stop is set."""

    MARKET = "MARKET"
    LIMIT = "LIMIT"
    STOP = "STOP"


class Security(str, Enum):
    STK = "STK"
    OPT = "OPT"
    FUT = "FUT"
    CFD = "CFD"
    FOR = "FOR"
    FOP = "FOP"
    WAR = "WAR"
    IDX = "IDX"
    BND = "BND"


class Currency(str, Enum):
    USD = "USD"
    AUD = "AUD"
    CAD = "CAD"
    CHF = "CHF"
    EUR = "EUR"
    GBP = "GBP"
    HKD = "HKD"
    JPY = "JPY"
    MXN = "MXN"
    NZD = "NZD"
    SEK = "SEK"


# ---------------------------------------------------------------------------
# Market events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Tick:
    """One market event. ``price`` is the trade print; 0 means quote-only.

    ``date`` is YYYYMMDD and ``time`` is HHMMSS, both as integers.
    """

    symbol: str
    date: int
    time: int
    price: float = 0.0
    size: int = 0
    exchange: str = ""
    bid: float = 0.0
    ask: float = 0.0
    bid_size: int = 0
    ask_size: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))

    @classmethod
    def new_trade(
        cls, symbol: str, date: int, time: int, price: float, size: int, exchange: str = ""
    ) -> Tick:
        return cls(symbol=symbol, date=date, time=time, price=price, size=size, exchange=exchange)

    @classmethod
    def new_bid(cls, symbol: str, bid: float, size: int, date: int = 0, time: int = 0, exchange: str = "") -> Tick:
        return cls(symbol=symbol, date=date, time=time, bid=bid, bid_size=size, exchange=exchange)

    @classmethod
    def new_ask(cls, symbol: str, ask: float, size: int, date: int = 0, time: int = 0, exchange: str = "") -> Tick:
        return cls(symbol=symbol, date=date, time=time, ask=ask, ask_size=size, exchange=exchange)

    @property
    def is_trade(self) -> bool:
        return self.price != 0

    @property
    def has_bid(self) -> bool:
        return self.bid != 0

    @property
    def has_ask(self) -> bool:
        return self.ask != 0

    @property
    def seconds_of_day(self) -> int:
        hh, rest = divmod(self.time, 10_000)
        mm, ss = divmod(rest, 100)
        return hh * 3600 + mm * 60 + ss

    @property
    def timestamp(self) -> datetime:
        """Naive datetime built from date/time. Exchange-local, no timezone."""
        year, rest = divmod(self.date, 10_000)
        month, day = divmod(rest, 100)
        hh, rest = divmod(self.time, 10_000)
        mm, ss = divmod(rest, 100)
        return datetime(year, month, day, hh, mm, ss)


@dataclass
class Bar:
    """OHLCV bar built from trade ticks. ``time`` is the bucket start (HHMMSS)."""

    symbol: str
    date: int
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: int = 0
    tick_count: int = 0

    def bar_range(self) -> float:
        """Full extent of the bar: high - low."""
        return self.high - self.low

    def is_up(self) -> bool:
        return self.close > self.open


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Account:
    """Bookkeeping partition. Equality and hashing are by id only."""

    id: str
    name: str = field(default="", compare=False)

    @property
    def is_valid(self) -> bool:
        return bool(self.id and self.id.strip())


DEFAULT_ACCOUNT = Account("DEFAULT", "Defacto account when account not provided")
