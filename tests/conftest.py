"""Pytest fixtures: tick streams, a broker, and a few deterministic strategies."""

from pathlib import Path

import pytest

from data.tick_file import write_ticks
from execution.broker import Broker
from strategy.base import Decision, Strategy
from trade_core.contracts import Account, Tick


def trade(price: float, size: int = 100, time: int = 93000, symbol: str = "SPY", date: int = 20080509, exchange: str = "NYSE") -> Tick:
    return Tick.new_trade(symbol, date, time, price, size, exchange)


class FlipStrategy(Strategy):
    """Long 100 on even ticks, short 100 on odd ticks. Records the tick count as an indicator."""

    indicator_names = ("count", "price")

    def reset(self) -> None:
        self.count = 0

    def evaluate(self, tick, bars):
        self.count += 1
        target = 100 if self.count % 2 == 0 else -100
        return Decision(target, (self.count, tick.price))


class HoldStrategy(Strategy):
    """Always wants ``size`` units (default 100)."""

    def evaluate(self, tick, bars):
        return int(self.params.get("size", 100))


class FailingStrategy(Strategy):
    def evaluate(self, tick, bars):
        raise ZeroDivisionError("boom")


@pytest.fixture
def symbol() -> str:
    return "SPY"


@pytest.fixture
def broker() -> Broker:
    return Broker()


@pytest.fixture
def acct() -> Account:
    return Account("ACC1", "first")


@pytest.fixture
def three_ticks() -> list[Tick]:
    """Three trade prints a second apart."""
    return [
        trade(10.0, 100, 93000),
        trade(10.5, 100, 93001),
        trade(11.0, 100, 93002),
    ]


@pytest.fixture
def tick_folder(tmp_path: Path) -> Path:
    """Two days of SPY and one day of QQQ, a handful of prints each."""
    folder = tmp_path / "ticks"
    write_ticks(folder / "SPY20080509.csv", [trade(10.0 + i * 0.1, 100, 93000 + i) for i in range(5)])
    write_ticks(folder / "SPY20080512.csv", [trade(11.0 + i * 0.1, 100, 93000 + i, date=20080512) for i in range(5)])
    write_ticks(
        folder / "QQQ20080509.csv",
        [trade(40.0 + i * 0.1, 100, 93000 + i, symbol="QQQ", exchange="NASDAQ") for i in range(4)],
    )
    (folder / "notes.csv").write_text("symbol,date,time,price,size\n")
    return folder
