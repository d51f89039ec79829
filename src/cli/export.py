"""
Run artifacts written after a backtest: trades, open orders and indicator snapshots.

File names are ``{run}.{kind}.csv`` when unique names are on, else ``{kind}.csv``
(overwritten on every run).
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from backtest.runner import BacktestResult
from trade_core.order import Order
from trade_core.position import Position

logger = logging.getLogger("gauntlet.export")

TRADE_COLUMNS = ["account", "date", "time", "symbol", "side", "size", "price", "comment", "closed_pl", "cumulative_pl"]


def artifact_path(directory: str | Path, run_name: str, kind: str, *, unique: bool = True) -> Path:
    base = f"{run_name}.{kind}.csv" if unique else f"{kind}.csv"
    return Path(directory) / base


def trade_rows(trades: list[Order]) -> list[dict]:
    """One row per trade with the PnL that trade realized and the running total.

    Positions are tracked per (account, symbol) so mixed blotters stay separate.
    """
    positions: dict[tuple[str, str], Position] = {}
    cumulative: dict[str, float] = {}
    rows: list[dict] = []
    for trade in trades:
        pos = positions.setdefault((trade.account, trade.symbol), Position(trade.symbol))
        pl = pos.adjust(trade)
        cumulative[trade.account] = cumulative.get(trade.account, 0.0) + pl
        rows.append(
            {
                "account": trade.account,
                "date": trade.fill_date,
                "time": trade.fill_time,
                "symbol": trade.symbol,
                "side": trade.side.value,
                "size": trade.fill_size,
                "price": trade.fill_price,
                "comment": trade.comment,
                "closed_pl": round(pl, 6),
                "cumulative_pl": round(cumulative[trade.account], 6),
            }
        )
    return rows


def write_trades(path: str | Path, trades: list[Order]) -> int:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = trade_rows(trades)
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=TRADE_COLUMNS)
        writer.writeheader()
        writer.writerows(rows)
    return len(rows)


def write_orders(path: str | Path, orders: list[Order]) -> int:
    """Open orders as order text records, one per line."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        for order in orders:
            f.write(order.serialize() + "\n")
    return len(orders)


def write_indicators(path: str | Path, names: tuple[str, ...], rows: list[tuple]) -> int:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        if names:
            writer.writerow(names)
        writer.writerows(rows)
    return len(rows)


def export_result(
    result: BacktestResult,
    directory: str | Path,
    *,
    unique: bool = True,
    trades: bool = True,
    orders: bool = True,
    indicators: bool = True,
) -> list[Path]:
    """Write the selected artifacts for ``result``; returns the paths written."""
    written: list[Path] = []
    if trades:
        path = artifact_path(directory, result.name, "trades", unique=unique)
        write_trades(path, result.all_trades())
        written.append(path)
    if orders:
        path = artifact_path(directory, result.name, "orders", unique=unique)
        write_orders(path, result.all_orders())
        written.append(path)
    if indicators and (result.indicators or result.indicator_names):
        path = artifact_path(directory, result.name, "indicators", unique=unique)
        write_indicators(path, result.indicator_names, result.indicators)
        written.append(path)
    for path in written:
        logger.info("Wrote %s", path)
    return written
