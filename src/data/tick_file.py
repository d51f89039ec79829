"""
Tick files: one CSV per symbol and trading day, named ``{SYMBOL}{YYYYMMDD}.csv``.

Columns (header required): symbol,date,time,price,size,exchange
Optional columns:          bid,ask,bid_size,ask_size

Rows are yielded in file order; no sorting is applied.
"""

from __future__ import annotations

import csv
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from trade_core.contracts import Tick, normalize_symbol

_NAME_RE = re.compile(r"^(?P<symbol>[A-Za-z]+)(?P<date>\d{8})")
REQUIRED_COLUMNS = ("symbol", "date", "time", "price", "size")


class TickFileError(ValueError):
    """Raised when a tick file is missing required columns or has a bad row."""


@dataclass(frozen=True)
class TickFile:
    path: Path
    symbol: str
    date: int


def parse_tick_filename(path: str | Path) -> TickFile | None:
    """Symbol and date from the file name, or None if the name does not match."""
    p = Path(path)
    m = _NAME_RE.match(p.name)
    if not m:
        return None
    return TickFile(path=p, symbol=normalize_symbol(m.group("symbol")), date=int(m.group("date")))


def discover_tick_files(
    folder: str | Path,
    pattern: str = "*.csv",
    *,
    symbols: Iterable[str] | None = None,
    dates: Iterable[int] | None = None,
) -> list[TickFile]:
    """List tick files in ``folder``, optionally filtered, sorted by (date, symbol)."""
    root = Path(folder)
    if not root.is_dir():
        raise FileNotFoundError(f"Tick folder not found: {root}")
    wanted_symbols = {normalize_symbol(s) for s in symbols} if symbols else None
    wanted_dates = {int(d) for d in dates} if dates else None
    found: list[TickFile] = []
    for path in root.glob(pattern):
        tf = parse_tick_filename(path)
        if tf is None:
            continue
        if wanted_symbols is not None and tf.symbol not in wanted_symbols:
            continue
        if wanted_dates is not None and tf.date not in wanted_dates:
            continue
        found.append(tf)
    return sorted(found, key=lambda tf: (tf.date, tf.symbol, tf.path.name))


def _num(row: dict[str, str], key: str, cast: type) -> int | float:
    raw = (row.get(key) or "").strip()
    return cast(raw) if raw else cast(0)


def read_ticks(path: str | Path) -> Iterator[Tick]:
    """Yield ticks from one CSV tick file, in file order."""
    p = Path(path)
    with open(p, newline="") as f:
        reader = csv.DictReader(f)
        missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            raise TickFileError(f"{p.name}: missing columns {missing}")
        for line_no, row in enumerate(reader, start=2):
            try:
                yield Tick(
                    symbol=row["symbol"],
                    date=int(_num(row, "date", int)),
                    time=int(_num(row, "time", int)),
                    price=float(_num(row, "price", float)),
                    size=int(_num(row, "size", int)),
                    exchange=(row.get("exchange") or "").strip(),
                    bid=float(_num(row, "bid", float)),
                    ask=float(_num(row, "ask", float)),
                    bid_size=int(_num(row, "bid_size", int)),
                    ask_size=int(_num(row, "ask_size", int)),
                )
            except ValueError as exc:
                raise TickFileError(f"{p.name}:{line_no}: {exc}") from exc


def write_ticks(path: str | Path, ticks: Iterable[Tick]) -> int:
    """Write ticks to a CSV tick file. Returns the number of rows written."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    columns = ["symbol", "date", "time", "price", "size", "exchange", "bid", "ask", "bid_size", "ask_size"]
    count = 0
    with open(p, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(columns)
        for t in ticks:
            writer.writerow([getattr(t, c) for c in columns])
            count += 1
    return count
