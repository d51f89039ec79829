"""
Structured journal: append-only JSON lines, one per broker or run event.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from trade_core.order import Order


def _serialize(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, BaseException):
        return f"{type(obj).__name__}: {obj}"
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_serialize(x) for x in obj]
    if hasattr(obj, "__dict__") and not isinstance(obj, type):
        return {k: _serialize(v) for k, v in vars(obj).items() if not k.startswith("_")}
    return obj


class JournalWriter:
    """Append-only journal. Each line is a JSON object with event type and payload."""

    def __init__(self, path: str | Path, *, echo_stdout: bool = False) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._echo = echo_stdout

    @property
    def path(self) -> Path:
        return self._path

    def _write(self, event_type: str, payload: dict) -> None:
        record = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event_type, **payload}
        line = json.dumps(_serialize(record)) + "\n"
        with open(self._path, "a") as f:
            f.write(line)
        if self._echo:
            print(line.rstrip())

    def order(self, order: Order, **extra: Any) -> None:
        self._write(
            "order",
            {
                "account": order.account,
                "symbol": order.symbol,
                "side": order.side.value,
                "size": order.size,
                "type": order.order_type.value,
                "price": order.price,
                "stop": order.stop,
                "date": order.date,
                "time": order.time,
                "comment": order.comment,
                **extra,
            },
        )

    def fill(self, trade: Order, **extra: Any) -> None:
        self._write(
            "fill",
            {
                "account": trade.account,
                "symbol": trade.symbol,
                "side": trade.side.value,
                "size": trade.fill_size,
                "price": trade.fill_price,
                "date": trade.fill_date,
                "time": trade.fill_time,
                "comment": trade.comment,
                **extra,
            },
        )

    def warning(self, message: str, **extra: Any) -> None:
        self._write("warning", {"message": message, **extra})

    def run(self, name: str, state: str, ticks: int, fills: int, error: BaseException | None = None, **extra: Any) -> None:
        self._write("run", {"name": name, "state": state, "ticks": ticks, "fills": fills, "error": error, **extra})
