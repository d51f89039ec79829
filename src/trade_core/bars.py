"""
Rolling bar aggregation: trade ticks -> fixed-interval OHLCV bars.

Quote-only ticks never open or update a bar. ``new_bar`` is True right after
the tick that opened the current bar.
"""

from __future__ import annotations

from trade_core.contracts import Bar, Tick, normalize_symbol

FIVE_MINUTES = 300


def _bucket_time(seconds: int) -> int:
    hh, rest = divmod(seconds, 3600)
    mm, ss = divmod(rest, 60)
    return hh * 10_000 + mm * 100 + ss


class BarList:
    """Bars for one symbol, oldest first."""

    def __init__(self, symbol: str, interval: int = FIVE_MINUTES) -> None:
        if interval <= 0:
            raise ValueError(f"Bar interval must be positive, got {interval}")
        self.symbol = normalize_symbol(symbol)
        self.interval = interval
        self._bars: list[Bar] = []
        self._key: tuple[int, int] | None = None
        self.new_bar = False

    def __len__(self) -> int:
        return len(self._bars)

    @property
    def bars(self) -> list[Bar]:
        return self._bars

    @property
    def recent_bar(self) -> Bar | None:
        return self._bars[-1] if self._bars else None

    def has(self, count: int) -> bool:
        """True once at least ``count`` bars exist."""
        return len(self._bars) >= count

    def add_tick(self, tick: Tick) -> bool:
        """Fold a tick into the current bar. Returns True if a new bar was opened."""
        self.new_bar = False
        if tick.symbol != self.symbol or not tick.is_trade:
            return False
        bucket = tick.seconds_of_day // self.interval
        key = (tick.date, bucket)
        size = abs(tick.size)
        if key != self._key:
            self._key = key
            self._bars.append(
                Bar(
                    symbol=self.symbol,
                    date=tick.date,
                    time=_bucket_time(bucket * self.interval),
                    open=tick.price,
                    high=tick.price,
                    low=tick.price,
                    close=tick.price,
                    volume=size,
                    tick_count=1,
                )
            )
            self.new_bar = True
            return True
        bar = self._bars[-1]
        bar.high = max(bar.high, tick.price)
        bar.low = min(bar.low, tick.price)
        bar.close = tick.price
        bar.volume += size
        bar.tick_count += 1
        return False

    def highest_high(self, lookback: int | None = None) -> float:
        window = self._bars if lookback is None else self._bars[-lookback:]
        return max((b.high for b in window), default=0.0)

    def lowest_low(self, lookback: int | None = None) -> float:
        window = self._bars if lookback is None else self._bars[-lookback:]
        return min((b.low for b in window), default=0.0)

    def average_volume(self, lookback: int | None = None) -> float:
        window = self._bars if lookback is None else self._bars[-lookback:]
        if not window:
            return 0.0
        return sum(b.volume for b in window) / len(window)
