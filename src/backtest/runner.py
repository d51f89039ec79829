"""
Tick replay driver: stream tick sources through Broker and Strategy, off the caller's thread.

Per tick, in this order:
  1. update the rolling bars of the tick's symbol
  2. Broker.execute(tick) against the orders already resting
  3. Strategy.evaluate(tick, bars) -> desired signed position
  4. if the desired position differs from position + open orders, send the difference

Step 2 runs before step 4, so an order can only fill on a later tick than the
one that produced it. Sources are replayed in the order given and each source
in its own order; nothing is merged or sorted.
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Iterator, Sequence, Union

from execution.broker import Broker
from execution.events import EventHook
from strategy.base import StrategyPort, as_decision
from trade_core.bars import FIVE_MINUTES, BarList
from trade_core.contracts import Account, Tick
from trade_core.errors import BacktestStateError, StrategyFault
from trade_core.order import Order
from trade_core.position import Position

logger = logging.getLogger("gauntlet.backtest")

TickSource = Union[Iterable[Tick], str, "os.PathLike[str]"]


class RunState(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAULTED = "FAULTED"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.CANCELLED, RunState.FAULTED)


@dataclass
class BacktestResult:
    """Blotters and indicator snapshots accumulated by one run."""

    name: str
    state: RunState
    orders: dict[str, list[Order]] = field(default_factory=dict)
    trades: dict[str, list[Order]] = field(default_factory=dict)
    indicators: list[tuple[Any, ...]] = field(default_factory=list)
    indicator_names: tuple[str, ...] = ()
    ticks_processed: int = 0
    fill_count: int = 0
    sources_completed: int = 0
    error: BaseException | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.state is not RunState.FAULTED

    def all_trades(self) -> list[Order]:
        """Every trade, accounts in registration order."""
        return [t for trades in self.trades.values() for t in trades]

    def all_orders(self) -> list[Order]:
        """Every order still open at the end of the run."""
        return [o for orders in self.orders.values() for o in orders]


def _default_name() -> str:
    return datetime.now().strftime("%Y%m%d.%H%M")


class BacktestDriver:
    """One run at a time. Configure, then :meth:`start` (async) or :meth:`run` (inline).

    Signals:

    - ``on_progress(percent)``: int 0-100, non-decreasing, after each source
    - ``on_completed(result)``: once per run, for every terminal state

    Broker signals (``driver.broker.on_fill`` etc.) also fire on the worker thread.
    """

    def __init__(
        self,
        broker: Broker | None = None,
        *,
        account: Account | None = None,
        bar_interval: int = FIVE_MINUTES,
        name: str | None = None,
    ) -> None:
        self.broker = broker or Broker()
        self.account = account or self.broker.default_account
        self.bar_interval = bar_interval
        self.name = name or _default_name()
        self.on_progress = EventHook("progress")
        self.on_completed = EventHook("completed")
        self._state = RunState.IDLE
        self._cancel = threading.Event()
        self._future: Future[BacktestResult] | None = None
        self._result: BacktestResult | None = None
        self._sources: tuple[TickSource, ...] = ()
        self._strategy: StrategyPort | None = None
        self._exchange_filter = ""
        self._base_path: Path | None = None

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def result(self) -> BacktestResult | None:
        """Result of the last finished run; None while running."""
        return self._result

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    def configure(
        self,
        tick_sources: Sequence[TickSource],
        strategy: StrategyPort,
        exchange_filter: str = "",
        base_path: str | Path | None = None,
    ) -> None:
        """Set what the next run replays.

        ``tick_sources`` are iterables of Tick or tick-file paths; relative
        paths are resolved against ``base_path``. ``exchange_filter`` (if not
        empty) drops ticks from any other exchange.
        """
        if self._state is RunState.RUNNING:
            raise BacktestStateError("Cannot reconfigure while a run is active")
        self._sources = tuple(tick_sources)
        self._strategy = strategy
        self._exchange_filter = (exchange_filter or "").strip().upper()
        self._base_path = Path(base_path) if base_path else None

    def start(self) -> Future[BacktestResult]:
        """Run on a background worker. The returned future resolves to the result."""
        self._begin()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"backtest-{self.name}")
        try:
            self._future = executor.submit(self._run_loop)
        finally:
            executor.shutdown(wait=False)
        return self._future

    def run(self) -> BacktestResult:
        """Run on the calling thread and return the result."""
        self._begin()
        return self._run_loop()

    def cancel(self) -> None:
        """Ask the active run to stop. Observed between ticks; no deadline."""
        self._cancel.set()

    def wait(self, timeout: float | None = None) -> BacktestResult:
        """Block until the run started with :meth:`start` finishes."""
        if self._future is None:
            raise BacktestStateError("No run has been started")
        return self._future.result(timeout)

    def _begin(self) -> None:
        if self._state is RunState.RUNNING:
            raise BacktestStateError("A run is already active on this driver")
        if self._strategy is None:
            raise BacktestStateError("configure() must be called before starting a run")
        self._cancel.clear()
        self._result = None
        self._state = RunState.RUNNING

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _open(self, source: TickSource) -> Iterator[Tick]:
        if isinstance(source, (str, os.PathLike)):
            from data.tick_file import read_ticks

            path = Path(source)
            if self._base_path is not None and not path.is_absolute():
                path = self._base_path / path
            return read_ticks(path)
        return iter(source)

    def _run_loop(self) -> BacktestResult:
        sources = self._sources
        strategy = self._strategy
        assert strategy is not None
        result = BacktestResult(
            name=self.name,
            state=RunState.RUNNING,
            indicator_names=tuple(getattr(strategy, "indicator_names", ()) or ()),
            started_at=datetime.now(timezone.utc),
        )
        bars: dict[str, BarList] = {}
        positions: dict[str, Position] = {}

        def track_fill(trade: Order) -> None:
            if trade.account == self.account.id:
                positions.setdefault(trade.symbol, Position(trade.symbol)).adjust(trade)

        self.broker.reset()
        self.broker.add_account(self.account)
        self.broker.on_fill.connect(track_fill)
        logger.info("Backtest %s started: %d source(s), account %s", self.name, len(sources), self.account.id)
        try:
            reset = getattr(strategy, "reset", None)
            if callable(reset):
                reset()
            last_progress = 0
            for index, source in enumerate(sources):
                if self._cancel.is_set():
                    break
                ticks = self._open(source)
                try:
                    for tick in ticks:
                        if self._cancel.is_set():
                            break
                        self._step(tick, strategy, bars, positions, result)
                finally:
                    close = getattr(ticks, "close", None)
                    if callable(close):
                        close()
                if self._cancel.is_set():
                    break
                result.sources_completed = index + 1
                progress = min(100, (index + 1) * 100 // len(sources))
                if progress > last_progress:
                    last_progress = progress
                    self.on_progress.emit(progress)
            if result.sources_completed == len(sources):
                result.state = RunState.COMPLETED
            else:
                result.state = RunState.CANCELLED
        except StrategyFault as exc:
            logger.error("Backtest %s faulted: %s", self.name, exc)
            result.state = RunState.FAULTED
            result.error = exc
        except Exception as exc:
            logger.exception("Backtest %s faulted", self.name)
            result.state = RunState.FAULTED
            result.error = exc
        finally:
            self.broker.on_fill.disconnect(track_fill)

        result.orders = self.broker.order_blotters()
        result.trades = self.broker.trade_blotters()
        result.finished_at = datetime.now(timezone.utc)
        self._result = result
        self._state = result.state
        logger.info(
            "Backtest %s %s: %d ticks, %d fills",
            self.name,
            result.state.value.lower(),
            result.ticks_processed,
            result.fill_count,
        )
        self.on_completed.emit(result)
        return result

    def _step(
        self,
        tick: Tick,
        strategy: StrategyPort,
        bars: dict[str, BarList],
        positions: dict[str, Position],
        result: BacktestResult,
    ) -> None:
        if self._exchange_filter and tick.exchange.upper() != self._exchange_filter:
            return
        result.ticks_processed += 1

        bar_list = bars.get(tick.symbol)
        if bar_list is None:
            bar_list = bars[tick.symbol] = BarList(tick.symbol, self.bar_interval)
        bar_list.add_tick(tick)

        result.fill_count += self.broker.execute(tick)

        try:
            decision = as_decision(strategy.evaluate(tick, bar_list))
        except Exception as exc:
            raise StrategyFault(
                f"Strategy {getattr(strategy, 'name', type(strategy).__name__)} failed on "
                f"{tick.symbol} {tick.date}:{tick.time}: {exc}"
            ) from exc
        if decision.indicators is not None:
            result.indicators.append(tuple(decision.indicators))

        position = positions.get(tick.symbol)
        exposure = position.size if position else 0
        exposure += sum(o.signed_size for o in self.broker.get_order_list(self.account) if o.symbol == tick.symbol)
        delta = decision.target - exposure
        if delta != 0:
            order = Order.from_signed(
                tick.symbol,
                delta,
                date=tick.date,
                time=tick.time,
                exchange=tick.exchange,
                comment=getattr(strategy, "name", ""),
            )
            self.broker.send_order(order, self.account)
