"""
Human-readable run output for the terminal.
"""

from __future__ import annotations

from backtest.runner import BacktestResult
from data.tick_file import TickFile
from trade_core.order import Order
from trade_core.position import Position


def _fmt_volume(vol: int | float) -> str:
    if vol >= 1_000_000:
        return f"{vol / 1_000_000:.2f}M"
    if vol >= 1_000:
        return f"{vol / 1_000:.0f}K"
    return str(int(vol))


def format_tick_files(files: list[TickFile]) -> str:
    """Group discovered tick files by symbol with their dates."""
    if not files:
        return "No tick files found."
    by_symbol: dict[str, list[int]] = {}
    for tf in files:
        by_symbol.setdefault(tf.symbol, []).append(tf.date)
    lines = [f"{len(files)} tick file(s), {len(by_symbol)} symbol(s):"]
    for symbol in sorted(by_symbol):
        dates = sorted(by_symbol[symbol])
        span = f"{dates[0]}" if len(dates) == 1 else f"{dates[0]} -> {dates[-1]}"
        lines.append(f"  {symbol:8s} {len(dates):>4d} day(s)  {span}")
    return "\n".join(lines)


def format_trade(trade: Order) -> str:
    return (
        f"{trade.fill_date} {trade.fill_time:06d}  {trade.side.name:4s} {trade.fill_size:>6d} "
        f"{trade.symbol} @ {trade.fill_price:.4f}"
    )


def _account_summary(account_id: str, trades: list[Order]) -> list[str]:
    positions: dict[str, Position] = {}
    closed = 0.0
    volume = 0
    for trade in trades:
        pos = positions.setdefault(trade.symbol, Position(trade.symbol))
        closed += pos.adjust(trade)
        volume += trade.fill_size
    lines = [f"  {account_id}: {len(trades)} trade(s), volume {_fmt_volume(volume)}, closed PL {closed:+,.2f}"]
    for symbol, pos in positions.items():
        if not pos.is_flat:
            lines.append(f"    open {symbol}: {pos.size:+d} @ avg {pos.avg_price:.4f}")
    return lines


def format_run_summary(result: BacktestResult, *, max_trades: int = 10) -> str:
    """Format the outcome of a run: state, counts, per-account PL, last trades."""
    elapsed = ""
    if result.started_at and result.finished_at:
        elapsed = f" in {(result.finished_at - result.started_at).total_seconds():.2f}s"
    lines = [
        f"=== Backtest: {result.name} ===",
        f"State        : {result.state.value}{elapsed}",
        f"Sources      : {result.sources_completed}",
        f"Ticks        : {result.ticks_processed}",
        f"Fills        : {result.fill_count}",
    ]
    if result.error is not None:
        lines.append(f"Error        : {result.error}")
    open_orders = result.all_orders()
    if open_orders:
        lines.append(f"Open orders  : {len(open_orders)}")
    if result.trades:
        lines.append("")
        lines.append("Accounts:")
        for account_id, trades in result.trades.items():
            lines.extend(_account_summary(account_id, trades))

    trades = result.all_trades()
    if trades:
        shown = trades[-max_trades:]
        lines.append("")
        lines.append(f"Last {len(shown)} trade(s):")
        for trade in shown:
            lines.append(f"  {format_trade(trade)}")
    lines.append("===")
    return "\n".join(lines)
