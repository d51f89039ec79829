"""
CLI entry point: gauntlet files | run | health.

Every command loads config from --config (default config.yaml). The run
command replays tick files through a strategy, journals broker events and
writes the run artifacts.
"""

import logging
import sys

import click
import yaml
from dotenv import load_dotenv

from config import ConfigError, load_config

load_dotenv()

logger = logging.getLogger("gauntlet")


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


def _load(ctx: click.Context):
    try:
        return load_config(ctx.obj["config_path"])
    except (FileNotFoundError, ConfigError) as exc:
        raise click.ClickException(str(exc)) from exc


def _parse_params(pairs: tuple[str, ...]) -> dict:
    """``k=v`` pairs to a dict; values are parsed as YAML scalars (``3`` -> 3, ``true`` -> True)."""
    params: dict = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--param")
        params[key.strip()] = yaml.safe_load(value) if value.strip() else ""
    return params


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """gauntlet: replay recorded ticks through a strategy against a simulated broker."""
    _setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ---------- gauntlet files ----------


@cli.command()
@click.option("--folder", default=None, help="Tick folder (default: data.tick_folder from config).")
@click.option("--symbol", "symbols", multiple=True, help="Only list these symbols.")
@click.option("--date", "dates", multiple=True, type=int, help="Only list these dates (YYYYMMDD).")
@click.pass_context
def files(ctx: click.Context, folder: str | None, symbols: tuple[str, ...], dates: tuple[int, ...]) -> None:
    """List the tick files available for replay."""
    cfg = _load(ctx)
    from cli.output import format_tick_files
    from data import discover_tick_files

    folder = folder or cfg.data.tick_folder
    try:
        found = discover_tick_files(folder, cfg.data.file_pattern, symbols=symbols or None, dates=dates or None)
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(format_tick_files(found))


# ---------- gauntlet run ----------


@cli.command()
@click.option("--strategy", "strategy_ref", default=None, help="Strategy as package.module:ClassName (default: backtest.strategy).")
@click.option("--folder", default=None, help="Tick folder (default: data.tick_folder from config).")
@click.option("--symbol", "symbols", multiple=True, help="Replay only these symbols.")
@click.option("--date", "dates", multiple=True, type=int, help="Replay only these dates (YYYYMMDD).")
@click.option("--exchange", default=None, help="Drop ticks from any other exchange.")
@click.option("--account", "account_id", default=None, help="Account the strategy trades in.")
@click.option("--param", "params", multiple=True, help="Strategy parameter as key=value (repeatable).")
@click.option("--name", "run_name", default=None, help="Run name used for output files.")
@click.option("--no-export", is_flag=True, default=False, help="Do not write trades/orders/indicators files.")
@click.pass_context
def run(
    ctx: click.Context,
    strategy_ref: str | None,
    folder: str | None,
    symbols: tuple[str, ...],
    dates: tuple[int, ...],
    exchange: str | None,
    account_id: str | None,
    params: tuple[str, ...],
    run_name: str | None,
    no_export: bool,
) -> None:
    """Replay tick files through a strategy and report the fills.

    Files are replayed in (date, symbol) order. Ctrl-C cancels the run
    between ticks; the partial result is still reported.
    """
    cfg = _load(ctx)
    from backtest import BacktestDriver, RunState
    from cli.export import export_result
    from cli.output import format_run_summary
    from cli.structured_log import StructuredEventLogger
    from data import discover_tick_files
    from journal import JournalWriter
    from strategy import StrategyLoadError, load_strategy
    from trade_core import Account

    strategy_ref = strategy_ref or cfg.backtest.strategy
    if not strategy_ref:
        raise click.UsageError("No strategy given. Use --strategy or set backtest.strategy in config.")
    strategy_params = {**cfg.backtest.strategy_params, **_parse_params(params)}
    try:
        strategy = load_strategy(strategy_ref, **strategy_params)
    except StrategyLoadError as exc:
        raise click.ClickException(str(exc)) from exc

    folder = folder or cfg.data.tick_folder
    try:
        tick_files = discover_tick_files(folder, cfg.data.file_pattern, symbols=symbols or None, dates=dates or None)
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    if not tick_files:
        click.echo("No tick files match. Run 'gauntlet files' to see what is available.")
        return

    account = Account(account_id or cfg.backtest.account)
    driver = BacktestDriver(account=account, bar_interval=cfg.backtest.bar_interval_seconds, name=run_name)
    driver.configure(
        [tf.path for tf in tick_files],
        strategy,
        exchange_filter=exchange if exchange is not None else cfg.backtest.exchange_filter,
    )

    journal = JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout)
    events = StructuredEventLogger(
        driver.name,
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    broker = driver.broker
    broker.on_order.connect(journal.order)
    broker.on_order.connect(events.order_accepted)
    broker.on_fill.connect(journal.fill)
    broker.on_fill.connect(events.fill)
    broker.on_warning.connect(journal.warning)
    broker.on_warning.connect(events.warning)
    driver.on_progress.connect(events.progress)
    driver.on_progress.connect(lambda pct: click.echo(f"  {pct:3d}%", err=True))

    strategy_name = getattr(strategy, "name", "") or type(strategy).__name__
    click.echo(f"Running {strategy_name} on {len(tick_files)} tick file(s) as {account.id} ...")
    events.run_start(len(tick_files), strategy_name, account.id)

    future = driver.start()
    try:
        result = future.result()
    except KeyboardInterrupt:
        click.echo("Cancelling ...", err=True)
        driver.cancel()
        result = future.result()

    journal.run(result.name, result.state.value, result.ticks_processed, result.fill_count, result.error)
    if result.error is not None:
        events.error(f"Backtest {result.name} faulted", detail=str(result.error))
    events.run_complete(result.state.value, result.ticks_processed, result.fill_count)

    click.echo(format_run_summary(result))

    if not no_export:
        written = export_result(
            result,
            cfg.output.directory,
            unique=cfg.output.unique_names,
            trades=cfg.output.trades_csv,
            orders=cfg.output.orders_csv,
            indicators=cfg.output.indicators_csv,
        )
        for path in written:
            click.echo(f"Wrote {path}")

    if result.state is RunState.FAULTED:
        raise SystemExit(1)


# ---------- gauntlet health ----------


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check system health: config, tick folder, configured strategy.

    Exit code 0 = healthy, 1 = unhealthy.
    """
    checks: list[tuple[str, bool, str]] = []

    try:
        cfg = load_config(ctx.obj["config_path"])
        checks.append(("config", True, f"loaded (account={cfg.backtest.account})"))
    except Exception as e:
        checks.append(("config", False, str(e)))
        _print_health(checks)
        raise SystemExit(1)

    try:
        from data import discover_tick_files
        found = discover_tick_files(cfg.data.tick_folder, cfg.data.file_pattern)
        if found:
            symbols = {tf.symbol for tf in found}
            checks.append(("ticks", True, f"{len(found)} file(s), {len(symbols)} symbol(s) in {cfg.data.tick_folder}"))
        else:
            checks.append(("ticks", False, f"no tick files in {cfg.data.tick_folder}"))
    except Exception as e:
        checks.append(("ticks", False, str(e)))

    if cfg.backtest.strategy:
        try:
            from strategy import load_strategy
            load_strategy(cfg.backtest.strategy, **cfg.backtest.strategy_params)
            checks.append(("strategy", True, cfg.backtest.strategy))
        except Exception as e:
            checks.append(("strategy", False, str(e)))

    _print_health(checks)
    healthy = all(ok for _, ok, _ in checks)
    raise SystemExit(0 if healthy else 1)


def _print_health(checks: list[tuple[str, bool, str]]) -> None:
    for name, ok, detail in checks:
        status = "OK" if ok else "FAIL"
        click.echo(f"  [{status}] {name}: {detail}")
    healthy = all(ok for _, ok, _ in checks)
    click.echo(f"\nHealth: {'HEALTHY' if healthy else 'UNHEALTHY'}")


if __name__ == "__main__":
    cli()
