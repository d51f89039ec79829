"""
Simulated broker: per-account order and trade blotters, print-driven matching.

Single writer. During a backtest the worker thread owns the broker; no locks.
Accounts are keyed by id and scanned in registration order, orders in
insertion order, so fills are reproducible run to run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from execution.events import EventHook
from trade_core.contracts import DEFAULT_ACCOUNT, Account, Tick, normalize_symbol
from trade_core.errors import UnknownAccountError
from trade_core.order import Order
from trade_core.position import Position, close_pt

logger = logging.getLogger("gauntlet.broker")

AccountRef = Account | str | None


def _can_fill(order: Order, tick: Tick, available: int) -> bool:
    """Eligibility of a pending order against one trade print."""
    if order.size > available:
        return False
    if order.price == 0 and order.stop == 0:
        return True  # market
    if order.stop == 0:
        # limit
        return tick.price <= order.price if order.is_buy else tick.price >= order.price
    if order.price == 0:
        # stop
        return tick.price >= order.stop if order.is_buy else tick.price <= order.stop
    return False


class Broker:
    """Matching engine holding open orders and settled trades per account.

    Signals (all synchronous, fired on the calling thread):

    - ``on_tick(tick)``: every tick passed to :meth:`execute`, before matching
    - ``on_order(order)``: an order was accepted by :meth:`send_order`
    - ``on_fill(trade)``: an order was filled
    - ``on_warning(message)``: an order or account was rejected
    """

    def __init__(self, default_account: Account = DEFAULT_ACCOUNT) -> None:
        self.default_account = default_account
        self.on_tick = EventHook("tick")
        self.on_order = EventHook("order")
        self.on_fill = EventHook("fill")
        self.on_warning = EventHook("warning")
        self._accounts: dict[str, Account] = {}
        self._orders: dict[str, list[Order]] = {}
        self._trades: dict[str, list[Order]] = {}
        self.reset()

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def _account_id(self, account: AccountRef) -> str:
        if account is None:
            return self.default_account.id
        if isinstance(account, Account):
            return account.id
        return account

    def add_account(self, account: Account) -> None:
        """Register ``account`` without sending an order. Re-registering is a no-op."""
        self._register(account)

    def _register(self, account: Account) -> None:
        if account.id not in self._accounts:
            self._accounts[account.id] = account
            self._orders[account.id] = []
            self._trades[account.id] = []
            logger.debug("Registered account %s", account.id)

    def _require(self, account: AccountRef) -> str:
        account_id = self._account_id(account)
        if account_id not in self._accounts:
            raise UnknownAccountError(account_id)
        return account_id

    @property
    def accounts(self) -> list[str]:
        """Registered account ids, in registration order."""
        return list(self._accounts)

    def get_account(self, account_id: str) -> Account:
        return self._accounts[self._require(account_id)]

    # ------------------------------------------------------------------
    # Order entry and matching
    # ------------------------------------------------------------------

    def _resolve(self, account: AccountRef) -> Account | None:
        if account is None:
            return self.default_account
        if isinstance(account, Account):
            return account
        if isinstance(account, str):
            return self._accounts.get(account) or Account(account)
        return None

    def _is_resting(self, order: Order) -> bool:
        return any(o is order for orders in self._orders.values() for o in orders)

    def _reject(self, message: str) -> bool:
        logger.warning(message)
        self.on_warning.emit(message)
        return False

    def send_order(self, order: Order, account: AccountRef = None) -> bool:
        """Queue ``order`` on ``account`` (default account if omitted).

        ``account`` may be an Account or an account id. Returns False and
        raises a warning signal if the order or the account is invalid, or if
        the order is already filled or already resting; nothing is queued in
        that case.
        """
        resolved = self._resolve(account)
        if not order.is_valid:
            return self._reject(f"Invalid order: {order}")
        if resolved is None or not resolved.is_valid:
            return self._reject(f"Invalid account: {account!r}")
        if order.is_filled:
            return self._reject(f"Order already filled: {order}")
        if self._is_resting(order):
            return self._reject(f"Order already open for {order.account}: {order}")
        self._register(resolved)
        order.account = resolved.id
        self._orders[resolved.id].append(order)
        self.on_order.emit(order)
        return True

    def execute(self, tick: Tick) -> int:
        """Fill every open order the tick allows. Returns the number of fills.

        A single print cannot fill more than its own size across all orders.
        Orders sent while this call is running (e.g. from a fill observer)
        wait for the next tick.
        """
        self.on_tick.emit(tick)
        if not tick.is_trade:
            return 0
        available = abs(tick.size)
        filled = 0
        for account_id, orders in list(self._orders.items()):
            for order in list(orders):
                if order.symbol != tick.symbol or not _can_fill(order, tick, available):
                    continue
                order.fill(tick)
                orders.remove(order)
                self._trades[account_id].append(order)
                available -= order.size
                filled += 1
                logger.debug("Filled %s for %s", order, account_id)
                self.on_fill.emit(order)
        return filled

    def reset(self) -> None:
        """Drop every account, order and trade; re-create the empty default account."""
        self._accounts.clear()
        self._orders.clear()
        self._trades.clear()
        self._register(self.default_account)

    def cancel_orders(self, account: AccountRef = None) -> None:
        """Clear one account's open orders. Its trade history is kept."""
        self._orders[self._require(account)].clear()

    # ------------------------------------------------------------------
    # Blotters (live lists, not copies)
    # ------------------------------------------------------------------

    def get_order_list(self, account: AccountRef = None) -> list[Order]:
        return self._orders[self._require(account)]

    def get_trade_list(self, account: AccountRef = None) -> list[Order]:
        return self._trades[self._require(account)]

    def _trades_for(self, account: AccountRef, symbol: str | None) -> Iterable[Order]:
        trades = self.get_trade_list(account)
        if symbol is None:
            return trades
        symbol = normalize_symbol(symbol)
        return (t for t in trades if t.symbol == symbol)

    # ------------------------------------------------------------------
    # Positions and PnL (replayed from trade history)
    # ------------------------------------------------------------------

    def get_open_position(self, symbol: str, account: AccountRef = None) -> Position:
        pos = Position(symbol)
        for trade in self._trades_for(account, pos.symbol):
            pos.adjust(trade)
        return pos

    def get_closed_pl(self, symbol: str | None = None, account: AccountRef = None) -> float:
        """Realized PnL in currency; all symbols of the account if ``symbol`` is None."""
        positions: dict[str, Position] = {}
        pl = 0.0
        for trade in self._trades_for(account, symbol):
            pos = positions.setdefault(trade.symbol, Position(trade.symbol))
            pl += pos.adjust(trade)
        return pl

    def get_closed_pt(self, symbol: str | None = None, account: AccountRef = None) -> float:
        """Realized points (per-unit PnL, currency-free); all symbols if ``symbol`` is None."""
        positions: dict[str, Position] = {}
        points = 0.0
        for trade in self._trades_for(account, symbol):
            pos = positions.setdefault(trade.symbol, Position(trade.symbol))
            points += close_pt(pos, trade)
            pos.adjust(trade)
        return points

    # ------------------------------------------------------------------
    # Snapshots for run results
    # ------------------------------------------------------------------

    def order_blotters(self) -> dict[str, list[Order]]:
        return {aid: list(orders) for aid, orders in self._orders.items()}

    def trade_blotters(self) -> dict[str, list[Order]]:
        return {aid: list(trades) for aid, trades in self._trades.items()}
