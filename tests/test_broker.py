"""Tests for the simulated broker: order entry, matching, blotters, PnL, signals."""

import pytest

from execution.broker import Broker
from trade_core.contracts import DEFAULT_ACCOUNT, Account, Side, Tick
from trade_core.errors import UnknownAccountError
from trade_core.order import Order


def _print(price: float, size: int = 100, symbol: str = "SPY", time: int = 93000) -> Tick:
    return Tick.new_trade(symbol, 20080509, time, price, size)


class TestSendOrder:
    def test_valid_order_queued_once_and_tagged(self, broker: Broker, acct: Account) -> None:
        o = Order("SPY", Side.BUY, 100)
        assert broker.send_order(o, acct) is True
        orders = broker.get_order_list(acct)
        assert orders.count(o) == 1
        assert o.account == "ACC1"

    def test_default_account(self, broker: Broker) -> None:
        o = Order("SPY", Side.SELL, 10)
        assert broker.send_order(o)
        assert broker.get_order_list() == [o]
        assert o.account == DEFAULT_ACCOUNT.id

    @pytest.mark.parametrize("order", [Order("SPY", Side.BUY, 0), Order("", Side.BUY, 100)])
    def test_invalid_order_warns(self, broker: Broker, acct: Account, order: Order) -> None:
        broker.add_account(acct)
        warnings: list[str] = []
        broker.on_warning.connect(warnings.append)
        assert broker.send_order(order, acct) is False
        assert len(warnings) == 1
        assert broker.get_order_list(acct) == []

    def test_invalid_account_warns(self, broker: Broker) -> None:
        warnings: list[str] = []
        broker.on_warning.connect(warnings.append)
        assert broker.send_order(Order("SPY", Side.BUY, 1), Account("")) is False
        assert "Invalid account" in warnings[0]
        assert broker.accounts == ["DEFAULT"]

    def test_accounts_keyed_by_id(self, broker: Broker) -> None:
        broker.send_order(Order("SPY", Side.BUY, 1), Account("A", "one"))
        broker.send_order(Order("SPY", Side.BUY, 1), Account("A", "other instance"))
        assert broker.accounts == ["DEFAULT", "A"]
        assert len(broker.get_order_list("A")) == 2
        assert broker.get_account("A").name == "one"

    def test_account_by_id(self, broker: Broker, acct: Account) -> None:
        broker.add_account(acct)
        o = Order("SPY", Side.BUY, 1)
        assert broker.send_order(o, "ACC1") is True
        assert broker.get_order_list(acct) == [o]
        assert broker.send_order(Order("SPY", Side.BUY, 1), "NEW") is True
        assert broker.accounts == ["DEFAULT", "ACC1", "NEW"]

    def test_empty_account_id_warns(self, broker: Broker) -> None:
        warnings: list[str] = []
        broker.on_warning.connect(warnings.append)
        assert broker.send_order(Order("SPY", Side.BUY, 1), "") is False
        assert "Invalid account" in warnings[0]
        assert broker.accounts == ["DEFAULT"]

    def test_resting_order_not_queued_twice(self, broker: Broker, acct: Account) -> None:
        o = Order("SPY", Side.BUY, 100)
        warnings: list[str] = []
        broker.on_warning.connect(warnings.append)
        assert broker.send_order(o, acct) is True
        assert broker.send_order(o, acct) is False
        assert broker.send_order(o, Account("OTHER")) is False
        assert len(warnings) == 2
        assert broker.get_order_list(acct).count(o) == 1
        assert o.account == "ACC1"

        assert broker.execute(_print(10.0, 1000)) == 1
        assert broker.get_order_list(acct) == []
        assert broker.get_trade_list(acct) == [o]

    def test_filled_order_refused(self, broker: Broker) -> None:
        trade = Order("SPY", Side.BUY, 100)
        broker.send_order(trade)
        broker.execute(_print(10.0, 100))
        warnings: list[str] = []
        broker.on_warning.connect(warnings.append)
        assert broker.send_order(trade) is False
        assert "already filled" in warnings[0]

        behind = Order("SPY", Side.SELL, 10)
        assert broker.send_order(behind) is True
        assert broker.execute(_print(10.5, 100, time=93001)) == 1
        assert broker.get_order_list() == []
        assert broker.get_trade_list() == [trade, behind]


class TestMatching:
    def test_buy_limit_fills_at_print(self, broker: Broker) -> None:
        o = Order("SPY", Side.BUY, 100, price=10.0)
        broker.send_order(o)
        fills: list[Order] = []
        broker.on_fill.connect(fills.append)
        assert broker.execute(_print(10.0, 100)) == 1
        assert fills == [o]
        assert broker.get_order_list() == []
        assert broker.get_trade_list() == [o]
        assert o.fill_price == 10.0
        assert o.fill_size == 100

    def test_limit_not_reached(self, broker: Broker) -> None:
        broker.send_order(Order("SPY", Side.BUY, 100, price=10.0))
        broker.send_order(Order("SPY", Side.SELL, 100, price=11.0))
        assert broker.execute(_print(10.5, 1000)) == 0
        assert len(broker.get_order_list()) == 2

    def test_sell_limit_at_or_above(self, broker: Broker) -> None:
        broker.send_order(Order("SPY", Side.SELL, 100, price=11.0))
        assert broker.execute(_print(11.25, 100)) == 1

    def test_stops(self, broker: Broker) -> None:
        buy_stop = Order("SPY", Side.BUY, 10, stop=12.0)
        sell_stop = Order("SPY", Side.SELL, 10, stop=9.0)
        broker.send_order(buy_stop)
        broker.send_order(sell_stop)
        assert broker.execute(_print(11.0, 100)) == 0
        assert broker.execute(_print(12.0, 100)) == 1
        assert buy_stop.is_filled and not sell_stop.is_filled
        assert broker.execute(_print(8.5, 100)) == 1
        assert sell_stop.fill_price == 8.5

    def test_availability_depletes_across_accounts(self, broker: Broker) -> None:
        first, second = Account("A"), Account("B")
        a = Order("X", Side.BUY, 50)
        b = Order("X", Side.SELL, 50)
        broker.send_order(a, first)
        broker.send_order(b, second)
        assert broker.execute(_print(5.0, 60, symbol="X")) == 1
        assert a.is_filled
        assert not b.is_filled
        assert broker.get_order_list(second) == [b]

    def test_fills_never_exceed_print_size(self, broker: Broker) -> None:
        sizes = [30, 50, 20, 40, 10]
        for i, size in enumerate(sizes):
            broker.send_order(Order("SPY", Side.BUY, size), Account(f"A{i % 2}"))
        broker.execute(_print(10.0, 100))
        filled = sum(t.fill_size for aid in broker.accounts for t in broker.get_trade_list(aid))
        assert filled <= 100
        # A0 fills 30, 20, 10; A1 skips 50 (only 40 left) and fills 40
        assert filled == 100

    def test_quote_only_tick_fills_nothing(self, broker: Broker) -> None:
        broker.send_order(Order("SPY", Side.BUY, 100))
        seen: list[Tick] = []
        broker.on_tick.connect(seen.append)
        quote = Tick.new_bid("SPY", 10.0, 500)
        assert broker.execute(quote) == 0
        assert seen == [quote]
        assert len(broker.get_order_list()) == 1

    def test_other_symbol_not_matched(self, broker: Broker) -> None:
        broker.send_order(Order("QQQ", Side.BUY, 100))
        assert broker.execute(_print(10.0, 100, symbol="SPY")) == 0

    def test_order_sent_from_fill_waits_for_next_tick(self, broker: Broker) -> None:
        follow_up = Order("SPY", Side.SELL, 100)

        def on_fill(trade: Order) -> None:
            if trade.is_buy:
                broker.send_order(follow_up)

        broker.on_fill.connect(on_fill)
        broker.send_order(Order("SPY", Side.BUY, 100))
        assert broker.execute(_print(10.0, 1000)) == 1
        assert broker.get_order_list() == [follow_up]
        assert broker.execute(_print(10.1, 1000)) == 1
        assert follow_up.is_filled


class TestBlotters:
    def test_unknown_account_raises(self, broker: Broker) -> None:
        for call in (
            lambda: broker.get_order_list("NOPE"),
            lambda: broker.get_trade_list("NOPE"),
            lambda: broker.get_open_position("SPY", "NOPE"),
            lambda: broker.get_closed_pl("SPY", "NOPE"),
            lambda: broker.cancel_orders("NOPE"),
        ):
            with pytest.raises(LookupError):
                call()
        with pytest.raises(UnknownAccountError) as exc_info:
            broker.get_account("NOPE")
        assert exc_info.value.account_id == "NOPE"

    def test_reset_and_cancel(self, broker: Broker, acct: Account) -> None:
        broker.send_order(Order("SPY", Side.BUY, 100), acct)
        broker.send_order(Order("SPY", Side.BUY, 100, price=1.0), acct)
        broker.execute(_print(10.0, 100))
        broker.cancel_orders(acct)
        assert broker.get_order_list(acct) == []
        assert len(broker.get_trade_list(acct)) == 1
        broker.reset()
        assert broker.accounts == ["DEFAULT"]
        with pytest.raises(UnknownAccountError):
            broker.get_trade_list(acct)

    def test_blotter_snapshots_are_copies(self, broker: Broker) -> None:
        broker.send_order(Order("SPY", Side.BUY, 100))
        snap = broker.order_blotters()
        broker.cancel_orders()
        assert len(snap["DEFAULT"]) == 1

    def test_open_position_and_closed_pl(self, broker: Broker) -> None:
        broker.send_order(Order("SPY", Side.BUY, 100))
        broker.execute(_print(10.0, 100))
        broker.send_order(Order("SPY", Side.SELL, 150))
        broker.execute(_print(12.0, 150, time=93100))
        broker.send_order(Order("QQQ", Side.BUY, 10))
        broker.execute(_print(40.0, 10, symbol="QQQ"))
        broker.send_order(Order("QQQ", Side.SELL, 10))
        broker.execute(_print(39.0, 10, symbol="QQQ"))

        pos = broker.get_open_position("spy")
        assert pos.size == -50
        assert pos.avg_price == 12.0
        assert broker.get_closed_pl("SPY") == pytest.approx(200.0)
        assert broker.get_closed_pl() == pytest.approx(190.0)
        assert broker.get_closed_pt("SPY") == pytest.approx(2.0)
        assert broker.get_closed_pt() == pytest.approx(1.0)
        assert broker.get_open_position("IBM").is_flat


class TestSignals:
    def test_order_signal_and_hook_order(self, broker: Broker) -> None:
        calls: list[str] = []
        broker.on_order.connect(lambda o: calls.append("first"))
        broker.on_order.connect(lambda o: calls.append("second"))
        broker.send_order(Order("SPY", Side.BUY, 1))
        assert calls == ["first", "second"]

    def test_disconnect(self, broker: Broker) -> None:
        fills: list[Order] = []
        broker.on_fill.connect(fills.append)
        broker.on_fill.disconnect(fills.append)
        broker.on_fill.disconnect(print)
        broker.send_order(Order("SPY", Side.BUY, 1))
        broker.execute(_print(10.0))
        assert fills == []
        assert len(broker.on_fill) == 0
