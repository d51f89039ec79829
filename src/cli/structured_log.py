"""
Structured JSON event logger for backtest runs.

Emits one JSON object per line to stderr. Events are designed to be
parsed by log aggregators (Grafana Loki, CloudWatch, ELK).

Optional webhook: when configured, alert events (warning, error,
run_complete) are POSTed to the URL.
"""

from __future__ import annotations

import json
import logging
import sys
import urllib.request
from datetime import datetime, timezone
from typing import Any

from trade_core.order import Order

logger = logging.getLogger("gauntlet.events")


class StructuredEventLogger:
    """Emit structured JSON events to stderr and optional webhook."""

    def __init__(
        self,
        run_name: str,
        *,
        enabled: bool = True,
        webhook_url: str = "",
        stream: Any = None,
    ) -> None:
        self._run_name = run_name
        self._enabled = enabled
        self._webhook_url = webhook_url.strip()
        self._stream = stream or sys.stderr
        self._ALERT_EVENTS = {
            "warning",
            "error",
            "run_complete",
        }

    def _emit(self, event_type: str, **fields: Any) -> dict:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event_type,
            "run": self._run_name,
            **fields,
        }
        if self._enabled:
            self._stream.write(json.dumps(record) + "\n")
            self._stream.flush()

        if self._webhook_url and event_type in self._ALERT_EVENTS:
            self._post_webhook(record)

        return record

    def _post_webhook(self, record: dict) -> None:
        try:
            data = json.dumps(record).encode("utf-8")
            req = urllib.request.Request(
                self._webhook_url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            urllib.request.urlopen(req, timeout=5)
        except Exception as exc:
            logger.warning("Webhook POST failed: %s", exc)

    def run_start(self, sources: int, strategy: str, account: str) -> dict:
        return self._emit("run_start", sources=sources, strategy=strategy, account=account)

    def order_accepted(self, order: Order) -> dict:
        return self._emit(
            "order_accepted",
            account=order.account,
            symbol=order.symbol,
            side=order.side.value,
            size=order.size,
            order_type=order.order_type.value,
        )

    def fill(self, trade: Order) -> dict:
        return self._emit(
            "fill",
            account=trade.account,
            symbol=trade.symbol,
            side=trade.side.value,
            size=trade.fill_size,
            price=trade.fill_price,
        )

    def warning(self, message: str) -> dict:
        return self._emit("warning", message=message)

    def progress(self, percent: int) -> dict:
        return self._emit("progress", percent=percent)

    def run_complete(self, state: str, ticks: int, fills: int) -> dict:
        return self._emit("run_complete", state=state, ticks=ticks, fills=fills)

    def error(self, message: str, detail: str = "") -> dict:
        return self._emit("error", message=message, detail=detail)
