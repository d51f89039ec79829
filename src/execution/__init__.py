"""
Simulated execution: Broker matching engine and its observer hooks.

Single writer. No I/O, no live routing.
"""

from execution.broker import Broker
from execution.events import EventHook

__all__ = ["Broker", "EventHook"]
