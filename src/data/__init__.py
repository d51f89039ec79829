"""
Tick data on disk: discover per-symbol/per-day CSV files and decode them to Ticks.

Depends on trade_core.contracts for Tick; no dependency from trade_core back to data.
"""

from data.tick_file import (
    TickFile,
    TickFileError,
    discover_tick_files,
    parse_tick_filename,
    read_ticks,
    write_ticks,
)

__all__ = [
    "TickFile",
    "TickFileError",
    "discover_tick_files",
    "parse_tick_filename",
    "read_ticks",
    "write_ticks",
]
