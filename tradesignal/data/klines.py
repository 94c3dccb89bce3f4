"""Kline parsing — Binance-style ``/klines`` rows into ``Candle`` objects.

Each row is either the exchange's positional array::

    [openTime, open, high, low, close, volume, closeTime, ...]

or a dict with ``openTime``, ``open``, ``high``, ``low``, ``close`` and
``volume`` keys.  Prices arrive as strings and are parsed straight into
``Decimal``.
"""

import json
import pathlib

from tradesignal.errors import InvalidInput
from tradesignal.strategy.decimal_ops import to_decimal
from tradesignal.strategy.models import Candle

_DICT_KEYS = ("openTime", "open", "high", "low", "close", "volume")


def parse_kline(row, index: int = 0) -> Candle:
    """Parse one kline row.  Raises ``InvalidInput`` naming the row index."""
    if isinstance(row, dict):
        missing = [k for k in _DICT_KEYS if k not in row]
        if missing:
            raise InvalidInput(f"Kline {index} is missing {', '.join(missing)}")
        values = [row[k] for k in _DICT_KEYS]
    elif isinstance(row, (list, tuple)):
        if len(row) < 6:
            raise InvalidInput(f"Kline {index} has {len(row)} fields, need at least 6")
        values = list(row[:6])
    else:
        raise InvalidInput(f"Kline {index} is a {type(row).__name__}, expected list or dict")

    open_time = values[0]
    if isinstance(open_time, bool) or not isinstance(open_time, (int, str)):
        raise InvalidInput(f"Kline {index} has invalid open time {open_time!r}")
    try:
        open_time = int(open_time)
    except ValueError:
        raise InvalidInput(f"Kline {index} has invalid open time {open_time!r}") from None

    try:
        open_, high, low, close, volume = (to_decimal(v) for v in values[1:])
    except InvalidInput as exc:
        raise InvalidInput(f"Kline {index}: {exc}") from None

    if low > high:
        raise InvalidInput(f"Kline {index} has low {low} above high {high}")

    return Candle(
        open_time=open_time,
        open=open_,
        high=high,
        low=low,
        close=close,
        volume=volume,
    )


def parse_klines(rows: list) -> list[Candle]:
    """Parse a list of kline rows, preserving their order."""
    if not isinstance(rows, list):
        raise InvalidInput(f"Expected a list of klines, got {type(rows).__name__}")
    return [parse_kline(row, i) for i, row in enumerate(rows)]


def load_klines(path: str | pathlib.Path) -> list[Candle]:
    """Read a JSON file holding a list of kline rows."""
    text = pathlib.Path(path).read_text(encoding="utf-8")
    try:
        rows = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidInput(f"{path} is not valid JSON: {exc}") from None
    return parse_klines(rows)
