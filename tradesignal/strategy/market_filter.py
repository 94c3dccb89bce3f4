"""Market filter — is the recent window dominated by down candles?"""

from decimal import Decimal

from tradesignal.strategy.decimal_ops import ZERO, divide
from tradesignal.strategy.models import Candle

DEFAULT_LOOKBACK = 24
MAX_DOWN_TREND_STRENGTH = Decimal("0.6")


def down_trend_strength(candles: list[Candle], lookback: int = DEFAULT_LOOKBACK) -> Decimal:
    """Fraction of the last *lookback* candles that closed below their open.

    Returns 0 when fewer than *lookback* candles are available.
    """
    if len(candles) < lookback:
        return ZERO

    recent = candles[-lookback:]
    down = sum(1 for c in recent if c.close < c.open)
    return divide(Decimal(down), Decimal(lookback), "down trend strength")


def is_market_favorable(candles: list[Candle], lookback: int = DEFAULT_LOOKBACK) -> bool:
    """True unless at least 60% of the recent candles are down candles."""
    return down_trend_strength(candles, lookback) < MAX_DOWN_TREND_STRENGTH
