"""Condition flags — derive buy / sell ``SignalInputs`` from a market snapshot.

Pure functions, no I/O.  Most flags read the ``MarketConditions``
snapshot; the candle-shape flags (rejection wick, engulfing pattern) read
the last two candles of the window, and stop-loss / take-profit read the
open ``Position``.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from tradesignal.strategy.decimal_ops import HUNDRED, divide, fixed_context
from tradesignal.strategy.models import Candle, MarketConditions, Position, SignalInputs


# A genuine rejection wick should be at least this many times the candle body.
DEFAULT_WICK_RATIO = Decimal("1.0")

STOCH_OVERSOLD = Decimal(20)
STOCH_OVERBOUGHT = Decimal(80)
STOCH_D_LOW = Decimal(30)
STOCH_D_HIGH = Decimal(70)

# Buying is avoided above this volatility; selling is favoured above the
# moderate level.
MAX_BUY_VOLATILITY = Decimal("3.0")
MIN_SELL_VOLATILITY = Decimal("1.5")


@dataclass(frozen=True)
class SignalSettings:
    """Per-bot thresholds for the condition flags."""

    rsi_purchase: Decimal = Decimal(30)
    rsi_sale: Decimal = Decimal(70)
    volume_multiplier: Decimal = Decimal("1.0")
    stop_loss_percent: Decimal = Decimal("2.0")
    take_profit_percent: Decimal = Decimal("2.0")
    support_tolerance: Decimal = Decimal("0.1")  # fraction of support→resistance range

    def as_dict(self) -> dict[str, str]:
        return {
            "rsi_purchase": str(self.rsi_purchase),
            "rsi_sale": str(self.rsi_sale),
            "volume_multiplier": str(self.volume_multiplier),
            "stop_loss_percent": str(self.stop_loss_percent),
            "take_profit_percent": str(self.take_profit_percent),
            "support_tolerance": str(self.support_tolerance),
        }


# ── Candle shapes ────────────────────────────────────────────────────────


@fixed_context
def is_bullish_rejection_wick(candle: Candle, wick_ratio: Decimal = DEFAULT_WICK_RATIO) -> bool:
    """Lower wick longer than *wick_ratio* × body (long lower shadow)."""
    body = abs(candle.close - candle.open)
    if body == 0:
        # Doji — treat entire range as wick
        return candle.close - candle.low > 0
    lower_wick = min(candle.open, candle.close) - candle.low
    return lower_wick > wick_ratio * body


@fixed_context
def is_bearish_rejection_wick(candle: Candle, wick_ratio: Decimal = DEFAULT_WICK_RATIO) -> bool:
    """Upper wick longer than *wick_ratio* × body (long upper shadow)."""
    body = abs(candle.close - candle.open)
    if body == 0:
        return candle.high - candle.close > 0
    upper_wick = candle.high - max(candle.open, candle.close)
    return upper_wick > wick_ratio * body


def is_bullish_engulfing(previous: Candle, current: Candle) -> bool:
    """A bearish candle followed by a bullish one whose body covers it."""
    return (
        previous.close < previous.open
        and current.close > current.open
        and current.open <= previous.close
        and current.close >= previous.open
    )


def is_bearish_engulfing(previous: Candle, current: Candle) -> bool:
    """A bullish candle followed by a bearish one whose body covers it."""
    return (
        previous.close > previous.open
        and current.close < current.open
        and current.open >= previous.close
        and current.close <= previous.open
    )


# ── Shared checks ────────────────────────────────────────────────────────


def is_bullish_trend(conditions: MarketConditions) -> bool:
    """Short SMA above long SMA and price above the short SMA."""
    return (
        conditions.sma9 > conditions.sma21
        and conditions.current_price > conditions.sma9
    )


def _range_tolerance(conditions: MarketConditions, settings: SignalSettings) -> Decimal:
    return (conditions.resistance - conditions.support) * settings.support_tolerance


@fixed_context
def price_change_percent(position: Position, price: Decimal) -> Decimal:
    """Change of *price* relative to the position's average price, in percent."""
    change = divide(price - position.average_price, position.average_price, "price change")
    return change * HUNDRED


# ── Flag derivation ──────────────────────────────────────────────────────


@fixed_context
def evaluate_buy_conditions(
    conditions: MarketConditions,
    candles: list[Candle],
    settings: Optional[SignalSettings] = None,
) -> SignalInputs:
    """Derive the buy-side flags.

    Args:
        conditions: Snapshot for the current cycle.
        candles: The window the snapshot was computed from (oldest-first).
            Only the last two candles are read.
        settings: Flag thresholds; defaults to ``SignalSettings()``.

    Returns:
        ``SignalInputs`` with ``stop_loss`` / ``take_profit`` left unset.
    """
    settings = settings or SignalSettings()
    c = conditions
    last = candles[-1] if candles else None
    previous = candles[-2] if len(candles) >= 2 else None

    return SignalInputs(
        rsi_condition=c.rsi <= settings.rsi_purchase,
        trend_condition=is_bullish_trend(c),
        volume_condition=c.current_volume >= c.average_volume * settings.volume_multiplier,
        price_condition=c.current_price <= c.support + _range_tolerance(c, settings),
        macd_condition=c.macd > 0,
        stoch_condition=(
            c.stochastic_k <= STOCH_OVERSOLD
            or (c.stochastic_k > c.stochastic_d and c.stochastic_d <= STOCH_D_LOW)
        ),
        momentum_condition=c.momentum > 0,
        volatility_condition=c.volatility <= MAX_BUY_VOLATILITY,
        patterns_condition=previous is not None and is_bullish_engulfing(previous, last),
        rejection_condition=last is not None and is_bullish_rejection_wick(last),
    )


@fixed_context
def evaluate_sell_conditions(
    conditions: MarketConditions,
    candles: list[Candle],
    settings: Optional[SignalSettings] = None,
    position: Optional[Position] = None,
) -> SignalInputs:
    """Derive the sell-side flags.

    ``rejection_condition`` is the bearish rejection wick.  Stop-loss and
    take-profit are only evaluated when a *position* is open.
    """
    settings = settings or SignalSettings()
    c = conditions
    last = candles[-1] if candles else None
    previous = candles[-2] if len(candles) >= 2 else None

    stop_loss = False
    take_profit = False
    if position is not None:
        change = price_change_percent(position, c.current_price)
        stop_loss = change <= -settings.stop_loss_percent
        take_profit = change >= settings.take_profit_percent

    return SignalInputs(
        rsi_condition=c.rsi >= settings.rsi_sale,
        trend_condition=not is_bullish_trend(c),
        volume_condition=c.current_volume < c.average_volume,
        price_condition=c.current_price >= c.resistance - _range_tolerance(c, settings),
        macd_condition=c.macd < 0,
        stoch_condition=(
            c.stochastic_k >= STOCH_OVERBOUGHT
            or (c.stochastic_k < c.stochastic_d and c.stochastic_d >= STOCH_D_HIGH)
        ),
        momentum_condition=c.momentum < 0,
        volatility_condition=c.volatility > MIN_SELL_VOLATILITY,
        patterns_condition=previous is not None and is_bearish_engulfing(previous, last),
        rejection_condition=last is not None and is_bearish_rejection_wick(last),
        stop_loss=stop_loss,
        take_profit=take_profit,
    )
