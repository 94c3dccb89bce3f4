"""Market regime classification — a fixed, priority-ordered decision table.

``classify_market()`` derives a set of boolean facts from a
``MarketConditions`` snapshot and returns the ``MarketType`` of the first
rule that matches.  Pure function, no state.

Rule order (first match wins):

 1. Extreme volatility (> 5%)                       → HIGH_VOLATILITY
 2. Confirmed reversal with RSI beyond 80 / 20      → TREND_REVERSAL
 3. Confirmed reversal                              → TREND_REVERSAL
 4. Volatility > 3% and band width > 6%             → HIGH_VOLATILITY
 5. Breakout from tight bands                       → WEAK_UPTREND / WEAK_DOWNTREND
 6. Squeeze: very tight bands, neutral RSI, flat    → RANGE_BOUND
 7. Full EMA stack, strong momentum, extended price → STRONG_UPTREND / STRONG_DOWNTREND
 8. EMA8/21/50 aligned with momentum or volatility  → WEAK_UPTREND / WEAK_DOWNTREND
 9. Wide bands without a strong trend               → HIGH_VOLATILITY
10. Tight bands or mid-band price, flat momentum    → RANGE_BOUND
    Otherwise                                       → RANGE_BOUND
"""

from decimal import Decimal

from tradesignal.strategy.decimal_ops import HUNDRED, ZERO, divide, fixed_context
from tradesignal.strategy.models import MarketConditions, MarketType

# ── Thresholds ───────────────────────────────────────────────────────────

STRONG_MOMENTUM = Decimal("0.15")
WEAK_MOMENTUM = Decimal("0.05")
SQUEEZE_MOMENTUM = Decimal("0.03")

RSI_STRONGLY_OVERBOUGHT = Decimal(80)
RSI_OVERBOUGHT = Decimal(70)
RSI_OVERSOLD = Decimal(30)
RSI_STRONGLY_OVERSOLD = Decimal(20)
RSI_NEUTRAL_LOW = Decimal(45)
RSI_NEUTRAL_HIGH = Decimal(55)

VERY_TIGHT_BANDS_PCT = Decimal("1.5")
TIGHT_BANDS_PCT = Decimal("2.5")
WIDE_BANDS_PCT = Decimal("4.0")
VERY_WIDE_BANDS_PCT = Decimal("6.0")

AT_UPPER_BAND = Decimal("0.95")
NEAR_UPPER_BAND = Decimal("0.80")
AT_LOWER_BAND = Decimal("0.05")
NEAR_LOWER_BAND = Decimal("0.20")
MIDDLE_BAND_LOW = Decimal("0.40")
MIDDLE_BAND_HIGH = Decimal("0.60")

MODERATE_VOLATILITY = Decimal("1.5")
HIGH_VOLATILITY = Decimal("3.0")
EXTREME_VOLATILITY = Decimal("5.0")

EXTENDED_FROM_EMA50_PCT = Decimal("1.2")
REVERSAL_SLOPE = Decimal("0.0005")
BREAKOUT_SLOPE = Decimal("0.001")

_MID_BAND = Decimal("0.5")


# ── Derived quantities ───────────────────────────────────────────────────


@fixed_context
def band_width_percent(conditions: MarketConditions) -> Decimal:
    """Bollinger band width as a percentage of the middle band."""
    width = conditions.bollinger_upper - conditions.bollinger_lower
    return divide(width, conditions.bollinger_middle, "band width") * HUNDRED


@fixed_context
def band_position(conditions: MarketConditions) -> Decimal:
    """Where price sits between the bands: 0 = lower band, 1 = upper band.

    A collapsed band (upper == lower, i.e. a flat window) counts as mid-band.
    """
    band_range = conditions.bollinger_upper - conditions.bollinger_lower
    if band_range == 0:
        return _MID_BAND
    return divide(
        conditions.current_price - conditions.bollinger_lower, band_range, "band position"
    )


@fixed_context
def price_to_ema50_percent(conditions: MarketConditions) -> Decimal:
    """Absolute distance between price and EMA50, in percent of EMA50."""
    distance = divide(
        conditions.current_price - conditions.ema50, conditions.ema50, "EMA50 distance"
    )
    return abs(distance * HUNDRED)


# ── Classifier ───────────────────────────────────────────────────────────


@fixed_context
def classify_market(conditions: MarketConditions) -> MarketType:
    """Classify the market regime for *conditions*.

    Total over valid snapshots: exactly one ``MarketType`` is returned.
    Zero EMA50 / Bollinger middle values are rejected upstream by
    ``analyze_market``.
    """
    c = conditions

    # Trend structure
    ema8_above_ema21 = c.ema8 > c.ema21
    ema21_above_ema50 = c.ema21 > c.ema50
    ema50_above_ema100 = c.ema50 > c.ema100
    price_above_ema50 = c.current_price > c.ema50
    price_extended = price_to_ema50_percent(c) > EXTENDED_FROM_EMA50_PCT

    strong_uptrend = (
        ema8_above_ema21 and ema21_above_ema50 and ema50_above_ema100 and price_above_ema50
    )
    strong_downtrend = not (
        ema8_above_ema21 or ema21_above_ema50 or ema50_above_ema100 or price_above_ema50
    )

    # Momentum
    strong_positive_momentum = c.momentum > STRONG_MOMENTUM
    weak_positive_momentum = c.momentum > WEAK_MOMENTUM
    negative_momentum = c.momentum < ZERO
    strong_negative_momentum = c.momentum < -STRONG_MOMENTUM
    momentum_confirms_up = not weak_positive_momentum and not strong_negative_momentum
    momentum_confirms_down = not negative_momentum and not strong_positive_momentum

    # RSI
    rsi_overbought = c.rsi > RSI_OVERBOUGHT
    rsi_strongly_overbought = c.rsi > RSI_STRONGLY_OVERBOUGHT
    rsi_oversold = c.rsi < RSI_OVERSOLD
    rsi_strongly_oversold = c.rsi < RSI_STRONGLY_OVERSOLD
    rsi_neutral = RSI_NEUTRAL_LOW < c.rsi < RSI_NEUTRAL_HIGH

    # Bollinger bands
    width = band_width_percent(c)
    very_tight_bands = width < VERY_TIGHT_BANDS_PCT
    tight_bands = width < TIGHT_BANDS_PCT
    wide_bands = width > WIDE_BANDS_PCT
    very_wide_bands = width > VERY_WIDE_BANDS_PCT

    position = band_position(c)
    at_upper_band = position > AT_UPPER_BAND
    near_upper_band = position > NEAR_UPPER_BAND
    at_lower_band = position < AT_LOWER_BAND
    near_lower_band = position < NEAR_LOWER_BAND
    near_middle_band = MIDDLE_BAND_LOW < position < MIDDLE_BAND_HIGH

    # Volatility
    moderate_volatility = c.volatility > MODERATE_VOLATILITY
    high_volatility = c.volatility > HIGH_VOLATILITY
    extreme_volatility = c.volatility > EXTREME_VOLATILITY

    # Reversals: price below key averages while oversold and the slope is
    # flattening, or the mirror image at the top.
    potential_reversal_up = (
        (not ema8_above_ema21 or not price_above_ema50)
        and (rsi_oversold or at_lower_band or near_lower_band)
        and c.price_slope > -REVERSAL_SLOPE
    )
    potential_reversal_down = (
        (ema8_above_ema21 or price_above_ema50)
        and (rsi_overbought or at_upper_band or near_upper_band)
        and c.price_slope < REVERSAL_SLOPE
    )
    confirmed_reversal_up = potential_reversal_up and momentum_confirms_up
    confirmed_reversal_down = potential_reversal_down and momentum_confirms_down

    # Squeeze and breakout
    squeezing = very_tight_bands and rsi_neutral and abs(c.momentum) < SQUEEZE_MOMENTUM
    breakout_up = tight_bands and weak_positive_momentum and c.price_slope > BREAKOUT_SLOPE
    breakout_down = tight_bands and negative_momentum and c.price_slope < -BREAKOUT_SLOPE

    # ── Decision table ──
    if extreme_volatility:
        return MarketType.HIGH_VOLATILITY

    if (confirmed_reversal_up and rsi_strongly_oversold) or (
        confirmed_reversal_down and rsi_strongly_overbought
    ):
        return MarketType.TREND_REVERSAL

    if confirmed_reversal_up or confirmed_reversal_down:
        return MarketType.TREND_REVERSAL

    if high_volatility and very_wide_bands:
        return MarketType.HIGH_VOLATILITY

    if breakout_up or breakout_down:
        return MarketType.WEAK_UPTREND if price_above_ema50 else MarketType.WEAK_DOWNTREND

    if squeezing:
        return MarketType.RANGE_BOUND

    if strong_uptrend and strong_positive_momentum and price_extended:
        return MarketType.STRONG_UPTREND

    if strong_downtrend and strong_negative_momentum and price_extended:
        return MarketType.STRONG_DOWNTREND

    if ema8_above_ema21 and ema21_above_ema50 and (weak_positive_momentum or moderate_volatility):
        return MarketType.WEAK_UPTREND

    if not ema8_above_ema21 and not ema21_above_ema50 and (negative_momentum or moderate_volatility):
        return MarketType.WEAK_DOWNTREND

    if wide_bands and not strong_uptrend and not strong_downtrend:
        return MarketType.HIGH_VOLATILITY

    if (tight_bands or near_middle_band) and abs(c.momentum) < WEAK_MOMENTUM:
        return MarketType.RANGE_BOUND

    return MarketType.RANGE_BOUND
