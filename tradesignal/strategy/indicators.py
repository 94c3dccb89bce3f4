"""Technical indicators — RSI, SMA, EMA, MACD, Bollinger, ATR, OBV, stochastic.

Pure functions, no I/O.  Inputs are ordered oldest-first; each function
returns the indicator value for the most recent point.  All arithmetic is
exact ``Decimal`` with the 8-place half-up policy of ``decimal_ops``.
"""

from decimal import Decimal

from tradesignal.errors import InsufficientData, InvalidInput
from tradesignal.strategy.decimal_ops import (
    CONTEXT,
    HUNDRED,
    ONE,
    ZERO,
    divide,
    fixed_context,
    mean,
    quantize,
    std_dev,
)
from tradesignal.strategy.models import Candle


def _require(series: list, needed: int, indicator: str) -> None:
    if len(series) < needed:
        raise InsufficientData(indicator, needed, len(series))


def _check_period(period: int, indicator: str) -> None:
    if period <= 0:
        raise InvalidInput(f"{indicator} period must be positive, got {period}")


# ── Averages ─────────────────────────────────────────────────────────────


@fixed_context
def calculate_sma(closes: list[Decimal], period: int) -> Decimal:
    """Arithmetic mean of the last *period* closes."""
    _check_period(period, "SMA")
    _require(closes, period, f"SMA({period})")
    return mean(closes[-period:], f"SMA({period})")


@fixed_context
def calculate_ema(closes: list[Decimal], period: int) -> Decimal:
    """Exponential Moving Average of *closes*.

    Seeded with the SMA of the first *period* closes, then::

        EMA_t = EMA_{t-1} + k × (close_t − EMA_{t-1}),   k = 2 / (period + 1)

    Each step is rounded to 8 places.
    """
    _check_period(period, "EMA")
    _require(closes, period, f"EMA({period})")

    k = divide(Decimal(2), Decimal(period + 1), f"EMA({period}) multiplier")
    ema = mean(closes[:period], f"EMA({period}) seed")
    for close in closes[period:]:
        ema = quantize(ema + CONTEXT.multiply(k, close - ema))
    return ema


@fixed_context
def calculate_macd(closes: list[Decimal], fast: int = 12, slow: int = 26) -> Decimal:
    """MACD line: ``EMA(fast) − EMA(slow)``."""
    return calculate_ema(closes, fast) - calculate_ema(closes, slow)


# ── RSI ──────────────────────────────────────────────────────────────────


@fixed_context
def calculate_rsi(closes: list[Decimal], period: int = 14) -> Decimal:
    """Relative Strength Index over the last ``period + 1`` closes.

    Uses simple (not Wilder-smoothed) averages::

        avg_gain = Σ gains / period
        avg_loss = Σ |losses| / period
        RSI      = 100 − 100 / (1 + avg_gain / avg_loss)

    When ``avg_loss`` is zero the result is 100.  That includes a perfectly
    flat series, where ``avg_gain`` is zero as well.
    """
    _check_period(period, "RSI")
    _require(closes, period + 1, f"RSI({period})")

    window = closes[-(period + 1):]
    gain = ZERO
    loss = ZERO
    for prev, curr in zip(window, window[1:]):
        delta = curr - prev
        if delta > 0:
            gain += delta
        elif delta < 0:
            loss -= delta

    avg_loss = divide(loss, Decimal(period), "RSI average loss")
    if avg_loss == 0:
        return HUNDRED

    # Same ratio as avg_gain / avg_loss; the period cancels out.
    rs = divide(gain, loss, "RSI relative strength")
    return HUNDRED - divide(HUNDRED, ONE + rs, "RSI")


# ── Price levels ─────────────────────────────────────────────────────────


def calculate_support(closes: list[Decimal], window: int) -> Decimal:
    """Lowest close over the last *window* closes."""
    _check_period(window, "Support")
    _require(closes, window, f"Support({window})")
    return min(closes[-window:])


def calculate_resistance(closes: list[Decimal], window: int) -> Decimal:
    """Highest close over the last *window* closes."""
    _check_period(window, "Resistance")
    _require(closes, window, f"Resistance({window})")
    return max(closes[-window:])


@fixed_context
def calculate_price_slope(closes: list[Decimal], period: int | None = None) -> Decimal:
    """Average change of close per point over the trailing *period* closes.

    ``(last − first) / count``; the whole series is used when *period* is
    ``None``.
    """
    if period is not None:
        _check_period(period, "Price slope")
        _require(closes, period, f"Price slope({period})")
        closes = closes[-period:]
    _require(closes, 2, "Price slope")
    return divide(closes[-1] - closes[0], Decimal(len(closes)), "price slope")


# ── Momentum / volatility ────────────────────────────────────────────────


@fixed_context
def calculate_momentum(closes: list[Decimal], period: int = 10) -> Decimal:
    """Percent change of close over *period* steps."""
    _check_period(period, "Momentum")
    _require(closes, period + 1, f"Momentum({period})")

    past = closes[-(period + 1)]
    change = divide(closes[-1] - past, past, f"Momentum({period})")
    return change * HUNDRED


@fixed_context
def calculate_volatility(closes: list[Decimal], period: int = 14) -> Decimal:
    """Standard deviation of the last *period* percent returns."""
    _check_period(period, "Volatility")
    _require(closes, period + 1, f"Volatility({period})")

    window = closes[-(period + 1):]
    returns = [
        divide(curr - prev, prev, f"Volatility({period}) return") * HUNDRED
        for prev, curr in zip(window, window[1:])
    ]
    return std_dev(returns, f"Volatility({period})")


# ── Bollinger Bands ──────────────────────────────────────────────────────


@fixed_context
def calculate_bollinger(
    closes: list[Decimal],
    period: int = 20,
    std_dev_multiplier: Decimal = Decimal(2),
) -> tuple[Decimal, Decimal, Decimal]:
    """Bollinger Bands for the last *period* closes.

    Middle = SMA(close, *period*)
    Upper  = middle + *std_dev_multiplier* × σ
    Lower  = middle − *std_dev_multiplier* × σ

    σ is the population standard deviation.  Returns ``(upper, middle, lower)``.
    """
    _check_period(period, "Bollinger")
    _require(closes, period, f"Bollinger({period})")

    window = closes[-period:]
    middle = mean(window, f"Bollinger({period})")
    offset = quantize(CONTEXT.multiply(std_dev_multiplier, std_dev(window, f"Bollinger({period})")))
    return middle + offset, middle, middle - offset


# ── Candle-based indicators ──────────────────────────────────────────────


@fixed_context
def calculate_atr(candles: list[Candle], period: int = 14) -> Decimal:
    """Average True Range over the last *period* candles.

    Uses the standard True Range definition:
        TR = max(high - low, |high - prev_close|, |low - prev_close|)

    Requires at least ``period + 1`` candles (need a previous close for TR).
    """
    _check_period(period, "ATR")
    _require(candles, period + 1, f"ATR({period})")

    recent = candles[-(period + 1):]
    true_ranges = [
        max(
            curr.high - curr.low,
            abs(curr.high - prev.close),
            abs(curr.low - prev.close),
        )
        for prev, curr in zip(recent, recent[1:])
    ]
    return mean(true_ranges, f"ATR({period})")


@fixed_context
def calculate_obv(candles: list[Candle]) -> Decimal:
    """On-Balance Volume accumulated over the whole window."""
    _require(candles, 1, "OBV")

    obv = ZERO
    for prev, curr in zip(candles, candles[1:]):
        if curr.close > prev.close:
            obv += curr.volume
        elif curr.close < prev.close:
            obv -= curr.volume
    return obv


@fixed_context
def calculate_stochastic(
    candles: list[Candle],
    k_period: int = 14,
    d_period: int = 3,
) -> tuple[Decimal, Decimal]:
    """Stochastic oscillator ``(%K, %D)``.

    %K = (close − lowest low) / (highest high − lowest low) × 100 over
    *k_period* candles, or 50 when the range is flat.  %D is the SMA of the
    last *d_period* %K values.
    """
    _check_period(k_period, "Stochastic %K")
    _check_period(d_period, "Stochastic %D")
    _require(candles, k_period + d_period - 1, f"Stochastic({k_period},{d_period})")

    k_values: list[Decimal] = []
    for end in range(len(candles) - d_period + 1, len(candles) + 1):
        window = candles[end - k_period:end]
        highest = max(c.high for c in window)
        lowest = min(c.low for c in window)
        if highest == lowest:
            k_values.append(Decimal(50))
            continue
        k_values.append(
            divide(
                CONTEXT.multiply(window[-1].close - lowest, HUNDRED),
                highest - lowest,
                "Stochastic %K",
            )
        )
    return k_values[-1], mean(k_values, "Stochastic %D")


@fixed_context
def average_volume(candles: list[Candle]) -> Decimal:
    """Mean volume of the whole window."""
    _require(candles, 1, "Average volume")
    return mean([c.volume for c in candles], "average volume")
