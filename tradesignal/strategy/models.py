"""Strategy data models — typed, immutable values passed through the pipeline."""

from dataclasses import asdict, dataclass, fields
from decimal import Decimal
from enum import Enum
from typing import Optional

from tradesignal.errors import InvalidInput


@dataclass(frozen=True)
class Candle:
    """A single OHLCV candlestick.  Prices and volume are exact decimals."""

    open_time: int  # epoch millis
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal


@dataclass(frozen=True)
class IndicatorConfig:
    """Lookback periods for the indicator engine.

    Defaults match the values the bot has always run with.  ``slope_period``
    of ``None`` measures the price slope over the whole window.
    """

    rsi_period: int = 14
    sma_short_period: int = 9
    sma_long_period: int = 21
    support_resistance_window: int = 20
    bollinger_period: int = 20
    bollinger_std_dev_multiplier: Decimal = Decimal(2)
    ema_periods: tuple[int, int, int, int] = (8, 21, 50, 100)
    macd_fast_period: int = 12
    macd_slow_period: int = 26
    atr_period: int = 14
    stochastic_period: int = 14
    stochastic_d_period: int = 3
    momentum_period: int = 10
    volatility_period: int = 14
    slope_period: Optional[int] = None

    def __post_init__(self) -> None:
        if len(self.ema_periods) != 4:
            raise InvalidInput(
                f"ema_periods must have exactly 4 entries, got {len(self.ema_periods)}"
            )
        for name, period in self._periods():
            if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
                raise InvalidInput(f"{name} must be a positive integer, got {period!r}")
        if self.bollinger_std_dev_multiplier <= 0:
            raise InvalidInput("bollinger_std_dev_multiplier must be positive")

    def _periods(self) -> list[tuple[str, int]]:
        periods = [
            (f.name, getattr(self, f.name))
            for f in fields(self)
            if f.name.endswith(("_period", "_window")) and getattr(self, f.name) is not None
        ]
        periods.extend((f"ema_periods[{i}]", p) for i, p in enumerate(self.ema_periods))
        return periods

    @property
    def required_candles(self) -> int:
        """Smallest window length every indicator can be computed from."""
        return max(
            self.rsi_period + 1,
            self.sma_short_period,
            self.sma_long_period,
            self.support_resistance_window,
            self.bollinger_period,
            *self.ema_periods,
            self.macd_fast_period,
            self.macd_slow_period,
            self.atr_period + 1,
            self.stochastic_period + self.stochastic_d_period - 1,
            self.momentum_period + 1,
            self.volatility_period + 1,
            self.slope_period or 2,
        )


@dataclass(frozen=True)
class MarketConditions:
    """Snapshot of every indicator for one analysis cycle."""

    rsi: Decimal
    sma9: Decimal
    sma21: Decimal
    support: Decimal
    resistance: Decimal
    current_price: Decimal
    current_volume: Decimal
    average_volume: Decimal
    ema8: Decimal
    ema21: Decimal
    ema50: Decimal
    ema100: Decimal
    momentum: Decimal
    volatility: Decimal
    bollinger_upper: Decimal
    bollinger_middle: Decimal
    bollinger_lower: Decimal
    price_slope: Decimal
    macd: Decimal
    stochastic_k: Decimal
    stochastic_d: Decimal
    atr: Decimal
    obv: Decimal

    def as_dict(self) -> dict[str, str]:
        """Return the fields as strings (exact, JSON-safe)."""
        return {name: str(value) for name, value in asdict(self).items()}


class MarketType(Enum):
    """Market regime produced by the classifier."""

    STRONG_UPTREND = "STRONG_UPTREND"
    WEAK_UPTREND = "WEAK_UPTREND"
    RANGE_BOUND = "RANGE_BOUND"
    WEAK_DOWNTREND = "WEAK_DOWNTREND"
    STRONG_DOWNTREND = "STRONG_DOWNTREND"
    HIGH_VOLATILITY = "HIGH_VOLATILITY"
    TREND_REVERSAL = "TREND_REVERSAL"


@dataclass(frozen=True)
class SignalInputs:
    """Boolean condition flags fed to the scorer.

    On the sell side ``rejection_condition`` carries the *bearish*
    rejection flag.  ``stop_loss`` / ``take_profit`` are only read by
    ``evaluate_sell``.
    """

    rsi_condition: bool = False
    trend_condition: bool = False
    volume_condition: bool = False
    price_condition: bool = False
    macd_condition: bool = False
    stoch_condition: bool = False
    momentum_condition: bool = False
    volatility_condition: bool = False
    patterns_condition: bool = False
    rejection_condition: bool = False
    stop_loss: bool = False
    take_profit: bool = False

    def as_dict(self) -> dict[str, bool]:
        return asdict(self)


# Flags that carry a weight in the scoring tables, in table-column order.
SCORED_FLAGS: tuple[str, ...] = (
    "rsi_condition",
    "rejection_condition",
    "volume_condition",
    "price_condition",
    "patterns_condition",
    "trend_condition",
    "macd_condition",
    "stoch_condition",
    "momentum_condition",
    "volatility_condition",
)


@dataclass(frozen=True)
class SignalEvaluation:
    """Outcome of one buy or sell scoring pass."""

    score: Decimal
    threshold: Decimal
    decision: bool

    def as_dict(self) -> dict:
        return {
            "score": str(self.score),
            "threshold": str(self.threshold),
            "decision": self.decision,
        }


@dataclass(frozen=True)
class Position:
    """An open long position, as reported by the order-execution side."""

    average_price: Decimal
