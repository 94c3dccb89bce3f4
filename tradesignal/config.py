"""TradeSignal — application configuration.

Loads .env variables into a typed config object.
Every variable has a default; malformed values raise on startup.
"""

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

from tradesignal.strategy.conditions import SignalSettings
from tradesignal.strategy.models import IndicatorConfig


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    trade_symbol: str
    sma_short_period: int
    sma_long_period: int
    support_resistance_window: int
    bollinger_period: int
    bollinger_std_dev: Decimal
    macd_fast_period: int
    macd_slow_period: int
    atr_period: int
    stochastic_period: int
    rsi_purchase: Decimal
    rsi_sale: Decimal
    volume_multiplier: Decimal
    stop_loss_pct: Decimal
    take_profit_pct: Decimal
    log_level: str
    api_port: int

    def indicator_config(self) -> IndicatorConfig:
        """Build the indicator lookbacks.  Raises ``InvalidInput`` on bad periods."""
        return IndicatorConfig(
            sma_short_period=self.sma_short_period,
            sma_long_period=self.sma_long_period,
            support_resistance_window=self.support_resistance_window,
            bollinger_period=self.bollinger_period,
            bollinger_std_dev_multiplier=self.bollinger_std_dev,
            macd_fast_period=self.macd_fast_period,
            macd_slow_period=self.macd_slow_period,
            atr_period=self.atr_period,
            stochastic_period=self.stochastic_period,
        )

    def signal_settings(self) -> SignalSettings:
        return SignalSettings(
            rsi_purchase=self.rsi_purchase,
            rsi_sale=self.rsi_sale,
            volume_multiplier=self.volume_multiplier,
            stop_loss_percent=self.stop_loss_pct,
            take_profit_percent=self.take_profit_pct,
        )


def _int_var(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}") from None


def _decimal_var(name: str, default: str) -> Decimal:
    raw = os.environ.get(name, default)
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        raise ValueError(f"Environment variable {name} must be a number, got {raw!r}") from None
    if not value.is_finite():
        raise ValueError(f"Environment variable {name} must be finite, got {raw!r}")
    return value


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` with a message naming the variable when a value
    cannot be parsed.
    """
    load_dotenv(dotenv_path=env_path)

    return Config(
        trade_symbol=os.environ.get("TRADE_SYMBOL", "BTCUSDT"),
        sma_short_period=_int_var("SMA_SHORT_PERIOD", "9"),
        sma_long_period=_int_var("SMA_LONG_PERIOD", "21"),
        support_resistance_window=_int_var("SR_WINDOW", "20"),
        bollinger_period=_int_var("BOLLINGER_PERIOD", "20"),
        bollinger_std_dev=_decimal_var("BOLLINGER_STD_DEV", "2"),
        macd_fast_period=_int_var("MACD_FAST_PERIOD", "12"),
        macd_slow_period=_int_var("MACD_SLOW_PERIOD", "26"),
        atr_period=_int_var("ATR_PERIOD", "14"),
        stochastic_period=_int_var("STOCHASTIC_PERIOD", "14"),
        rsi_purchase=_decimal_var("RSI_PURCHASE", "30"),
        rsi_sale=_decimal_var("RSI_SALE", "70"),
        volume_multiplier=_decimal_var("VOLUME_MULTIPLIER", "1.0"),
        stop_loss_pct=_decimal_var("STOP_LOSS_PCT", "2.0"),
        take_profit_pct=_decimal_var("TAKE_PROFIT_PCT", "2.0"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        api_port=_int_var("API_PORT", "8080"),
    )
