"""Internal API routers — /config and /analyze endpoints.

No business logic.  Parses the request, delegates to the pipeline and
shapes the response.
"""

import logging
from typing import Optional

from fastapi import APIRouter

from tradesignal.config import Config
from tradesignal.data.klines import parse_klines
from tradesignal.errors import AnalysisError
from tradesignal.pipeline import run_analysis
from tradesignal.strategy.conditions import SignalSettings
from tradesignal.strategy.decimal_ops import to_decimal
from tradesignal.strategy.models import IndicatorConfig, Position

logger = logging.getLogger("tradesignal")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_indicator_config: IndicatorConfig = IndicatorConfig()
_signal_settings: SignalSettings = SignalSettings()
_default_symbol: str = "BTCUSDT"


def configure_routers(config: Optional[Config] = None) -> None:
    """Inject settings from the application startup.

    Args:
        config: Loaded ``Config``.  ``None`` restores the built-in defaults.
    """
    global _indicator_config, _signal_settings, _default_symbol  # noqa: PLW0603
    if config is None:
        _indicator_config = IndicatorConfig()
        _signal_settings = SignalSettings()
        _default_symbol = "BTCUSDT"
        return
    _indicator_config = config.indicator_config()
    _signal_settings = config.signal_settings()
    _default_symbol = config.trade_symbol


def _error(exc: AnalysisError) -> dict:
    return {"status": "error", "kind": exc.kind, "message": str(exc)}


@router.get("/config")
async def get_config():
    """Return the active indicator lookbacks and signal settings."""
    cfg = _indicator_config
    return {
        "symbol": _default_symbol,
        "required_candles": cfg.required_candles,
        "indicators": {
            "rsi_period": cfg.rsi_period,
            "sma_short_period": cfg.sma_short_period,
            "sma_long_period": cfg.sma_long_period,
            "support_resistance_window": cfg.support_resistance_window,
            "bollinger_period": cfg.bollinger_period,
            "bollinger_std_dev_multiplier": str(cfg.bollinger_std_dev_multiplier),
            "ema_periods": list(cfg.ema_periods),
            "macd_fast_period": cfg.macd_fast_period,
            "macd_slow_period": cfg.macd_slow_period,
            "atr_period": cfg.atr_period,
            "stochastic_period": cfg.stochastic_period,
        },
        "signals": _signal_settings.as_dict(),
    }


@router.post("/analyze")
async def post_analyze(body: dict):
    """Analyze a kline window.

    Body::

        {"symbol": "BTCUSDT", "klines": [[openTime, "o", "h", "l", "c", "v", ...], ...],
         "position": {"average_price": "65000.00"}}

    ``symbol`` and ``position`` are optional.  Returns the cycle result, or
    ``{"status": "error", "kind": ..., "message": ...}``.
    """
    symbol = str(body.get("symbol") or _default_symbol)
    try:
        candles = parse_klines(body.get("klines", []))
        position = None
        raw_position = body.get("position")
        if raw_position:
            if not isinstance(raw_position, dict) or "average_price" not in raw_position:
                return {
                    "status": "error",
                    "kind": "invalid_input",
                    "message": "position must be an object with average_price",
                }
            position = Position(average_price=to_decimal(raw_position["average_price"]))
    except AnalysisError as exc:
        logger.warning("Rejected /analyze request for %s: %s", symbol, exc)
        return _error(exc)

    outcome = run_analysis(
        candles,
        _indicator_config,
        _signal_settings,
        position=position,
        symbol=symbol,
    )
    if not outcome.ok:
        return _error(outcome.error)
    return {"status": "ok", **outcome.result.as_dict()}
