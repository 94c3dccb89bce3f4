"""TradeSignal — application entry point.

Boots the FastAPI internal server and provides the CLI entry point that
analyzes a kline file.
"""

import logging

from fastapi import FastAPI

from tradesignal.api.routers import router

app = FastAPI(title="TradeSignal Internal API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("tradesignal")


@app.get("/health")
async def health():
    """Liveness check."""
    return {"status": "ok"}


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli() -> int:
    """Parse CLI arguments and either analyze a kline file or serve the API."""
    import argparse

    from tradesignal.api.routers import configure_routers
    from tradesignal.cli.report import print_report
    from tradesignal.config import load_config
    from tradesignal.data.klines import load_klines
    from tradesignal.errors import AnalysisError
    from tradesignal.pipeline import run_analysis
    from tradesignal.strategy.decimal_ops import to_decimal
    from tradesignal.strategy.models import Position

    parser = argparse.ArgumentParser(description="TradeSignal market analysis")
    parser.add_argument("--klines", help="JSON file with Binance-style kline rows")
    parser.add_argument("--symbol", help="Symbol label (default: TRADE_SYMBOL)")
    parser.add_argument(
        "--average-price",
        help="Average price of the open position, enables stop-loss/take-profit",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the internal API server instead of analyzing a file",
    )
    args = parser.parse_args()

    try:
        config = load_config()
    except ValueError as exc:
        parser.exit(2, f"Configuration error: {exc}\n")
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.serve:
        import uvicorn

        try:
            configure_routers(config)
        except AnalysisError as exc:
            parser.exit(2, f"Configuration error: {exc}\n")
        logger.info("API available at http://localhost:%d", config.api_port)
        uvicorn.run(app, host="0.0.0.0", port=config.api_port, log_level="info")
        return 0

    if not args.klines:
        parser.error("--klines is required unless --serve is given")

    symbol = args.symbol or config.trade_symbol
    try:
        indicator_config = config.indicator_config()
        candles = load_klines(args.klines)
        position = (
            Position(average_price=to_decimal(args.average_price))
            if args.average_price
            else None
        )
    except (AnalysisError, OSError) as exc:
        logger.error("Cannot read %s: %s", args.klines, exc)
        return 2

    outcome = run_analysis(
        candles,
        indicator_config,
        config.signal_settings(),
        position=position,
        symbol=symbol,
    )
    if not outcome.ok:
        return 1
    print_report(outcome.result)
    return 0


if __name__ == "__main__":
    raise SystemExit(_run_cli())
