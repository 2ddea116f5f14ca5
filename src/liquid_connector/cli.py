from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel

from liquid_connector.adapters.liquid import InMemoryTtlCache, LiquidExchange
from liquid_connector.config import Settings
from liquid_connector.domain.errors import ExchangeError
from liquid_connector.logging_utils import setup_logging
from liquid_connector.observability import configure_instrumentation, get_instrumentation
from liquid_connector.security.redaction import sanitize_text

logger = logging.getLogger(__name__)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude={"info"})
    if isinstance(value, dict):
        return {key: _to_jsonable(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    return value


async def _markets(exchange: LiquidExchange, args: argparse.Namespace) -> Any:
    del args
    return await exchange.load_markets()


async def _currencies(exchange: LiquidExchange, args: argparse.Namespace) -> Any:
    del args
    return await exchange.fetch_currencies()


async def _ticker(exchange: LiquidExchange, args: argparse.Namespace) -> Any:
    return await exchange.fetch_ticker(args.symbol)


async def _orderbook(exchange: LiquidExchange, args: argparse.Namespace) -> Any:
    return await exchange.fetch_order_book(args.symbol, limit=args.limit)


async def _balance(exchange: LiquidExchange, args: argparse.Namespace) -> Any:
    del args
    balances = await exchange.fetch_balance()
    return {code: entry for code, entry in balances.entries.items()}


COMMANDS: dict[str, Callable[[LiquidExchange, argparse.Namespace], Awaitable[Any]]] = {
    "markets": _markets,
    "currencies": _currencies,
    "ticker": _ticker,
    "orderbook": _orderbook,
    "balance": _balance,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="liquid-connector",
        epilog="Credentials are read from LIQUID_API_KEY and LIQUID_API_SECRET.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("markets", help="Load and print all markets")
    subparsers.add_parser("currencies", help="Print all currencies")

    ticker_parser = subparsers.add_parser("ticker", help="Print the ticker for one market")
    ticker_parser.add_argument("symbol", help="Unified symbol, e.g. BTC/USD")

    orderbook_parser = subparsers.add_parser("orderbook", help="Print the order book for one market")
    orderbook_parser.add_argument("symbol", help="Unified symbol, e.g. BTC/USD")
    orderbook_parser.add_argument(
        "--limit", type=int, default=None, help="Maximum price levels per side"
    )

    subparsers.add_parser("balance", help="Print account balances (requires credentials)")
    return parser


async def run_command(
    settings: Settings, args: argparse.Namespace, *, exchange: LiquidExchange | None = None
) -> Any:
    connector = exchange or LiquidExchange.from_settings(settings, InMemoryTtlCache())
    async with connector:
        return await COMMANDS[args.command](connector, args)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    setup_logging(settings.log_level)
    configure_instrumentation(
        enabled=settings.observability_enabled,
        otlp_endpoint=settings.observability_otlp_endpoint,
    )
    try:
        result = asyncio.run(run_command(settings, args))
    except ExchangeError as exc:
        logger.error(
            "Liquid command failed",
            extra={
                "extra": {
                    "command": args.command,
                    "error_type": type(exc).__name__,
                    "error": sanitize_text(str(exc)),
                }
            },
        )
        return 1
    finally:
        get_instrumentation().shutdown()

    json.dump(_to_jsonable(result), sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
