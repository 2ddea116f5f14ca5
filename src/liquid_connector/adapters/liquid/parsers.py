"""Mapping functions from raw Liquid JSON payloads to unified records."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TypeVar

from liquid_connector.adapters.liquid.fields import (
    iso8601,
    safe_float,
    safe_integer,
    safe_string,
    safe_string2,
    safe_timestamp,
    safe_value,
)
from liquid_connector.adapters.liquid.registry import MarketRegistry
from liquid_connector.domain.models import (
    Candle,
    Currency,
    CurrencyLimits,
    Market,
    MarketLimits,
    MarketPrecision,
    MarketType,
    MinMax,
    Order,
    OrderBook,
    OrderFee,
    Ticker,
    Trade,
    Transaction,
)

logger = logging.getLogger(__name__)

_DEFAULT_MARKET_PRECISION = 8

ORDER_STATUSES = {
    "live": "open",
    "filled": "closed",
    "cancelled": "canceled",
}

TRANSACTION_STATUSES = {
    "pending": "pending",
    "cancelled": "canceled",
    "approved": "ok",
}

_Timestamped = TypeVar("_Timestamped", Trade, Order, Transaction)


def _sum_defined(*values: float | None) -> float | None:
    defined = [value for value in values if value is not None]
    return sum(defined) if defined else None


def _power_limits(precision: int | None) -> MinMax:
    if precision is None:
        return MinMax()
    return MinMax(min=10.0 ** -precision, max=10.0**precision)


def filter_by_since_limit(
    items: Iterable[_Timestamped], since: int | None = None, limit: int | None = None
) -> list[_Timestamped]:
    ordered = sorted(items, key=lambda item: item.timestamp or 0)
    if since is not None:
        ordered = [item for item in ordered if item.timestamp is not None and item.timestamp >= since]
    if limit is not None:
        ordered = ordered[:limit]
    return ordered


def parse_currency(raw: Mapping[str, Any], registry: MarketRegistry) -> Currency:
    #     {
    #         currency_type: 'fiat',
    #         currency: 'USD',
    #         assets_precision: 2,
    #         quoting_precision: 5,
    #         minimum_withdrawal: '15.0',
    #         withdrawal_fee: 5,
    #         minimum_order_quantity: null,
    #         display_precision: 2,
    #         depositable: true,
    #         withdrawable: true,
    #     }
    currency_id = safe_string(raw, "currency") or ""
    code = registry.safe_currency_code(currency_id) or currency_id
    active = bool(raw.get("depositable")) and bool(raw.get("withdrawable"))
    amount_precision = safe_integer(raw, "display_precision")
    price_precision = safe_integer(raw, "quoting_precision")
    precision = None
    if amount_precision is not None and price_precision is not None:
        precision = max(amount_precision, price_precision)
    return Currency(
        id=currency_id,
        code=code,
        name=code,
        active=active,
        fee=safe_float(raw, "withdrawal_fee"),
        precision=precision,
        limits=CurrencyLimits(
            amount=_power_limits(amount_precision),
            price=_power_limits(price_precision),
            withdraw=MinMax(min=safe_float(raw, "minimum_withdrawal")),
        ),
        info=raw,
    )


def parse_currencies(
    rows: Sequence[Mapping[str, Any]], registry: MarketRegistry
) -> dict[str, Currency]:
    result: dict[str, Currency] = {}
    for row in rows:
        currency = parse_currency(row, registry)
        result[currency.code] = currency
    return result


def parse_market(
    raw: Mapping[str, Any],
    currencies: Mapping[str, Currency],
    registry: MarketRegistry,
) -> Market:
    market_id = safe_string(raw, "id") or ""
    base_id = safe_string(raw, "base_currency")
    quote_id = safe_string(raw, "quoted_currency")
    is_swap = safe_string(raw, "product_type") == "Perpetual"
    base = registry.safe_currency_code(base_id) or ""
    quote = registry.safe_currency_code(quote_id) or ""
    if is_swap:
        symbol = safe_string(raw, "currency_pair_code") or market_id
    else:
        symbol = f"{base}/{quote}"

    base_currency = currencies.get(base)
    quote_currency = currencies.get(quote)
    price_precision = _DEFAULT_MARKET_PRECISION
    min_amount = None
    min_price = None
    if base_currency is not None:
        min_amount = safe_float(base_currency.info, "minimum_order_quantity")
    if quote_currency is not None:
        quoting_precision = safe_integer(quote_currency.info, "quoting_precision")
        if quoting_precision is not None:
            price_precision = quoting_precision
            min_price = 10.0**-quoting_precision
    min_cost = None
    if min_price is not None and min_amount is not None:
        min_cost = min_price * min_amount

    return Market(
        id=market_id,
        symbol=symbol,
        base=base,
        quote=quote,
        base_id=base_id,
        quote_id=quote_id,
        type=MarketType.SWAP if is_swap else MarketType.SPOT,
        spot=not is_swap,
        swap=is_swap,
        maker=safe_float(raw, "maker_fee"),
        taker=safe_float(raw, "taker_fee"),
        active=not bool(safe_value(raw, "disabled", False)),
        precision=MarketPrecision(amount=_DEFAULT_MARKET_PRECISION, price=price_precision),
        limits=MarketLimits(
            amount=MinMax(min=min_amount),
            price=MinMax(min=min_price),
            cost=MinMax(min=min_cost),
        ),
        info=raw,
    )


def parse_ticker(
    raw: Mapping[str, Any],
    registry: MarketRegistry,
    *,
    timestamp_ms: int,
    market: Market | None = None,
) -> Ticker:
    last = None
    last_raw = raw.get("last_traded_price")
    if last_raw is not None and str(last_raw) != "":
        last = safe_float(raw, "last_traded_price")

    symbol = None
    if market is None:
        market = registry.markets_by_id.get(safe_string(raw, "id") or "")
    if market is not None:
        symbol = market.symbol
    else:
        base_id = safe_string(raw, "base_currency")
        quote_id = safe_string(raw, "quoted_currency")
        if base_id is not None and quote_id is not None:
            symbol = f"{registry.safe_currency_code(base_id)}/{registry.safe_currency_code(quote_id)}"

    change = None
    percentage = None
    average = None
    open_price = safe_float(raw, "last_price_24h")
    if open_price is not None and last is not None:
        change = last - open_price
        average = (last + open_price) / 2
        if open_price > 0:
            percentage = change / open_price * 100

    return Ticker(
        symbol=symbol,
        timestamp=timestamp_ms,
        datetime=iso8601(timestamp_ms),
        high=safe_float(raw, "high_market_ask"),
        low=safe_float(raw, "low_market_bid"),
        bid=safe_float(raw, "market_bid"),
        ask=safe_float(raw, "market_ask"),
        open=open_price,
        close=last,
        last=last,
        change=change,
        percentage=percentage,
        average=average,
        base_volume=safe_float(raw, "volume_24h"),
        info=raw,
    )


def parse_trade(raw: Mapping[str, Any], market: Market | None = None) -> Trade:
    #     {
    #         id: 12345,
    #         quantity: "6.789",
    #         price: "98765.4321",
    #         taker_side: "sell",
    #         created_at: 1512345678,
    #         my_side: "buy",
    #     }
    timestamp = safe_timestamp(raw, "created_at")
    taker_side = safe_string(raw, "taker_side")
    # my_side is only present on own executions
    my_side = safe_string(raw, "my_side")
    side = my_side if my_side is not None else taker_side
    taker_or_maker = None
    if my_side is not None:
        taker_or_maker = "taker" if taker_side == my_side else "maker"
    price = safe_float(raw, "price")
    amount = safe_float(raw, "quantity")
    cost = None
    if price is not None and amount is not None:
        cost = price * amount
    return Trade(
        id=safe_string(raw, "id"),
        order=safe_string(raw, "order_id"),
        timestamp=timestamp,
        datetime=iso8601(timestamp),
        symbol=market.symbol if market is not None else None,
        side=side,
        taker_or_maker=taker_or_maker,
        price=price,
        amount=amount,
        cost=cost,
        info=raw,
    )


def parse_trades(
    rows: Iterable[Mapping[str, Any]],
    market: Market | None = None,
    since: int | None = None,
    limit: int | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> list[Trade]:
    trades = [parse_trade(row, market) for row in rows]
    if overrides:
        trades = [trade.model_copy(update=dict(overrides)) for trade in trades]
    return filter_by_since_limit(trades, since, limit)


def parse_order_status(status: str | None) -> str | None:
    if status is None:
        return None
    return ORDER_STATUSES.get(status, status)


def parse_order(raw: Mapping[str, Any], registry: MarketRegistry) -> Order:
    order_id = safe_string(raw, "id")
    timestamp = safe_timestamp(raw, "created_at")
    market = registry.markets_by_id.get(safe_string(raw, "product_id") or "")
    amount = safe_float(raw, "quantity")
    filled = safe_float(raw, "filled_quantity")
    order_type = safe_string(raw, "order_type")
    average = safe_float(raw, "average_price")
    trades = parse_trades(
        safe_value(raw, "executions", []),
        market,
        overrides={"order": order_id, "type": order_type},
    )

    trade_cost = 0.0
    trade_filled = 0.0
    for trade in trades:
        trade_filled = _sum_defined(trade_filled, trade.amount) or 0.0
        trade_cost = _sum_defined(trade_cost, trade.cost) or 0.0

    cost = None
    last_trade_timestamp = None
    if trades:
        last_trade_timestamp = trades[-1].timestamp
        if not average and trade_filled > 0:
            average = trade_cost / trade_filled
        cost = trade_cost
        if filled is None:
            filled = trade_filled

    remaining = None
    if amount is not None and filled is not None:
        remaining = amount - filled

    return Order(
        id=order_id,
        client_order_id=safe_string(raw, "client_order_id"),
        timestamp=timestamp,
        datetime=iso8601(timestamp),
        last_trade_timestamp=last_trade_timestamp,
        type=order_type,
        status=parse_order_status(safe_string(raw, "status")),
        symbol=market.symbol if market is not None else None,
        side=safe_string(raw, "side"),
        price=safe_float(raw, "price"),
        amount=amount,
        filled=filled,
        remaining=remaining,
        average=average,
        cost=cost,
        trades=trades,
        fee=OrderFee(
            currency=market.quote if market is not None else None,
            cost=safe_float(raw, "order_fee"),
        ),
        info=raw,
    )


def parse_orders(
    rows: Iterable[Mapping[str, Any]],
    registry: MarketRegistry,
    since: int | None = None,
    limit: int | None = None,
) -> list[Order]:
    return filter_by_since_limit((parse_order(row, registry) for row in rows), since, limit)


def parse_transaction_status(status: str | None) -> str | None:
    if status is None:
        return None
    return TRANSACTION_STATUSES.get(status, status)


def parse_transaction(
    raw: Mapping[str, Any],
    registry: MarketRegistry,
    currency: Currency | None = None,
) -> Transaction:
    #     {
    #         "id": 1353,
    #         "address": "1BvBMSEYstWetqTFn5Au4m4GFg7xJaNVN2",
    #         "amount": 1.0,
    #         "state": "pending",
    #         "currency": "BTC",
    #         "withdrawal_fee": 0.0,
    #         "created_at": 1568016450,
    #         "updated_at": 1568016450,
    #         "payment_id": null
    #     }
    timestamp = safe_timestamp(raw, "created_at")
    currency_id = safe_string2(raw, "asset", "currency")
    return Transaction(
        id=safe_string(raw, "id"),
        address=safe_string(raw, "address"),
        tag=safe_string2(raw, "payment_id", "memo_value"),
        timestamp=timestamp,
        datetime=iso8601(timestamp),
        updated=safe_timestamp(raw, "updated_at"),
        status=parse_transaction_status(safe_string(raw, "state")),
        amount=safe_float(raw, "amount"),
        currency=registry.safe_currency_code(currency_id, currency),
        info=raw,
    )


def _parse_levels(levels: Any) -> list[list[float]]:
    if not isinstance(levels, list):
        return []
    parsed: list[list[float]] = []
    for level in levels:
        if not isinstance(level, (list, tuple)) or len(level) < 2:
            logger.warning(
                "Skipping malformed price level",
                extra={"extra": {"level": repr(level)[:80]}},
            )
            continue
        parsed.append([float(level[0]), float(level[1])])
    return parsed


def parse_order_book(
    raw: Mapping[str, Any],
    symbol: str,
    *,
    limit: int | None = None,
    bids_key: str = "buy_price_levels",
    asks_key: str = "sell_price_levels",
) -> OrderBook:
    bids = sorted(_parse_levels(raw.get(bids_key)), key=lambda level: level[0], reverse=True)
    asks = sorted(_parse_levels(raw.get(asks_key)), key=lambda level: level[0])
    if limit is not None:
        bids = bids[:limit]
        asks = asks[:limit]
    return OrderBook(symbol=symbol, bids=bids, asks=asks)


def _candle_value(row: Sequence[Any], index: int) -> float | None:
    if len(row) <= index or row[index] is None:
        return None
    return float(row[index])


def parse_ohlcvs(
    rows: Sequence[Sequence[Any]] | Mapping[str, Sequence[Any]] | None,
    since: int | None = None,
    limit: int | None = None,
) -> list[Candle]:
    values = list(rows.values()) if isinstance(rows, Mapping) else list(rows or [])
    candles: list[Candle] = []
    for row in values:
        if limit and len(candles) >= limit:
            break
        # the venue reports candle open times in seconds
        timestamp = int(float(row[0]) * 1000)
        if since and timestamp < since:
            continue
        candles.append(
            Candle(
                timestamp=timestamp,
                open=_candle_value(row, 1),
                high=_candle_value(row, 2),
                low=_candle_value(row, 3),
                close=_candle_value(row, 4),
                volume=_candle_value(row, 5),
            )
        )
    return sorted(candles, key=lambda candle: candle.timestamp)
