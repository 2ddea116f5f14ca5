from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import httpx

from liquid_connector.adapters.liquid import metadata
from liquid_connector.adapters.liquid.cache import MarketCache, markets_cache_key
from liquid_connector.adapters.liquid.fields import safe_float, safe_string, safe_string2
from liquid_connector.adapters.liquid.parsers import (
    filter_by_since_limit,
    parse_currencies,
    parse_market,
    parse_ohlcvs,
    parse_order,
    parse_order_book,
    parse_orders,
    parse_ticker,
    parse_trades,
    parse_transaction,
)
from liquid_connector.adapters.liquid.rate_limit import AsyncTokenBucket
from liquid_connector.adapters.liquid.registry import MarketRegistry
from liquid_connector.adapters.liquid.rest_client import LiquidRestClient
from liquid_connector.config import Settings
from liquid_connector.domain.errors import (
    ArgumentsRequired,
    ExchangeError,
    InvalidAddress,
    NotSupported,
    OrderNotFound,
)
from liquid_connector.domain.models import (
    BalanceEntry,
    Balances,
    Candle,
    Currency,
    Market,
    Order,
    OrderBook,
    Ticker,
    Trade,
    Transaction,
)
from liquid_connector.domain.precision import round_to_places, truncate_to_places
from liquid_connector.logging_context import with_logging_context

logger = logging.getLogger(__name__)


def _models(payload: Any) -> list[Mapping[str, Any]]:
    if isinstance(payload, Mapping):
        rows = payload.get("models")
        return rows if isinstance(rows, list) else []
    return payload if isinstance(payload, list) else []


def _require_list(payload: Any, *, path: str) -> list[Mapping[str, Any]]:
    if not isinstance(payload, list):
        raise ExchangeError(f"liquid {path} payload must be a JSON array")
    return payload


def _require_object(payload: Any, *, path: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ExchangeError(f"liquid {path} payload must be a JSON object")
    return payload


def check_address(address: str | None) -> str:
    if not address:
        raise InvalidAddress("liquid withdraw() requires an address")
    if " " in address or len(set(address)) == 1:
        raise InvalidAddress(f"liquid address is invalid or has less than 1 characters: {address!r}")
    return address


class LiquidExchange:
    """Unified trading interface over the Liquid REST API."""

    id = metadata.EXCHANGE_ID
    name = metadata.EXCHANGE_NAME
    has = metadata.HAS
    timeframes = metadata.TIMEFRAMES

    def __init__(
        self,
        *,
        api_key: str | None = None,
        api_secret: str | None = None,
        base_url: str = metadata.URLS["api"],
        rest_client: LiquidRestClient | None = None,
        registry: MarketRegistry | None = None,
        cache: MarketCache | None = None,
        markets_cache_ttl_seconds: int = metadata.MARKETS_CACHE_TTL_SECONDS,
        cancel_order_exception: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
        now_ms: Callable[[], int] | None = None,
    ) -> None:
        self.rest = rest_client or LiquidRestClient(
            api_key=api_key,
            api_secret=api_secret,
            base_url=base_url,
            transport=transport,
        )
        self.registry = registry or MarketRegistry()
        self.cache = cache
        self.markets_cache_ttl_seconds = markets_cache_ttl_seconds
        self.cancel_order_exception = cancel_order_exception
        self._now_ms = now_ms or (lambda: int(time.time() * 1000))
        self._load_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        cache: MarketCache | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> LiquidExchange:
        rest = LiquidRestClient(
            api_key=(
                settings.liquid_api_key.get_secret_value() if settings.liquid_api_key else None
            ),
            api_secret=(
                settings.liquid_api_secret.get_secret_value()
                if settings.liquid_api_secret
                else None
            ),
            base_url=settings.liquid_base_url,
            api_version=settings.liquid_api_version,
            timeout=settings.liquid_timeout_seconds,
            limiter=AsyncTokenBucket.from_interval_ms(settings.liquid_rate_limit_ms),
            transport=transport,
        )
        return cls(
            rest_client=rest,
            cache=cache,
            markets_cache_ttl_seconds=settings.liquid_markets_cache_ttl_seconds,
            cancel_order_exception=settings.liquid_cancel_order_exception,
        )

    async def __aenter__(self) -> LiquidExchange:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        del exc_type, exc, tb
        await self.close()

    async def close(self) -> None:
        await self.rest.close()

    async def _public_get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return await self.rest.request(path, api="public", method="GET", params=params)

    async def _private(
        self, method: str, path: str, params: Mapping[str, Any] | None = None
    ) -> Any:
        return await self.rest.request(path, api="private", method=method, params=params)

    # markets and currencies

    async def fetch_currencies(self, params: Mapping[str, Any] | None = None) -> dict[str, Currency]:
        response = await self._public_get("currencies", params)
        return parse_currencies(_require_list(response, path="currencies"), self.registry)

    async def fetch_markets(self, params: Mapping[str, Any] | None = None) -> list[Market]:
        key = markets_cache_key(self.id)
        if self.cache is not None:
            cached = await self.cache.read(key)
            if cached:
                logger.debug("Markets served from cache", extra={"extra": {"cache_key": key}})
                return [Market.model_validate(item) for item in cached]

        spot = await self._public_get("products", params)
        perpetual = await self._public_get("products", {"perpetual": "1"})
        currencies = await self.fetch_currencies()
        rows = _require_list(spot, path="products") + _require_list(perpetual, path="products")
        markets = [parse_market(row, currencies, self.registry) for row in rows]

        if self.cache is not None:
            await self.cache.write(
                key,
                [market.model_dump(mode="json") for market in markets],
                False,
                self.markets_cache_ttl_seconds,
            )
        logger.info(
            "Markets fetched from exchange",
            extra={"extra": {"market_count": len(markets), "cached": self.cache is not None}},
        )
        return markets

    async def load_markets(self, reload: bool = False) -> dict[str, Market]:
        async with self._load_lock:
            if self.registry.loaded and not reload:
                return self.registry.markets
            currencies = await self.fetch_currencies()
            self.registry.set_currencies(currencies)
            markets = await self.fetch_markets()
            self.registry.set_markets(markets, currencies)
            return self.registry.markets

    def market(self, symbol: str) -> Market:
        return self.registry.market(symbol)

    def currency(self, code: str) -> Currency:
        return self.registry.currency(code)

    # precision helpers

    def amount_to_precision(self, symbol: str, amount: float | str) -> str:
        return truncate_to_places(amount, self.market(symbol).precision.amount)

    def price_to_precision(self, symbol: str, price: float | str) -> str:
        return round_to_places(price, self.market(symbol).precision.price)

    def currency_to_precision(self, code: str, amount: float | str) -> str:
        return round_to_places(amount, self.currency(code).precision)

    # account

    async def fetch_balance(self, params: Mapping[str, Any] | None = None) -> Balances:
        await self.load_markets()
        extra_params = dict(params or {})
        balances = _require_list(
            await self._private("GET", "accounts/balance", extra_params), path="accounts/balance"
        )

        funded_ids = [
            str(row.get("currency"))
            for row in balances
            if (safe_float(row, "balance") or 0.0) > 0
        ]
        details = await asyncio.gather(
            *(
                self._private("GET", "accounts/{id}", {**extra_params, "id": currency_id})
                for currency_id in funded_ids
            )
        )
        details_by_id = {
            safe_string(detail, "currency"): detail
            for detail in details
            if isinstance(detail, Mapping)
        }

        entries: dict[str, BalanceEntry] = {}
        for row in balances:
            currency_id = safe_string(row, "currency") or ""
            known = self.registry.currencies_by_id.get(currency_id)
            code = known.code if known is not None else currency_id
            total = safe_float(row, "balance")
            detail = details_by_id.get(currency_id)
            if detail is not None:
                entries[code] = BalanceEntry(
                    free=safe_float(detail, "free_balance"),
                    used=safe_float(detail, "reserved_balance"),
                    total=safe_float(detail, "balance"),
                )
            else:
                entries[code] = BalanceEntry(free=total, used=None, total=total)
        return Balances(entries=entries, info=balances)

    # market data

    async def fetch_order_book(
        self, symbol: str, limit: int | None = None, params: Mapping[str, Any] | None = None
    ) -> OrderBook:
        await self.load_markets()
        market = self.market(symbol)
        response = await self._public_get(
            "products/{id}/price_levels", {"id": market.id, **(params or {})}
        )
        return parse_order_book(
            _require_object(response, path="price_levels"), market.symbol, limit=limit
        )

    async def fetch_ticker(self, symbol: str, params: Mapping[str, Any] | None = None) -> Ticker:
        await self.load_markets()
        market = self.market(symbol)
        response = await self._public_get("products/{id}", {"id": market.id, **(params or {})})
        return parse_ticker(
            _require_object(response, path="products/{id}"),
            self.registry,
            timestamp_ms=self._now_ms(),
            market=market,
        )

    async def fetch_tickers(
        self, symbols: Sequence[str] | None = None, params: Mapping[str, Any] | None = None
    ) -> dict[str, Ticker]:
        await self.load_markets()
        response = _require_list(await self._public_get("products", params), path="products")
        now_ms = self._now_ms()
        result: dict[str, Ticker] = {}
        for row in response:
            ticker = parse_ticker(row, self.registry, timestamp_ms=now_ms)
            if ticker.symbol is None:
                continue
            if symbols is not None and ticker.symbol not in symbols:
                continue
            result[ticker.symbol] = ticker
        return result

    async def fetch_trades(
        self,
        symbol: str,
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> list[Trade]:
        await self.load_markets()
        market = self.market(symbol)
        request: dict[str, Any] = {"product_id": market.id}
        if limit is not None:
            request["limit"] = limit
        if since is not None:
            # the endpoint filters by seconds; since is in milliseconds
            request["timestamp"] = since // 1000
        response = await self._public_get("executions", {**request, **(params or {})})
        rows = response if since is not None and isinstance(response, list) else _models(response)
        return parse_trades(rows, market, since, limit)

    async def fetch_my_trades(
        self,
        symbol: str,
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> list[Trade]:
        await self.load_markets()
        market = self.market(symbol)
        # with_details adds order_id to each execution
        request: dict[str, Any] = {"product_id": market.id, "with_details": True}
        if limit is not None:
            request["limit"] = limit
        response = await self._private("GET", "executions/me", {**request, **(params or {})})
        return parse_trades(_models(response), market, since, limit)

    async def fetch_ohlcv(
        self,
        symbol: str,
        timeframe: str = "1m",
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> list[Candle]:
        resolution = self.timeframes.get(timeframe)
        if resolution is None:
            raise NotSupported(f"liquid does not support timeframe {timeframe}")
        await self.load_markets()
        market = self.market(symbol)
        response = await self._public_get(
            "products/{id}/ohlc",
            {"id": market.id, "resolution": resolution, **(params or {})},
        )
        data = _require_object(response, path="products/{id}/ohlc").get("data")
        return parse_ohlcvs(data, since, limit)

    # orders

    async def create_order(
        self,
        symbol: str,
        type: str,
        side: str,
        amount: float,
        price: float | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Order:
        await self.load_markets()
        extra_params = dict(params or {})
        client_order_id = safe_string2(extra_params, "clientOrderId", "client_order_id")
        extra_params.pop("clientOrderId", None)
        extra_params.pop("client_order_id", None)
        order_type = "stop" if type == "stop_limit" else type
        request: dict[str, Any] = {
            "order_type": order_type,
            "product_id": self.market(symbol).id,
            "side": side,
            "quantity": self.amount_to_precision(symbol, amount),
        }
        if client_order_id is not None:
            request["client_order_id"] = client_order_id
        if order_type in metadata.PRICED_ORDER_TYPES:
            if price is None:
                raise ArgumentsRequired(f"liquid create_order requires a price for {order_type} orders")
            request["price"] = self.price_to_precision(symbol, price)

        with with_logging_context(symbol=symbol, client_order_id=client_order_id):
            response = await self._private("POST", "orders", {**request, **extra_params})
            order = parse_order(_require_object(response, path="orders"), self.registry)
            logger.info(
                "Order created",
                extra={"extra": {"order_id": order.id, "status": order.status, "type": order_type}},
            )
        return order

    async def cancel_order(
        self, id: str, symbol: str | None = None, params: Mapping[str, Any] | None = None
    ) -> Order:
        await self.load_markets()
        with with_logging_context(order_id=str(id), symbol=symbol):
            response = await self._private(
                "PUT", "orders/{id}/cancel", {"id": id, **(params or {})}
            )
            order = parse_order(_require_object(response, path="orders/{id}/cancel"), self.registry)
            if order.status == "closed" and self.cancel_order_exception:
                # the venue accepts cancels for filled orders without signalling failure
                raise OrderNotFound(
                    f"liquid order closed already: {json.dumps(response, default=str)}",
                    response_body=json.dumps(response, default=str),
                )
        return order

    async def edit_order(
        self,
        id: str,
        symbol: str,
        type: str,
        side: str,
        amount: float,
        price: float | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Order:
        del type, side
        await self.load_markets()
        if price is None:
            raise ArgumentsRequired("liquid edit_order requires the price argument")
        request = {
            "id": id,
            "order": {
                "quantity": self.amount_to_precision(symbol, amount),
                "price": self.price_to_precision(symbol, price),
            },
        }
        response = await self._private("PUT", "orders/{id}", {**request, **(params or {})})
        return parse_order(_require_object(response, path="orders/{id}"), self.registry)

    async def fetch_order(
        self, id: str, symbol: str | None = None, params: Mapping[str, Any] | None = None
    ) -> Order:
        del symbol
        await self.load_markets()
        response = await self._private("GET", "orders/{id}", {"id": id, **(params or {})})
        return parse_order(_require_object(response, path="orders/{id}"), self.registry)

    async def fetch_orders(
        self,
        symbol: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> list[Order]:
        await self.load_markets()
        # with_details includes executions for each order
        request: dict[str, Any] = {"with_details": 1}
        if symbol is not None:
            request["product_id"] = self.market(symbol).id
        if limit is not None:
            request["limit"] = limit
        response = await self._private("GET", "orders", {**request, **(params or {})})
        return parse_orders(_models(response), self.registry, since, limit)

    async def fetch_open_orders(
        self,
        symbol: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> list[Order]:
        return await self.fetch_orders(symbol, since, limit, {"status": "live", **(params or {})})

    async def fetch_closed_orders(
        self,
        symbol: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> list[Order]:
        return await self.fetch_orders(symbol, since, limit, {"status": "filled", **(params or {})})

    # funding

    async def withdraw(
        self,
        code: str,
        amount: float,
        address: str,
        tag: str | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Transaction:
        check_address(address)
        await self.load_markets()
        currency = self.currency(code)
        request: dict[str, Any] = {
            "currency": currency.id,
            "address": address,
            "amount": self.currency_to_precision(code, amount),
        }
        if tag is not None:
            if code == "XRP":
                request["payment_id"] = tag
            elif code == "XLM":
                request["memo_type"] = "text"
                request["memo_value"] = tag
            else:
                raise NotSupported("liquid withdraw() only supports a tag along the address for XRP or XLM")
        response = await self._private("POST", "crypto_withdrawals", {**request, **(params or {})})
        transaction = parse_transaction(
            _require_object(response, path="crypto_withdrawals"), self.registry, currency
        )
        logger.info(
            "Withdrawal requested",
            extra={"extra": {"withdrawal_id": transaction.id, "currency": code, "status": transaction.status}},
        )
        return transaction

    async def fetch_withdrawals(
        self,
        code: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> list[Transaction]:
        await self.load_markets()
        currency = None
        request: dict[str, Any] = {}
        if code is not None:
            currency = self.currency(code)
            request["currency"] = currency.id
        response = await self._private("GET", "crypto_withdrawals", {**request, **(params or {})})
        transactions = [
            parse_transaction(row, self.registry, currency) for row in _models(response)
        ]
        return filter_by_since_limit(transactions, since, limit)
