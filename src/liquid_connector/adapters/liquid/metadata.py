"""Static description of the Liquid REST API (v2)."""

from __future__ import annotations

from types import MappingProxyType

from liquid_connector.domain.errors import (
    AuthenticationError,
    ExchangeError,
    InsufficientFunds,
    InvalidNonce,
    InvalidOrder,
    OrderNotFound,
    RateLimitExceeded,
)

EXCHANGE_ID = "liquid"
EXCHANGE_NAME = "Liquid"
API_VERSION = "2"
RATE_LIMIT_MS = 1000
MARKETS_CACHE_TTL_SECONDS = 60 * 60

URLS = MappingProxyType(
    {
        "api": "https://api.liquid.com",
        "www": "https://www.liquid.com",
        "doc": "https://developers.liquid.com",
        "fees": "https://help.liquid.com/getting-started-with-liquid/the-platform/fee-structure",
    }
)

HAS = MappingProxyType(
    {
        "CORS": False,
        "fetchCurrencies": True,
        "fetchTickers": True,
        "fetchOrder": True,
        "fetchOrders": True,
        "fetchOpenOrders": True,
        "fetchClosedOrders": True,
        "fetchMyTrades": True,
        "fetchOHLCV": True,
        "fetchWithdrawals": True,
        "withdraw": True,
    }
)

# visibility -> HTTP verb -> path templates
API: MappingProxyType[str, MappingProxyType[str, frozenset[str]]] = MappingProxyType(
    {
        "public": MappingProxyType(
            {
                "GET": frozenset(
                    {
                        "currencies",
                        "products",
                        "products/{id}",
                        "products/{id}/price_levels",
                        "executions",
                        "ir_ladders/{currency}",
                        "products/{id}/ohlc",
                        "fees",
                    }
                ),
            }
        ),
        "private": MappingProxyType(
            {
                "GET": frozenset(
                    {
                        "accounts/balance",
                        "accounts/main_asset",
                        "accounts/{id}",
                        "accounts/{currency}/reserved_balance_details",
                        "crypto_accounts",
                        "crypto_withdrawals",
                        "executions/me",
                        "fiat_accounts",
                        "fund_infos",
                        "loan_bids",
                        "loans",
                        "orders",
                        "orders/{id}",
                        "orders/{id}/trades",
                        "trades",
                        "trades/{id}/loans",
                        "trading_accounts",
                        "trading_accounts/{id}",
                        "transactions",
                        "withdrawals",
                    }
                ),
                "POST": frozenset(
                    {
                        "crypto_withdrawals",
                        "fund_infos",
                        "fiat_accounts",
                        "loan_bids",
                        "orders",
                        "withdrawals",
                    }
                ),
                "PUT": frozenset(
                    {
                        "crypto_withdrawal/{id}/cancel",
                        "loan_bids/{id}/close",
                        "loans/{id}",
                        "orders/{id}",
                        "orders/{id}/cancel",
                        "trades/{id}",
                        "trades/{id}/adjust_margin",
                        "trades/{id}/close",
                        "trades/close_all",
                        "trading_accounts/{id}",
                        "withdrawals/{id}/cancel",
                    }
                ),
            }
        ),
    }
)

TIMEFRAMES = MappingProxyType(
    {
        "1m": "60",
        "5m": "300",
        "15m": "900",
        "30m": "1800",
        "1h": "3600",
        "2h": "7200",
        "4h": "14400",
        "6h": "21600",
        "1d": "86400",
        "3d": "259200",
        "1w": "604800",
    }
)

# Bodies for these statuses are plain text, not JSON.
SKIP_JSON_ON_STATUS_CODES = frozenset({401})

# Matched by exact string equality. Reworded venue messages fall through to ExchangeError.
EXACT_EXCEPTIONS: MappingProxyType[str, type[ExchangeError]] = MappingProxyType(
    {
        "API rate limit exceeded. Please retry after 300s": RateLimitExceeded,
        "API Authentication failed": AuthenticationError,
        "Nonce is too small": InvalidNonce,
        "Order not found": OrderNotFound,
        "Can not update partially filled order": InvalidOrder,
        "Can not update non-live order": OrderNotFound,
        "not_enough_free_balance": InsufficientFunds,
        "must_be_positive": InvalidOrder,
        "less_than_order_size": InvalidOrder,
    }
)

_DEFAULT_COMMON_CURRENCIES = {
    "XBT": "BTC",
    "BCC": "BCH",
    "DRK": "DASH",
    "BCHABC": "BCH",
    "BCHSV": "BSV",
}

COMMON_CURRENCIES = MappingProxyType(
    {
        **_DEFAULT_COMMON_CURRENCIES,
        "WIN": "WCOIN",
        "HOT": "HOT Token",
    }
)

# Order types that carry a limit price on submission.
PRICED_ORDER_TYPES = frozenset({"limit", "limit_post_only", "market_with_range", "stop"})


def is_declared(api: str, method: str, path: str) -> bool:
    return path in API.get(api, {}).get(method.upper(), frozenset())
