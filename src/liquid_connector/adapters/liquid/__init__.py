from .auth import MonotonicNonceGenerator, SignedRequest, build_auth_token, sign_request
from .cache import InMemoryTtlCache, MarketCache, markets_cache_key
from .errors import handle_errors
from .exchange import LiquidExchange, check_address
from .rate_limit import AsyncTokenBucket
from .registry import MarketRegistry
from .rest_client import LiquidRestClient

__all__ = [
    "AsyncTokenBucket",
    "InMemoryTtlCache",
    "LiquidExchange",
    "LiquidRestClient",
    "MarketCache",
    "MarketRegistry",
    "MonotonicNonceGenerator",
    "SignedRequest",
    "build_auth_token",
    "check_address",
    "handle_errors",
    "markets_cache_key",
    "sign_request",
]
