from __future__ import annotations

import logging
import os
from typing import Any

import pytest

from liquid_connector.config import Settings
from liquid_connector.observability import configure_instrumentation


@pytest.fixture(autouse=True)
def isolate_settings_from_host_env(monkeypatch: pytest.MonkeyPatch):
    original_env_file = Settings.model_config.get("env_file")
    Settings.model_config["env_file"] = None

    explicit = {"PYTEST_CURRENT_TEST"}
    settings_env_keys: set[str] = {"HTTPX_LOG_LEVEL", "HTTPCORE_LOG_LEVEL"}
    for field in Settings.model_fields.values():
        if isinstance(field.alias, str):
            settings_env_keys.add(field.alias)
        validation_alias = getattr(field, "validation_alias", None)
        choices = getattr(validation_alias, "choices", ())
        for choice in choices:
            if isinstance(choice, str):
                settings_env_keys.add(choice)

    for key in list(os.environ):
        if key in settings_env_keys and key not in explicit:
            monkeypatch.delenv(key, raising=False)

    yield

    Settings.model_config["env_file"] = original_env_file


@pytest.fixture(autouse=True)
def reset_instrumentation():
    configure_instrumentation(enabled=False)
    yield
    configure_instrumentation(enabled=False)


@pytest.fixture
def currencies_payload() -> list[dict[str, Any]]:
    return [
        {
            "currency_type": "crypto",
            "currency": "BTC",
            "symbol": "₿",
            "assets_precision": 8,
            "quoting_precision": 8,
            "minimum_withdrawal": 0.001,
            "withdrawal_fee": 0.0005,
            "minimum_fee": None,
            "minimum_order_quantity": 0.0001,
            "display_precision": 5,
            "depositable": True,
            "withdrawable": True,
            "discount_fee": 0.5,
        },
        {
            "currency_type": "fiat",
            "currency": "USD",
            "symbol": "$",
            "assets_precision": 2,
            "quoting_precision": 5,
            "minimum_withdrawal": 15.0,
            "withdrawal_fee": 5,
            "minimum_fee": None,
            "minimum_order_quantity": None,
            "display_precision": 2,
            "depositable": True,
            "withdrawable": True,
            "discount_fee": 0.5,
        },
        {
            "currency_type": "fiat",
            "currency": "JPY",
            "assets_precision": 0,
            "quoting_precision": 2,
            "minimum_withdrawal": 500,
            "withdrawal_fee": 300,
            "minimum_order_quantity": None,
            "display_precision": 0,
            "depositable": True,
            "withdrawable": False,
        },
        {
            "currency_type": "crypto",
            "currency": "XRP",
            "assets_precision": 6,
            "quoting_precision": 6,
            "minimum_withdrawal": 20,
            "withdrawal_fee": 0.2,
            "minimum_order_quantity": 1,
            "display_precision": 6,
            "depositable": True,
            "withdrawable": True,
        },
    ]


@pytest.fixture
def spot_products_payload() -> list[dict[str, Any]]:
    return [
        {
            "id": "1",
            "product_type": "CurrencyPair",
            "code": "CASH",
            "name": " CASH Trading",
            "market_ask": 9605.19,
            "market_bid": 9599.44,
            "indicator": -1,
            "currency": "USD",
            "currency_pair_code": "BTCUSD",
            "symbol": "$",
            "btc_minimum_withdraw": None,
            "fiat_minimum_withdraw": None,
            "pusher_channel": "product_cash_btcusd_1",
            "taker_fee": "0.0",
            "maker_fee": "0.0",
            "low_market_bid": "9417.98",
            "high_market_ask": "9750.0",
            "volume_24h": "30.32850458",
            "last_price_24h": "9500.0",
            "last_traded_price": "9600.0",
            "last_traded_quantity": "0.0144",
            "quoted_currency": "USD",
            "base_currency": "BTC",
            "disabled": False,
        },
        {
            "id": "83",
            "product_type": "CurrencyPair",
            "code": "CASH",
            "currency": "USD",
            "currency_pair_code": "XRPUSD",
            "taker_fee": "0.001",
            "maker_fee": "0.0",
            "last_price_24h": "0.0",
            "last_traded_price": "",
            "quoted_currency": "USD",
            "base_currency": "XRP",
            "disabled": True,
        },
    ]


@pytest.fixture
def perpetual_products_payload() -> list[dict[str, Any]]:
    return [
        {
            "id": "603",
            "product_type": "Perpetual",
            "code": "CASH",
            "currency": "JPY",
            "currency_pair_code": "P-BTCJPY",
            "taker_fee": "0.0012",
            "maker_fee": "0.0",
            "last_price_24h": "1000000.0",
            "last_traded_price": "1010000.0",
            "quoted_currency": "JPY",
            "base_currency": "BTC",
            "disabled": False,
        },
    ]


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
