from __future__ import annotations

import json

import httpx
import pytest

from liquid_connector import cli
from liquid_connector.adapters.liquid.exchange import LiquidExchange
from liquid_connector.adapters.liquid.rate_limit import AsyncTokenBucket
from liquid_connector.adapters.liquid.rest_client import LiquidRestClient


def _patch_exchange(monkeypatch: pytest.MonkeyPatch, handler) -> None:  # type: ignore[no-untyped-def]
    def _from_settings(settings, cache=None):  # type: ignore[no-untyped-def]
        rest = LiquidRestClient(
            base_url=settings.liquid_base_url,
            limiter=AsyncTokenBucket(rate_per_sec=10_000, burst=10_000),
            transport=httpx.MockTransport(handler),
        )
        return LiquidExchange(rest_client=rest, cache=cache)

    monkeypatch.setattr(cli.LiquidExchange, "from_settings", staticmethod(_from_settings))


def test_parser_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_orderbook_command_parses_limit() -> None:
    args = cli.build_parser().parse_args(["orderbook", "BTC/USD", "--limit", "5"])

    assert args.command == "orderbook"
    assert args.symbol == "BTC/USD"
    assert args.limit == 5


def test_currencies_command_prints_json(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], currencies_payload
) -> None:
    _patch_exchange(monkeypatch, lambda request: httpx.Response(200, json=currencies_payload))

    exit_code = cli.main(["currencies"])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert sorted(output) == ["BTC", "JPY", "USD", "XRP"]
    assert output["BTC"]["precision"] == 8
    assert "info" not in output["BTC"]


def test_exchange_error_exits_with_status_one(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _patch_exchange(monkeypatch, lambda request: httpx.Response(503, text="maintenance"))

    exit_code = cli.main(["currencies"])

    assert exit_code == 1
    assert capsys.readouterr().out == ""


def test_balance_without_credentials_exits_with_status_one(
    monkeypatch: pytest.MonkeyPatch, currencies_payload
) -> None:
    _patch_exchange(monkeypatch, lambda request: httpx.Response(200, json=currencies_payload))

    assert cli.main(["balance"]) == 1
