from __future__ import annotations

from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from liquid_connector.adapters.liquid.errors import handle_errors
from liquid_connector.adapters.liquid.parsers import parse_order, parse_trade
from liquid_connector.adapters.liquid.registry import MarketRegistry
from liquid_connector.domain.errors import ExchangeError
from liquid_connector.domain.precision import round_to_places, truncate_to_places

quantities = st.decimals(min_value=0, max_value=10_000, places=8, allow_nan=False)
prices = st.decimals(min_value=Decimal("0.00000001"), max_value=1_000_000, places=8)


@given(amount=quantities, filled=quantities)
def test_order_remaining_is_amount_minus_filled(amount: Decimal, filled: Decimal) -> None:
    order = parse_order(
        {"id": 1, "quantity": str(amount), "filled_quantity": str(filled), "status": "live"},
        MarketRegistry(),
    )

    assert order.remaining == pytest.approx(float(amount) - float(filled))


@given(price=prices, amount=quantities)
def test_trade_cost_is_price_times_amount(price: Decimal, amount: Decimal) -> None:
    trade = parse_trade({"price": str(price), "quantity": str(amount), "taker_side": "buy"})

    assert trade.cost == pytest.approx(float(price) * float(amount))


@given(value=prices, places=st.integers(min_value=0, max_value=8))
def test_truncation_never_rounds_up(value: Decimal, places: int) -> None:
    truncated = Decimal(truncate_to_places(value, places))
    rounded = Decimal(round_to_places(value, places))

    assert truncated <= value
    assert value - truncated < Decimal(1).scaleb(-places)
    assert abs(rounded - value) <= Decimal(1).scaleb(-places) / 2


@given(status=st.integers(min_value=200, max_value=299), message=st.text(max_size=40))
def test_success_statuses_never_raise(status: int, message: str) -> None:
    handle_errors(status, message, {"message": message})


@given(status=st.integers(min_value=400, max_value=599).filter(lambda code: code not in (401, 429)))
def test_unknown_error_bodies_raise_generic_error(status: int) -> None:
    with pytest.raises(ExchangeError) as exc_info:
        handle_errors(status, '{"message": "unmapped"}', {"message": "unmapped"})

    assert type(exc_info.value) is ExchangeError
    assert exc_info.value.status_code == status
