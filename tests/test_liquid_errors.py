from __future__ import annotations

import json

import pytest

from liquid_connector.adapters.liquid.errors import handle_errors
from liquid_connector.domain.errors import (
    ArgumentsRequired,
    AuthenticationError,
    ExchangeError,
    InsufficientFunds,
    InvalidNonce,
    InvalidOrder,
    NotSupported,
    OrderNotFound,
    RateLimitExceeded,
)


def _raise_for(status: int, payload: object) -> None:
    body = json.dumps(payload)
    handle_errors(status, body, payload)


def test_success_status_never_raises_even_with_message() -> None:
    handle_errors(200, '{"message": "Order not found"}', {"message": "Order not found"})


@pytest.mark.parametrize(
    ("message", "error_cls"),
    [
        ("API rate limit exceeded. Please retry after 300s", RateLimitExceeded),
        ("API Authentication failed", AuthenticationError),
        ("Nonce is too small", InvalidNonce),
        ("Order not found", OrderNotFound),
        ("Can not update partially filled order", InvalidOrder),
        ("Can not update non-live order", OrderNotFound),
    ],
)
def test_message_field_maps_to_error_kind(message: str, error_cls: type[ExchangeError]) -> None:
    with pytest.raises(error_cls) as exc_info:
        _raise_for(422, {"message": message})

    assert exc_info.value.status_code == 422
    assert exc_info.value.error_message == message
    assert exc_info.value.response_body == json.dumps({"message": message})
    assert str(exc_info.value).startswith("liquid ")


def test_errors_field_lists_are_matched() -> None:
    with pytest.raises(InsufficientFunds):
        _raise_for(422, {"errors": {"user": ["not_enough_free_balance"]}})


def test_errors_field_plain_strings_are_matched() -> None:
    with pytest.raises(InvalidOrder):
        _raise_for(422, {"errors": {"quantity": "less_than_order_size"}})


def test_any_matching_entry_in_errors_wins() -> None:
    with pytest.raises(InvalidOrder):
        _raise_for(422, {"errors": {"user": ["something_else"], "price": ["must_be_positive"]}})


def test_401_matches_raw_body_verbatim() -> None:
    with pytest.raises(AuthenticationError) as exc_info:
        handle_errors(401, "API Authentication failed", None)

    assert str(exc_info.value) == "API Authentication failed"
    assert exc_info.value.status_code == 401


def test_401_with_unknown_body_is_generic() -> None:
    with pytest.raises(ExchangeError) as exc_info:
        handle_errors(401, "Unauthorized", None)

    assert type(exc_info.value) is ExchangeError
    assert exc_info.value.response_body == "Unauthorized"


def test_429_is_rate_limited_regardless_of_body() -> None:
    with pytest.raises(RateLimitExceeded) as exc_info:
        handle_errors(429, "slow down", None)

    assert exc_info.value.status_code == 429


def test_matching_is_exact_not_substring() -> None:
    with pytest.raises(ExchangeError) as exc_info:
        _raise_for(404, {"message": "Order not found!"})

    assert type(exc_info.value) is ExchangeError


def test_unparsable_error_body_is_generic_with_status() -> None:
    with pytest.raises(ExchangeError) as exc_info:
        handle_errors(502, "<html>bad gateway</html>", None)

    assert type(exc_info.value) is ExchangeError
    assert exc_info.value.status_code == 502
    assert "502" in str(exc_info.value)


def test_arguments_required_is_a_not_supported_kind() -> None:
    assert issubclass(ArgumentsRequired, NotSupported)
    assert issubclass(NotSupported, ExchangeError)
