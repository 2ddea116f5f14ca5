from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from liquid_connector.adapters.liquid.metadata import EXACT_EXCEPTIONS, EXCHANGE_ID
from liquid_connector.domain.errors import ExchangeError, RateLimitExceeded

_GENERIC_BODY_LIMIT = 500


def _raise_if_exact_match(
    message: str,
    feedback: str,
    *,
    status_code: int,
    body: str,
    table: Mapping[str, type[ExchangeError]],
) -> None:
    error_cls = table.get(message)
    if error_cls is not None:
        raise error_cls(
            feedback,
            status_code=status_code,
            error_message=message,
            response_body=body,
        )


def _iter_error_messages(errors: Any) -> Iterator[str]:
    # { "errors": { "user": ["not_enough_free_balance"] } }
    if not isinstance(errors, Mapping):
        return
    for messages in errors.values():
        if isinstance(messages, str):
            yield messages
        elif isinstance(messages, list):
            for message in messages:
                yield str(message)


def handle_errors(
    status_code: int,
    body: str,
    payload: Any,
    *,
    table: Mapping[str, type[ExchangeError]] = EXACT_EXCEPTIONS,
) -> None:
    """Raise the typed error described by a Liquid response, or return on success.

    ``payload`` is the parsed JSON body or ``None`` when the body is not JSON.
    """

    if 200 <= status_code < 300:
        return

    feedback = f"{EXCHANGE_ID} {body}"
    if status_code == 401:
        _raise_if_exact_match(body, body, status_code=status_code, body=body, table=table)
    elif status_code == 429:
        raise RateLimitExceeded(feedback, status_code=status_code, response_body=body)
    elif isinstance(payload, Mapping):
        message = payload.get("message")
        errors = payload.get("errors")
        if message is not None:
            # { "message": "Order not found" }
            _raise_if_exact_match(
                str(message), feedback, status_code=status_code, body=body, table=table
            )
        elif errors is not None:
            for error_message in _iter_error_messages(errors):
                _raise_if_exact_match(
                    error_message, feedback, status_code=status_code, body=body, table=table
                )

    raise ExchangeError(
        f"{EXCHANGE_ID} HTTP {status_code} {body[:_GENERIC_BODY_LIMIT]}",
        status_code=status_code,
        response_body=body,
    )
