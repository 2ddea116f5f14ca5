from __future__ import annotations


class ExchangeError(RuntimeError):
    """Raised when an exchange request fails or returns an unclassified error."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_message: str | None = None,
        request_method: str | None = None,
        request_path: str | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_message = error_message
        self.request_method = request_method
        self.request_path = request_path
        self.response_body = response_body


class AuthenticationError(ExchangeError):
    """Credentials are missing or were rejected by the venue."""


class InvalidNonce(ExchangeError):
    """The signed request carried a stale nonce."""


class RateLimitExceeded(ExchangeError):
    """The venue asked the caller to back off."""


class OrderNotFound(ExchangeError):
    """The order does not exist or is no longer live."""


class InvalidOrder(ExchangeError):
    """The order was rejected (size, price or state)."""


class InsufficientFunds(ExchangeError):
    pass


class NotSupported(ExchangeError):
    """The operation is not available for this venue or argument combination."""


class ArgumentsRequired(NotSupported):
    pass


class BadSymbol(ExchangeError):
    """Unknown market symbol or currency code."""


class InvalidAddress(ExchangeError):
    pass
