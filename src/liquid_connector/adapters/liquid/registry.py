from __future__ import annotations

from collections.abc import Iterable, Mapping

from liquid_connector.adapters.liquid.metadata import COMMON_CURRENCIES
from liquid_connector.domain.errors import BadSymbol
from liquid_connector.domain.models import Currency, Market


class MarketRegistry:
    """Session-scoped lookup tables for markets and currencies.

    Populated once by ``LiquidExchange.load_markets``; parse functions only read it.
    """

    def __init__(self, common_currencies: Mapping[str, str] = COMMON_CURRENCIES) -> None:
        self.common_currencies = dict(common_currencies)
        self.markets: dict[str, Market] = {}
        self.markets_by_id: dict[str, Market] = {}
        self.currencies: dict[str, Currency] = {}
        self.currencies_by_id: dict[str, Currency] = {}

    @property
    def loaded(self) -> bool:
        return bool(self.markets)

    def set_markets(
        self,
        markets: Iterable[Market],
        currencies: Mapping[str, Currency] | None = None,
    ) -> None:
        market_list = list(markets)
        self.markets = {market.symbol: market for market in market_list}
        self.markets_by_id = {market.id: market for market in market_list}
        if currencies is not None:
            self.set_currencies(currencies)

    def set_currencies(self, currencies: Mapping[str, Currency]) -> None:
        self.currencies = dict(currencies)
        self.currencies_by_id = {currency.id: currency for currency in currencies.values()}

    def common_currency_code(self, code: str) -> str:
        return self.common_currencies.get(code, code)

    def safe_currency_code(self, currency_id: str | None, currency: Currency | None = None) -> str | None:
        if currency_id is None:
            return currency.code if currency is not None else None
        known = self.currencies_by_id.get(currency_id)
        if known is not None:
            return known.code
        return self.common_currency_code(currency_id.upper())

    def market(self, symbol: str) -> Market:
        found = self.markets.get(symbol)
        if found is None:
            raise BadSymbol(f"liquid does not have market symbol {symbol}")
        return found

    def currency(self, code: str) -> Currency:
        found = self.currencies.get(code)
        if found is None:
            raise BadSymbol(f"liquid does not have currency code {code}")
        return found
