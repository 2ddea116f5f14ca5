from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class MarketType(StrEnum):
    SPOT = "spot"
    SWAP = "swap"


class MinMax(_Record):
    min: float | None = None
    max: float | None = None


class CurrencyLimits(_Record):
    amount: MinMax = Field(default_factory=MinMax)
    price: MinMax = Field(default_factory=MinMax)
    cost: MinMax = Field(default_factory=MinMax)
    withdraw: MinMax = Field(default_factory=MinMax)


class MarketLimits(_Record):
    amount: MinMax = Field(default_factory=MinMax)
    price: MinMax = Field(default_factory=MinMax)
    cost: MinMax = Field(default_factory=MinMax)


class MarketPrecision(_Record):
    amount: int | None = None
    price: int | None = None


class Currency(_Record):
    id: str
    code: str
    name: str | None = None
    active: bool = False
    fee: float | None = None
    precision: int | None = None
    limits: CurrencyLimits = Field(default_factory=CurrencyLimits)
    info: Any = None


class Market(_Record):
    id: str
    symbol: str
    base: str
    quote: str
    base_id: str | None = None
    quote_id: str | None = None
    type: MarketType = MarketType.SPOT
    spot: bool = True
    swap: bool = False
    maker: float | None = None
    taker: float | None = None
    active: bool = True
    precision: MarketPrecision = Field(default_factory=MarketPrecision)
    limits: MarketLimits = Field(default_factory=MarketLimits)
    info: Any = None


class Ticker(_Record):
    symbol: str | None
    timestamp: int | None = None
    datetime: str | None = None
    high: float | None = None
    low: float | None = None
    bid: float | None = None
    bid_volume: float | None = None
    ask: float | None = None
    ask_volume: float | None = None
    vwap: float | None = None
    open: float | None = None
    close: float | None = None
    last: float | None = None
    previous_close: float | None = None
    change: float | None = None
    percentage: float | None = None
    average: float | None = None
    base_volume: float | None = None
    quote_volume: float | None = None
    info: Any = None


class OrderFee(_Record):
    currency: str | None = None
    cost: float | None = None


class Trade(_Record):
    id: str | None = None
    order: str | None = None
    timestamp: int | None = None
    datetime: str | None = None
    symbol: str | None = None
    type: str | None = None
    side: str | None = None
    taker_or_maker: str | None = None
    price: float | None = None
    amount: float | None = None
    cost: float | None = None
    fee: OrderFee | None = None
    info: Any = None


class Order(_Record):
    id: str | None = None
    client_order_id: str | None = None
    timestamp: int | None = None
    datetime: str | None = None
    last_trade_timestamp: int | None = None
    type: str | None = None
    status: str | None = None
    symbol: str | None = None
    side: str | None = None
    price: float | None = None
    amount: float | None = None
    filled: float | None = None
    remaining: float | None = None
    average: float | None = None
    cost: float | None = None
    trades: list[Trade] = Field(default_factory=list)
    fee: OrderFee = Field(default_factory=OrderFee)
    info: Any = None


class Transaction(_Record):
    id: str | None = None
    txid: str | None = None
    address: str | None = None
    tag: str | None = None
    timestamp: int | None = None
    datetime: str | None = None
    updated: int | None = None
    type: str = "withdrawal"
    status: str | None = None
    amount: float | None = None
    currency: str | None = None
    fee: OrderFee | None = None
    info: Any = None


class OrderBook(_Record):
    symbol: str
    bids: list[list[float]] = Field(default_factory=list)
    asks: list[list[float]] = Field(default_factory=list)
    timestamp: int | None = None
    datetime: str | None = None
    nonce: int | None = None


class Candle(_Record):
    timestamp: int
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    volume: float | None = None


class BalanceEntry(_Record):
    free: float | None = None
    used: float | None = None
    total: float | None = None


class Balances(_Record):
    """Per-currency balances keyed by unified currency code."""

    entries: dict[str, BalanceEntry] = Field(default_factory=dict)
    info: Any = None

    def __getitem__(self, code: str) -> BalanceEntry:
        return self.entries[code]

    @property
    def free(self) -> dict[str, float | None]:
        return {code: entry.free for code, entry in self.entries.items()}

    @property
    def used(self) -> dict[str, float | None]:
        return {code: entry.used for code, entry in self.entries.items()}

    @property
    def total(self) -> dict[str, float | None]:
        return {code: entry.total for code, entry in self.entries.items()}
