"""Pricing — движок цены PT, кэш и контракты внешних источников."""

from .cache import PriceCache
from .engine import PriceQuote, PricingEngine
from .feeds import (
    CallablePriceFeed,
    Clock,
    FixedMaturitySource,
    ManualClock,
    MaturitySource,
    StaticPriceFeed,
    SystemClock,
    UnderlyingPriceFeed,
    read_maturity,
    read_underlying_price,
)

__all__ = [
    "PriceCache",
    "PriceQuote",
    "PricingEngine",
    "UnderlyingPriceFeed",
    "MaturitySource",
    "Clock",
    "StaticPriceFeed",
    "CallablePriceFeed",
    "FixedMaturitySource",
    "ManualClock",
    "SystemClock",
    "read_underlying_price",
    "read_maturity",
]
