from __future__ import annotations

from .base import PriceOracle, PriceQuote, RoutingPriceOracle
from .chainlink import ChainlinkPriceOracle
from .fixed import FixedPriceOracle

__all__ = [
    "ChainlinkPriceOracle",
    "FixedPriceOracle",
    "PriceOracle",
    "PriceQuote",
    "RoutingPriceOracle",
]
