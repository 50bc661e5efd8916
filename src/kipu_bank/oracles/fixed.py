from __future__ import annotations

from typing import Mapping

from ..errors import OracleUnavailable
from .base import PriceOracle, PriceQuote


class FixedPriceOracle(PriceOracle):
    """Oracle returning static quotes, e.g. for stablecoin pegs."""

    def __init__(self, prices: Mapping[str, PriceQuote]):
        self._prices = {asset.lower(): quote for asset, quote in prices.items()}

    @property
    def oracle_name(self) -> str:
        return "fixed"

    def set_price(self, asset: str, quote: PriceQuote) -> None:
        self._prices[asset.lower()] = quote

    def read_price(self, asset: str) -> PriceQuote:
        quote = self._prices.get(asset.lower())
        if quote is None:
            raise OracleUnavailable(asset, "no fixed price configured")
        return self.validate_quote(asset, quote)
