from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping

from ..errors import OracleUnavailable


@dataclass(frozen=True)
class PriceQuote:
    """USD price of one whole unit of an asset, as ``answer / 10**decimals``."""

    answer: int
    decimals: int
    updated_at: int | None = None


class PriceOracle(ABC):
    """Abstract base class for price oracles."""

    @property
    @abstractmethod
    def oracle_name(self) -> str:
        """Return the name of this oracle."""
        ...

    @abstractmethod
    def read_price(self, asset: str) -> PriceQuote:
        """Read the current USD price of ``asset``.

        Raises:
            OracleUnavailable: If the price cannot be read.
        """
        ...

    def validate_quote(self, asset: str, quote: PriceQuote) -> PriceQuote:
        """Reject non-positive prices.

        Args:
            asset: The asset the quote belongs to
            quote: The quote just read

        Returns:
            The same quote when valid
        """
        if quote.answer <= 0:
            raise OracleUnavailable(asset, f"non-positive price {quote.answer}")
        return quote


class RoutingPriceOracle(PriceOracle):
    """Delegates each asset to the oracle configured for it."""

    def __init__(self, routes: Mapping[str, PriceOracle]):
        self._routes = {asset.lower(): oracle for asset, oracle in routes.items()}

    @property
    def oracle_name(self) -> str:
        return "routing"

    def read_price(self, asset: str) -> PriceQuote:
        oracle = self._routes.get(asset.lower())
        if oracle is None:
            raise OracleUnavailable(asset, "no oracle routed for asset")
        return oracle.read_price(asset)
