from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping

from web3 import Web3
from web3.exceptions import Web3Exception

from ..abi import load_aggregator_abi
from ..errors import OracleUnavailable
from .base import PriceOracle, PriceQuote

logger = logging.getLogger(__name__)


class ChainlinkPriceOracle(PriceOracle):
    """Oracle reading Chainlink AggregatorV3Interface price feeds."""

    def __init__(
        self,
        w3: Web3,
        feeds: Mapping[str, str],
        staleness_threshold: int | None = None,
        block_identifier: Any = "latest",
        clock: Callable[[], float] = time.time,
    ):
        self.w3 = w3
        self._feeds = {asset.lower(): feed for asset, feed in feeds.items()}
        self.staleness_threshold = staleness_threshold
        self.block_identifier = block_identifier
        self._clock = clock
        self._contracts: dict[str, Any] = {}
        self._decimals: dict[str, int] = {}

    @property
    def oracle_name(self) -> str:
        return "chainlink"

    def feed_for(self, asset: str) -> str | None:
        return self._feeds.get(asset.lower())

    def _feed_contract(self, feed: str):
        contract = self._contracts.get(feed)
        if contract is None:
            contract = self.w3.eth.contract(
                address=Web3.to_checksum_address(feed),
                abi=load_aggregator_abi(),
            )
            self._contracts[feed] = contract
        return contract

    def latest_price_and_decimals(self, feed: str) -> tuple[int, int, int]:
        """Return (answer, decimals, updatedAt) for a feed."""
        feed_contract = self._feed_contract(feed)
        _, answer, _, updated_at, _ = feed_contract.functions.latestRoundData().call(
            block_identifier=self.block_identifier
        )
        decimals = self._decimals.get(feed)
        if decimals is None:
            decimals = int(
                feed_contract.functions.decimals().call(
                    block_identifier=self.block_identifier
                )
            )
            self._decimals[feed] = decimals
        return int(answer), decimals, int(updated_at)

    def read_price(self, asset: str) -> PriceQuote:
        """Read the USD price of ``asset`` from its Chainlink feed.

        Raises:
            OracleUnavailable: If no feed is configured, the RPC call fails,
                the answer is non-positive or the round is stale.
        """
        feed = self.feed_for(asset)
        if feed is None:
            raise OracleUnavailable(asset, "no Chainlink feed configured")

        try:
            answer, decimals, updated_at = self.latest_price_and_decimals(feed)
        except (Web3Exception, ValueError, OSError) as e:
            logger.error("Failed to read Chainlink feed %s: %s", feed, e)
            raise OracleUnavailable(asset, str(e)) from e

        logger.debug(
            "Chainlink feed %s answered %d (%d decimals, updated %d)",
            feed,
            answer,
            decimals,
            updated_at,
        )

        if self.staleness_threshold is not None:
            age = self._clock() - updated_at
            if age > self.staleness_threshold:
                raise OracleUnavailable(
                    asset,
                    f"stale price, last update {int(age)}s ago "
                    f"(threshold {self.staleness_threshold}s)",
                )

        return self.validate_quote(
            asset, PriceQuote(answer=answer, decimals=decimals, updated_at=updated_at)
        )
