"""Asset, price feed and network constants."""

from typing import Optional, TypedDict


class NetworkFeeds(TypedDict):
    ETH_USD: Optional[str]
    USDC_USD: Optional[str]


NATIVE_ASSET = "0x0000000000000000000000000000000000000000"
NATIVE_DECIMALS = 18

# Bank cap and valuations are expressed with USDC precision
USD_DECIMALS = 6
DEFAULT_BANK_CAP_USD = 1_000_000 * 10**USD_DECIMALS

ETH_MAINNET_FEEDS: NetworkFeeds = {
    "ETH_USD": "0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419",
    "USDC_USD": "0x8fFfFfd4AfB6115b954Bd326cbe7B4BA576818f6",
}

SEPOLIA_FEEDS: NetworkFeeds = {
    "ETH_USD": "0x694AA1769357215Ef4bE215cd2aa0Ddb242dE17d",
    "USDC_USD": "0xA2F78ab2355fe2f984D808B5CeE7FD0A93D5270E",
}

DEFAULT_MAINNET_RPC_URL = "https://eth.drpc.org"
DEFAULT_SEPOLIA_RPC_URL = "https://sepolia.drpc.org"

DEFAULT_ARTIFACT_PATH = "artifacts/KipuBankV2.json"

# Chainlink ETH/USD heartbeat is one hour
DEFAULT_PRICE_FEED_STALENESS_SECONDS = 3_600
