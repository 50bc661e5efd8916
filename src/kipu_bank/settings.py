"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    DEFAULT_ARTIFACT_PATH,
    DEFAULT_BANK_CAP_USD,
    DEFAULT_MAINNET_RPC_URL,
    DEFAULT_PRICE_FEED_STALENESS_SECONDS,
    DEFAULT_SEPOLIA_RPC_URL,
    ETH_MAINNET_FEEDS,
    SEPOLIA_FEEDS,
    NetworkFeeds,
)

load_dotenv()

SECRET_FIELDS = {"private_key"}


class Network(str, Enum):
    MAINNET = "mainnet"
    SEPOLIA = "sepolia"


NETWORK_RPC_DEFAULTS = {
    Network.MAINNET: DEFAULT_MAINNET_RPC_URL,
    Network.SEPOLIA: DEFAULT_SEPOLIA_RPC_URL,
}

NETWORK_FEEDS = {
    Network.MAINNET: ETH_MAINNET_FEEDS,
    Network.SEPOLIA: SEPOLIA_FEEDS,
}


class TomlConfigSource(PydanticBaseSettingsSource):
    """Lowest-precedence source reading a TOML file (top level or [kipu_bank])."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
        super().__init__(settings_cls)
        self._path = path

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return None, "", False

    def _resolve_path(self) -> Path | None:
        if self._path:
            return self._path if self._path.exists() else None
        local_config = Path("kipu-bank.toml")
        user_config = Path.home() / ".config" / "kipu-bank" / "config.toml"
        if local_config.exists():
            return local_config
        if user_config.exists():
            return user_config
        return None

    def __call__(self) -> dict[str, Any]:
        path = self._resolve_path()
        if path is None:
            return {}

        with path.open("rb") as f:
            data = tomllib.load(f)
        body = data.get("kipu_bank", data)
        if not isinstance(body, dict):
            return {}

        for key in SECRET_FIELDS:
            if key in body:
                raise ValueError(
                    f"Security violation: '{key}' found in TOML config file. "
                    f"Secrets must only be provided via environment variables or CLI flags."
                )

        return body


class BankSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with KIPU_BANK_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- network ---
    network: Network = Network.SEPOLIA
    rpc_url: str | None = None

    # --- signing ---
    private_key: SecretStr | None = None

    # --- constructor arguments ---
    bank_cap_usd: int = Field(
        default=DEFAULT_BANK_CAP_USD,
        gt=0,
        description="Bank cap in USD with 6 decimals.",
    )
    price_feed_address: str | None = None
    price_feed_staleness_seconds: int | None = Field(
        default=DEFAULT_PRICE_FEED_STALENESS_SECONDS, gt=0
    )

    # --- deployment ---
    artifact_path: Path = Path(DEFAULT_ARTIFACT_PATH)
    bank_address: str | None = None
    receipt_timeout: float = Field(default=120.0, gt=0)
    receipt_retries: int = Field(default=3, ge=0)

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="KIPU_BANK_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("private_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalise_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("KIPU_BANK_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a JSON-friendly dict with secrets redacted."""
        data = self.model_dump(mode="json")
        if self.private_key:
            data["private_key"] = "***redacted***"
        return data

    @property
    def feeds(self) -> NetworkFeeds:
        """Chainlink feeds for the configured network."""
        return NETWORK_FEEDS[self.network]

    @property
    def rpc_url_resolved(self) -> str:
        """Configured RPC URL, falling back to the network default."""
        return self.rpc_url or NETWORK_RPC_DEFAULTS[self.network]

    @property
    def price_feed_address_resolved(self) -> str:
        """Configured price feed, falling back to the network ETH/USD feed."""
        if self.price_feed_address:
            return self.price_feed_address
        feed = self.feeds["ETH_USD"]
        if feed is None:
            raise ValueError(f"No ETH/USD feed known for network {self.network.value}")
        return feed

    @property
    def private_key_required(self) -> str:
        """Get the private key, raising ValueError if not set."""
        if self.private_key is None:
            raise ValueError("private_key must be configured")
        return self.private_key.get_secret_value()

    @property
    def bank_address_required(self) -> str:
        """Get bank_address, raising ValueError if not set."""
        if self.bank_address is None:
            raise ValueError("bank_address must be configured")
        return self.bank_address
