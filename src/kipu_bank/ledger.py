"""Multi-asset vault ledger with a USD-denominated deposit cap."""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Mapping

from web3 import Web3

from .constants import NATIVE_ASSET, NATIVE_DECIMALS
from .custody import Custody, InMemoryCustody
from .errors import (
    CapExceeded,
    InsufficientBalance,
    InvalidAmount,
    UnsupportedAsset,
)
from .oracles.base import PriceOracle
from .units import to_usd

logger = logging.getLogger(__name__)


def canonical_address(address: str) -> str:
    try:
        return Web3.to_checksum_address(address)
    except ValueError:
        return address.lower()


def is_native(asset: str) -> bool:
    return asset.lower() == NATIVE_ASSET


@dataclass(frozen=True)
class DepositEvent:
    asset: str
    depositor: str
    amount: int
    new_balance: int


@dataclass(frozen=True)
class WithdrawalEvent:
    asset: str
    depositor: str
    amount: int
    new_balance: int


LedgerEvent = DepositEvent | WithdrawalEvent


class VaultLedger:
    """Custodial ledger of per-(depositor, asset) balances.

    Every deposit values the resulting total bank holdings in USD through
    the injected price oracle and is rejected when that valuation exceeds
    the bank cap. Deposits and withdrawals are all-or-nothing: on any
    failure the ledger is left exactly as it was before the call.
    """

    def __init__(
        self,
        bank_cap_usd: int,
        price_oracle: PriceOracle,
        custody: Custody | None = None,
        assets: Mapping[str, int] | None = None,
    ):
        if bank_cap_usd <= 0:
            raise ValueError("bank_cap_usd must be positive")
        self._bank_cap_usd = bank_cap_usd
        self.price_oracle = price_oracle
        self.custody = custody if custody is not None else InMemoryCustody()

        self._asset_decimals: dict[str, int] = {
            canonical_address(NATIVE_ASSET): NATIVE_DECIMALS
        }
        for asset, decimals in (assets or {}).items():
            self.add_asset(asset, decimals)

        self._vaults: dict[tuple[str, str], int] = {}
        self._totals: dict[str, int] = {}
        self.deposit_count = 0
        self.withdrawal_count = 0
        self.events: list[LedgerEvent] = []

    @property
    def bank_cap_usd(self) -> int:
        return self._bank_cap_usd

    @property
    def supported_assets(self) -> dict[str, int]:
        return dict(self._asset_decimals)

    def add_asset(self, asset: str, decimals: int) -> None:
        """List a token so it can be deposited."""
        if decimals < 0:
            raise ValueError("decimals must be non-negative")
        key = canonical_address(asset)
        if is_native(key) and decimals != NATIVE_DECIMALS:
            raise ValueError("The native asset always has 18 decimals")
        self._asset_decimals[key] = decimals
        logger.debug("Listed asset %s with %d decimals", key, decimals)

    def _decimals_of(self, asset: str) -> int:
        decimals = self._asset_decimals.get(asset)
        if decimals is None:
            raise UnsupportedAsset(asset)
        return decimals

    # --- reads ---

    def balance_of(self, depositor: str, asset: str) -> int:
        return self._vaults.get(
            (canonical_address(depositor), canonical_address(asset)), 0
        )

    def total_holdings(self, asset: str) -> int:
        return self._totals.get(canonical_address(asset), 0)

    def valuation_usd(self, totals: Mapping[str, int]) -> int:
        """Value the given per-asset holdings in USD (6 decimals).

        Reads the oracle once for every asset with a non-zero holding.

        Raises:
            OracleUnavailable: If any price cannot be read.
        """
        total = 0
        for asset, amount in totals.items():
            if amount == 0:
                continue
            quote = self.price_oracle.read_price(asset)
            total += to_usd(
                amount, self._decimals_of(asset), quote.answer, quote.decimals
            )
        return total

    def total_value_usd(self) -> int:
        return self.valuation_usd(self._totals)

    # --- mutations ---

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        """Restore the ledger state if the enclosed block raises."""
        snapshot = (
            dict(self._vaults),
            dict(self._totals),
            self.deposit_count,
            self.withdrawal_count,
            copy.copy(self.events),
        )
        try:
            yield
        except BaseException:
            (
                self._vaults,
                self._totals,
                self.deposit_count,
                self.withdrawal_count,
                self.events,
            ) = snapshot
            raise

    def deposit(self, depositor: str, asset: str, amount: int, value: int = 0) -> int:
        """Deposit ``amount`` of ``asset`` for ``depositor``.

        Args:
            depositor: Address credited with the deposit
            asset: Token address, or NATIVE_ASSET for the chain's native coin
            amount: Amount in the asset's smallest unit
            value: Native value attached to the call; must equal ``amount``
                for native deposits and be zero for token deposits

        Returns:
            The depositor's new balance for ``asset``

        Raises:
            InvalidAmount: Amount is not positive or mismatches ``value``
            UnsupportedAsset: The asset is not listed
            OracleUnavailable: A price could not be read
            CapExceeded: The resulting holdings are worth more than the cap
            InsufficientAllowance: The token transfer-in was not authorised
        """
        depositor = canonical_address(depositor)
        asset = canonical_address(asset)

        if amount <= 0:
            raise InvalidAmount("Deposit amount must be greater than zero")
        native = is_native(asset)
        if native and value != amount:
            raise InvalidAmount(
                f"Attached value {value} does not match deposit amount {amount}"
            )
        if not native and value != 0:
            raise InvalidAmount("Token deposits cannot carry native value")
        self._decimals_of(asset)

        with self._atomic():
            key = (depositor, asset)
            self._totals[asset] = self._totals.get(asset, 0) + amount
            self._vaults[key] = self._vaults.get(key, 0) + amount

            valuation = self.valuation_usd(self._totals)
            if valuation > self._bank_cap_usd:
                logger.warning(
                    "Rejected deposit of %d %s from %s: %d USD over cap %d",
                    amount,
                    asset,
                    depositor,
                    valuation,
                    self._bank_cap_usd,
                )
                raise CapExceeded(valuation, self._bank_cap_usd)

            if native:
                self.custody.receive_native(depositor, amount)
            else:
                self.custody.pull(depositor, asset, amount)

            new_balance = self._vaults[key]
            self.deposit_count += 1
            self.events.append(DepositEvent(asset, depositor, amount, new_balance))

        logger.info(
            "Deposit: %s deposited %d of %s (balance %d)",
            depositor,
            amount,
            asset,
            new_balance,
        )
        return new_balance

    def withdraw(self, depositor: str, asset: str, amount: int) -> int:
        """Withdraw ``amount`` of ``asset`` back to ``depositor``.

        Returns:
            The depositor's new balance for ``asset``

        Raises:
            InvalidAmount: Amount is not positive
            InsufficientBalance: Amount exceeds the depositor's entry
        """
        depositor = canonical_address(depositor)
        asset = canonical_address(asset)

        if amount <= 0:
            raise InvalidAmount("Withdrawal amount must be greater than zero")

        key = (depositor, asset)
        available = self._vaults.get(key, 0)
        if amount > available:
            raise InsufficientBalance(amount, available)

        with self._atomic():
            self._vaults[key] = available - amount
            self._totals[asset] = self._totals[asset] - amount
            self.custody.push(depositor, asset, amount)

            new_balance = self._vaults[key]
            self.withdrawal_count += 1
            self.events.append(WithdrawalEvent(asset, depositor, amount, new_balance))

        logger.info(
            "Withdrawal: %s withdrew %d of %s (balance %d)",
            depositor,
            amount,
            asset,
            new_balance,
        )
        return new_balance
