"""Custody of native value and fungible tokens held by the ledger."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict

from .constants import NATIVE_ASSET
from .errors import InsufficientAllowance, InvalidAmount

logger = logging.getLogger(__name__)


class Custody(ABC):
    """Moves funds between depositors and the ledger."""

    @abstractmethod
    def receive_native(self, owner: str, amount: int) -> None:
        """Record native value attached to a deposit."""
        ...

    @abstractmethod
    def pull(self, owner: str, asset: str, amount: int) -> None:
        """Transfer ``amount`` of a token from ``owner`` into custody.

        Raises:
            InsufficientAllowance: If the transfer was not pre-authorised.
        """
        ...

    @abstractmethod
    def push(self, owner: str, asset: str, amount: int) -> None:
        """Release ``amount`` of ``asset`` from custody to ``owner``."""
        ...


class InMemoryCustody(Custody):
    """Custody with ERC-20 style wallets and allowances kept in memory.

    Wallets model what each owner holds outside the bank; ``held`` is what
    the bank holds in custody.
    """

    def __init__(self) -> None:
        self._wallets: dict[tuple[str, str], int] = defaultdict(int)
        self._allowances: dict[tuple[str, str], int] = defaultdict(int)
        self._held: dict[str, int] = defaultdict(int)

    @staticmethod
    def _key(owner: str, asset: str) -> tuple[str, str]:
        return owner.lower(), asset.lower()

    def fund(self, owner: str, asset: str, amount: int) -> None:
        """Credit ``owner``'s wallet, e.g. after minting a test token."""
        if amount < 0:
            raise InvalidAmount("Cannot fund a negative amount")
        self._wallets[self._key(owner, asset)] += amount

    def approve(self, owner: str, asset: str, amount: int) -> None:
        """Set the amount the bank may pull from ``owner``."""
        if amount < 0:
            raise InvalidAmount("Cannot approve a negative amount")
        self._allowances[self._key(owner, asset)] = amount

    def allowance(self, owner: str, asset: str) -> int:
        return self._allowances.get(self._key(owner, asset), 0)

    def wallet_balance(self, owner: str, asset: str) -> int:
        return self._wallets.get(self._key(owner, asset), 0)

    def held(self, asset: str) -> int:
        return self._held.get(asset.lower(), 0)

    def receive_native(self, owner: str, amount: int) -> None:
        self._held[NATIVE_ASSET] += amount

    def pull(self, owner: str, asset: str, amount: int) -> None:
        key = self._key(owner, asset)
        allowance = self._allowances.get(key, 0)
        if allowance < amount:
            raise InsufficientAllowance(
                f"Allowance {allowance} of {asset} from {owner} is below {amount}"
            )
        balance = self._wallets.get(key, 0)
        if balance < amount:
            raise InsufficientAllowance(
                f"Wallet of {owner} holds {balance} of {asset}, below {amount}"
            )
        self._allowances[key] = allowance - amount
        self._wallets[key] = balance - amount
        self._held[asset.lower()] += amount
        logger.debug("Pulled %d of %s from %s", amount, asset, owner)

    def push(self, owner: str, asset: str, amount: int) -> None:
        held = self._held.get(asset.lower(), 0)
        if held < amount:
            raise InsufficientAllowance(
                f"Custody holds {held} of {asset}, cannot release {amount}"
            )
        self._held[asset.lower()] = held - amount
        self._wallets[self._key(owner, asset)] += amount
        logger.debug("Released %d of %s to %s", amount, asset, owner)
