"""Client for a deployed KipuBankV2 contract."""

from __future__ import annotations

import logging

from eth_account.signers.local import LocalAccount
from web3 import Web3

from .abi import load_kipu_bank_abi
from .constants import NATIVE_ASSET
from .errors import InvalidAmount, TransactionFailed
from .ledger import is_native

logger = logging.getLogger(__name__)


class KipuBankClient:
    """Thin wrapper around the on-chain bank: deposits and vault lookups."""

    def __init__(
        self,
        w3: Web3,
        address: str,
        abi: list[dict] | None = None,
        receipt_timeout: float = 120.0,
    ):
        self.w3 = w3
        self.address = Web3.to_checksum_address(address)
        self.contract = w3.eth.contract(
            address=self.address, abi=abi if abi is not None else load_kipu_bank_abi()
        )
        self.receipt_timeout = receipt_timeout

    def bank_cap_usd(self) -> int:
        return int(self.contract.functions.bankCapUSD().call())

    def vaults(self, depositor: str, asset: str = NATIVE_ASSET) -> int:
        """Balance of ``depositor`` for ``asset`` as recorded by the contract."""
        return int(
            self.contract.functions.vaults(
                Web3.to_checksum_address(depositor), Web3.to_checksum_address(asset)
            ).call()
        )

    def deposit(self, account: LocalAccount, asset: str, amount: int) -> str:
        """Send ``deposit(asset, amount)`` from ``account``.

        Native deposits attach ``amount`` as value. Token deposits expect the
        bank to have been approved beforehand.

        Returns:
            The transaction hash

        Raises:
            InvalidAmount: If amount is not positive
            TransactionFailed: If the transaction reverts
        """
        if amount <= 0:
            raise InvalidAmount("Deposit amount must be greater than zero")

        value = amount if is_native(asset) else 0
        tx = self.contract.functions.deposit(
            Web3.to_checksum_address(asset), amount
        ).build_transaction(
            {
                "from": account.address,
                "nonce": self.w3.eth.get_transaction_count(account.address),
                "value": value,
            }
        )
        signed = account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info("Deposit transaction sent: %s", tx_hash_hex)

        receipt = self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.receipt_timeout
        )
        if receipt["status"] != 1:
            raise TransactionFailed(tx_hash_hex)

        logger.info(
            "Deposit of %d %s confirmed in block %d",
            amount,
            asset,
            receipt["blockNumber"],
        )
        return tx_hash_hex
