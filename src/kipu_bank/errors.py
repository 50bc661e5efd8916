"""Error taxonomy for the vault ledger and its collaborators."""

from __future__ import annotations


class KipuBankError(Exception):
    """Base class for every failure reported by the bank."""


class InvalidAmount(KipuBankError):
    """Raised when an amount is zero or does not match the attached value."""


class UnsupportedAsset(KipuBankError):
    """Raised when an asset has not been listed on the ledger."""

    def __init__(self, asset: str):
        super().__init__(f"Asset {asset} is not supported")
        self.asset = asset


class CapExceeded(KipuBankError):
    """Raised when a deposit would push total holdings over the bank cap."""

    def __init__(self, valuation_usd: int, bank_cap_usd: int):
        super().__init__(
            f"Deposit would bring bank holdings to {valuation_usd} USD units, "
            f"above the cap of {bank_cap_usd}"
        )
        self.valuation_usd = valuation_usd
        self.bank_cap_usd = bank_cap_usd


class OracleUnavailable(KipuBankError):
    """Raised when the price feed for an asset cannot be read."""

    def __init__(self, asset: str, reason: str):
        super().__init__(f"Price feed unavailable for {asset}: {reason}")
        self.asset = asset
        self.reason = reason


class InsufficientBalance(KipuBankError):
    """Raised when a withdrawal exceeds the depositor's vault entry."""

    def __init__(self, requested: int, available: int):
        super().__init__(
            f"Requested {requested} but only {available} is available"
        )
        self.requested = requested
        self.available = available


class InsufficientAllowance(KipuBankError):
    """Raised when a token transfer-in was not pre-authorised or is unfunded."""


class DeploymentError(KipuBankError):
    """Raised when the bank contract could not be deployed."""


class TransactionFailed(KipuBankError):
    """Raised when a transaction sent to a deployed bank reverts."""

    def __init__(self, tx_hash: str, message: str | None = None):
        super().__init__(message or f"Transaction {tx_hash} reverted")
        self.tx_hash = tx_hash
