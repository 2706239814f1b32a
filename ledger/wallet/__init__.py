"""Wallet package."""

from ledger.wallet.ledger import WalletLedger

__all__ = ["WalletLedger"]
