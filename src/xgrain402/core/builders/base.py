"""
Contract shared by the per-chain transaction builders.
"""

from __future__ import annotations

from typing import Any, Protocol

from ..exceptions import MissingWalletAddress, UnsupportedWalletCapability
from ..types import PaymentRequirement

__all__ = [
    "TransactionBuilder",
    "ensure_signing_capability",
    "raw_signed_bytes",
    "resolve_wallet_address",
]


class TransactionBuilder(Protocol):
    """Turns a requirement into a wallet-signed, serialized transaction."""

    family: str

    def build(self, requirement: PaymentRequirement, wallet: Any) -> bytes:
        ...


def resolve_wallet_address(wallet: Any) -> str:
    """
    Return the wallet's address as a string.

    Wallet-adapter style ``public_key`` objects take precedence over a plain
    ``address`` attribute.
    """
    public_key = getattr(wallet, "public_key", None)
    if public_key is not None and str(public_key):
        return str(public_key)
    address = getattr(wallet, "address", None)
    if address:
        return str(address)
    raise MissingWalletAddress("Missing connected wallet address or public key")


def ensure_signing_capability(wallet: Any) -> None:
    if not callable(getattr(wallet, "sign_transaction", None)):
        raise UnsupportedWalletCapability("Connected wallet does not support sign_transaction")


def raw_signed_bytes(signed: Any) -> bytes:
    """Normalise whatever a wallet returned from ``sign_transaction`` to raw bytes."""
    if isinstance(signed, (bytes, bytearray)):
        return bytes(signed)
    raw = getattr(signed, "raw_transaction", None)
    if raw is not None:
        return bytes(raw)
    return bytes(signed)
