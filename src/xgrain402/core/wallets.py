"""
Wallet adapter capability and two local reference adapters.

The payment core only ever asks a wallet for its address and for a signed
copy of a transaction. Anything that provides ``public_key`` or ``address``
plus ``sign_transaction`` works: browser bridges, hardware wallets, remote
signers. The adapters below keep key material in process memory and are
meant for scripts, tests and the CLI.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from eth_account import Account
from solders.keypair import Keypair
from solders.message import to_bytes_versioned
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from .config import EVM, NetworkConfig
from .exceptions import ConfigError

__all__ = [
    "LocalEvmWallet",
    "SolanaKeypairWallet",
    "WalletAdapter",
    "wallet_from_private_key",
]


class WalletAdapter(Protocol):
    """
    Minimal wallet capability.

    Solana adapters may expose ``public_key`` instead of ``address``; the
    builders accept either.
    """

    address: Optional[str]

    def sign_transaction(self, transaction: Any) -> Any:
        ...


class SolanaKeypairWallet:
    """Signs versioned Solana transactions with an in-memory keypair."""

    def __init__(self, keypair: Keypair) -> None:
        self._keypair = keypair

    @classmethod
    def from_base58(cls, secret: str) -> "SolanaKeypairWallet":
        try:
            return cls(Keypair.from_base58_string(secret.strip()))
        except ValueError as exc:
            raise ConfigError("Solana private key must be a base58-encoded 64-byte keypair") from exc

    @property
    def public_key(self) -> Pubkey:
        return self._keypair.pubkey()

    @property
    def address(self) -> str:
        return str(self._keypair.pubkey())

    def sign_transaction(self, transaction: VersionedTransaction) -> VersionedTransaction:
        """
        Fill this wallet's signature slot, leaving the other slots untouched.

        The fee payer's slot stays empty so the facilitator can co-sign.
        """
        message = transaction.message
        signers = list(message.account_keys[: message.header.num_required_signatures])
        try:
            index = signers.index(self._keypair.pubkey())
        except ValueError:
            raise ValueError(
                f"Wallet {self.address} is not a required signer of this transaction"
            ) from None

        signatures = list(transaction.signatures)
        signatures[index] = self._keypair.sign_message(to_bytes_versioned(message))
        return VersionedTransaction.populate(message, signatures)


def _normalize_private_key(raw_key: str) -> str:
    key = raw_key.strip()
    if not key:
        raise ConfigError("EVM private key must not be empty")
    if not key.startswith("0x"):
        key = "0x" + key
    if len(key) != 66:
        raise ConfigError("EVM private key must be 32 bytes (64 hex chars)")
    return key


class LocalEvmWallet:
    """Signs EVM transaction dicts with an ``eth_account`` local account."""

    def __init__(self, private_key: str) -> None:
        self._account = Account.from_key(_normalize_private_key(private_key))

    @property
    def address(self) -> str:
        return self._account.address

    def sign_transaction(self, transaction: dict) -> bytes:
        signed = self._account.sign_transaction(transaction)
        return bytes(signed.raw_transaction)


def wallet_from_private_key(network: NetworkConfig, secret: str):
    """Build the reference adapter matching ``network``'s chain family."""
    if network.family == EVM:
        return LocalEvmWallet(secret)
    return SolanaKeypairWallet.from_base58(secret)
