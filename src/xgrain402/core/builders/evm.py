"""
Signed value transfers for nonce/gas (EVM) networks such as BSC.

Native currency (no asset, or the zero address) moves as a plain value
transfer; any other asset is treated as a token contract and paid with a
``transfer(address,uint256)`` call. Ledger-balance chains have no notion of
recipient accounts that must exist first, so there is no pre-creation step.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from eth_abi import encode as abi_encode
from eth_utils import is_address, to_checksum_address
from web3 import Web3

from ..config import EVM, is_native_asset
from ..exceptions import MissingDestination, ValidationError
from ..types import PaymentRequirement
from .base import ensure_signing_capability, raw_signed_bytes, resolve_wallet_address

__all__ = [
    "NATIVE_TRANSFER_GAS",
    "TOKEN_TRANSFER_GAS",
    "TRANSFER_SELECTOR",
    "EvmTransactionBuilder",
    "encode_token_transfer",
]

logger = logging.getLogger(__name__)

TRANSFER_SELECTOR = bytes.fromhex("a9059cbb")
NATIVE_TRANSFER_GAS = 21_000
TOKEN_TRANSFER_GAS = 100_000
_UINT256_MAX = 2**256 - 1


def _checksum(value: str, field_name: str) -> str:
    if not is_address(value):
        raise ValidationError(f"{field_name} is not a valid EVM address: {value!r}")
    return to_checksum_address(value)


def encode_token_transfer(to: str, amount: int) -> bytes:
    """ABI-encode ``transfer(to, amount)`` calldata."""
    return TRANSFER_SELECTOR + abi_encode(["address", "uint256"], [to, amount])


class EvmTransactionBuilder:
    family = EVM

    def __init__(self, web3: Web3, chain_id: Optional[int] = None) -> None:
        self._web3 = web3
        self._chain_id = chain_id

    @classmethod
    def from_rpc_url(cls, rpc_url: str, chain_id: Optional[int] = None) -> "EvmTransactionBuilder":
        provider = Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 30})
        return cls(Web3(provider), chain_id=chain_id)

    def build(self, requirement: PaymentRequirement, wallet: Any) -> bytes:
        if not requirement.pay_to:
            raise MissingDestination("Missing payTo in payment requirements")
        sender = _checksum(resolve_wallet_address(wallet), "wallet address")
        ensure_signing_capability(wallet)

        destination = _checksum(requirement.pay_to, "payTo")
        amount = requirement.amount
        if amount > _UINT256_MAX:
            raise ValidationError(f"Amount {amount} exceeds uint256")

        transaction = self.build_unsigned(sender, destination, amount, requirement.asset)
        logger.debug(
            "Requesting wallet signature for nonce=%s to=%s value=%s",
            transaction["nonce"],
            transaction["to"],
            transaction["value"],
        )
        return raw_signed_bytes(wallet.sign_transaction(transaction))

    def build_unsigned(
        self,
        sender: str,
        destination: str,
        amount: int,
        asset: Optional[str],
    ) -> Dict[str, Any]:
        eth = self._web3.eth
        transaction: Dict[str, Any] = {
            "nonce": eth.get_transaction_count(sender, "pending"),
            "gasPrice": eth.gas_price,
            "chainId": self._chain_id if self._chain_id is not None else eth.chain_id,
        }

        if is_native_asset(asset):
            transaction.update(
                {
                    "to": destination,
                    "value": amount,
                    "gas": NATIVE_TRANSFER_GAS,
                }
            )
        else:
            transaction.update(
                {
                    "to": _checksum(asset, "asset"),
                    "value": 0,
                    "gas": TOKEN_TRANSFER_GAS,
                    "data": "0x" + encode_token_transfer(destination, amount).hex(),
                }
            )
        return transaction
