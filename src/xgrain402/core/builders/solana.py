"""
Fee-payer sponsored SPL token transfers for Solana networks.

The facilitator that co-signs these transactions only accepts a fixed shape:

    0. ComputeBudget SetComputeUnitLimit
    1. ComputeBudget SetComputeUnitPrice
    2. (optional) AssociatedTokenAccount Create for the destination
    3. Token TransferChecked

The facilitator's key is the message payer, so it funds both the network fee
and, when needed, the destination account rent. The payer's wallet only
signs as the token authority.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from solana.rpc.api import Client as SolanaClient
from solana.rpc.commitment import Confirmed
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.instruction import AccountMeta, Instruction
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.transaction import VersionedTransaction

from ..config import SVM
from ..exceptions import (
    MissingDestination,
    MissingFeePayer,
    SourceAccountNotFound,
    ValidationError,
)
from ..types import PaymentRequirement
from .base import ensure_signing_capability, raw_signed_bytes, resolve_wallet_address

__all__ = [
    "ASSOCIATED_TOKEN_PROGRAM_ID",
    "COMPUTE_UNIT_LIMIT",
    "COMPUTE_UNIT_PRICE_MICROLAMPORTS",
    "TOKEN_2022_PROGRAM_ID",
    "TOKEN_PROGRAM_ID",
    "SolanaTransactionBuilder",
    "create_associated_token_account_instruction",
    "derive_associated_token_address",
    "transfer_checked_instruction",
]

logger = logging.getLogger(__name__)

TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
TOKEN_2022_PROGRAM_ID = Pubkey.from_string("TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb")
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL")

# Enough for a TransferChecked plus an associated account creation.
COMPUTE_UNIT_LIMIT = 40_000
COMPUTE_UNIT_PRICE_MICROLAMPORTS = 1

# SPL mint layout: COption<Pubkey> authority (36) + supply u64 (8), then decimals.
_MINT_DECIMALS_OFFSET = 44
_TRANSFER_CHECKED = 12
_CREATE_ASSOCIATED_ACCOUNT = 0
_U64_MAX = 2**64 - 1


def _pubkey(value: str, field_name: str) -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError as exc:
        raise ValidationError(f"{field_name} is not a valid Solana address: {value!r}") from exc


def derive_associated_token_address(owner: Pubkey, mint: Pubkey, token_program: Pubkey) -> Pubkey:
    address, _ = Pubkey.find_program_address(
        [bytes(owner), bytes(token_program), bytes(mint)],
        ASSOCIATED_TOKEN_PROGRAM_ID,
    )
    return address


def create_associated_token_account_instruction(
    funder: Pubkey,
    associated_account: Pubkey,
    owner: Pubkey,
    mint: Pubkey,
    token_program: Pubkey,
) -> Instruction:
    return Instruction(
        program_id=ASSOCIATED_TOKEN_PROGRAM_ID,
        accounts=[
            AccountMeta(funder, is_signer=True, is_writable=True),
            AccountMeta(associated_account, is_signer=False, is_writable=True),
            AccountMeta(owner, is_signer=False, is_writable=False),
            AccountMeta(mint, is_signer=False, is_writable=False),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(token_program, is_signer=False, is_writable=False),
        ],
        data=bytes([_CREATE_ASSOCIATED_ACCOUNT]),
    )


def transfer_checked_instruction(
    source: Pubkey,
    mint: Pubkey,
    destination: Pubkey,
    authority: Pubkey,
    amount: int,
    decimals: int,
    token_program: Pubkey,
) -> Instruction:
    data = bytes([_TRANSFER_CHECKED]) + amount.to_bytes(8, "little") + bytes([decimals])
    return Instruction(
        program_id=token_program,
        accounts=[
            AccountMeta(source, is_signer=False, is_writable=True),
            AccountMeta(mint, is_signer=False, is_writable=False),
            AccountMeta(destination, is_signer=False, is_writable=True),
            AccountMeta(authority, is_signer=True, is_writable=False),
        ],
        data=data,
    )


class SolanaTransactionBuilder:
    family = SVM

    def __init__(self, rpc_client: SolanaClient) -> None:
        self._rpc = rpc_client

    @classmethod
    def from_rpc_url(cls, rpc_url: str) -> "SolanaTransactionBuilder":
        return cls(SolanaClient(rpc_url, commitment=Confirmed, timeout=30))

    def build(self, requirement: PaymentRequirement, wallet: Any) -> bytes:
        return raw_signed_bytes(self.build_transaction(requirement, wallet))

    def build_transaction(self, requirement: PaymentRequirement, wallet: Any) -> Any:
        """
        Build the sponsored transfer and have ``wallet`` sign it.

        Returns whatever the wallet's ``sign_transaction`` returned, normally a
        partially signed :class:`VersionedTransaction`.
        """
        if not requirement.fee_payer:
            raise MissingFeePayer(
                "Missing facilitator feePayer in payment requirements (extra.feePayer)."
            )
        owner_address = resolve_wallet_address(wallet)
        if not requirement.pay_to:
            raise MissingDestination("Missing payTo in payment requirements")
        ensure_signing_capability(wallet)
        if not requirement.asset:
            raise ValidationError("Missing token mint for SPL transfer")

        amount = requirement.amount
        if amount > _U64_MAX:
            raise ValidationError(f"Amount {amount} does not fit in an SPL token transfer")

        fee_payer = _pubkey(requirement.fee_payer, "extra.feePayer")
        owner = _pubkey(owner_address, "wallet address")
        destination = _pubkey(requirement.pay_to, "payTo")
        mint = _pubkey(requirement.asset, "asset")

        token_program, decimals = self._inspect_mint(mint)
        source_account = derive_associated_token_address(owner, mint, token_program)
        destination_account = derive_associated_token_address(destination, mint, token_program)

        if self._account_data(source_account) is None:
            raise SourceAccountNotFound(
                f"Wallet {owner} has no associated token account for {mint}. "
                "Create it and fund it with the required token first."
            )

        instructions = [
            set_compute_unit_limit(COMPUTE_UNIT_LIMIT),
            set_compute_unit_price(COMPUTE_UNIT_PRICE_MICROLAMPORTS),
        ]
        if self._account_data(destination_account) is None:
            logger.info(
                "Destination token account %s missing; fee payer %s will create it",
                destination_account,
                fee_payer,
            )
            instructions.append(
                create_associated_token_account_instruction(
                    fee_payer, destination_account, destination, mint, token_program
                )
            )
        instructions.append(
            transfer_checked_instruction(
                source_account,
                mint,
                destination_account,
                owner,
                amount,
                decimals,
                token_program,
            )
        )

        blockhash = self._rpc.get_latest_blockhash(commitment=Confirmed).value.blockhash
        message = MessageV0.try_compile(
            payer=fee_payer,
            instructions=instructions,
            address_lookup_table_accounts=[],
            recent_blockhash=blockhash,
        )
        unsigned = VersionedTransaction.populate(
            message, [Signature.default()] * message.header.num_required_signatures
        )
        logger.debug(
            "Requesting wallet signature for %s atomic units of %s to %s",
            amount,
            mint,
            destination,
        )
        return wallet.sign_transaction(unsigned)

    def _account_data(self, address: Pubkey) -> Optional[Any]:
        return self._rpc.get_account_info(address, commitment=Confirmed).value

    def _inspect_mint(self, mint: Pubkey) -> Tuple[Pubkey, int]:
        account = self._account_data(mint)
        if account is None:
            raise ValidationError(f"Token mint not found: {mint}")

        if account.owner == TOKEN_2022_PROGRAM_ID:
            token_program = TOKEN_2022_PROGRAM_ID
        elif account.owner == TOKEN_PROGRAM_ID:
            token_program = TOKEN_PROGRAM_ID
        else:
            raise ValidationError(f"Mint {mint} is owned by unknown program {account.owner}")

        data = bytes(account.data)
        if len(data) <= _MINT_DECIMALS_OFFSET:
            raise ValidationError(f"Account {mint} does not look like a token mint")
        return token_program, data[_MINT_DECIMALS_OFFSET]
