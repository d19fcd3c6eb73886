"""
Per-family transaction builders, selected by network.
"""

from typing import Mapping, Optional

from ..config import EVM, SVM, NetworkConfig, get_network_config
from ..encoding import encode_payment_header
from ..exceptions import ConfigurationError
from ..types import X402_VERSION, PaymentRequirement
from .base import (
    TransactionBuilder,
    ensure_signing_capability,
    raw_signed_bytes,
    resolve_wallet_address,
)
from .evm import EvmTransactionBuilder
from .solana import SolanaTransactionBuilder

__all__ = [
    "EvmTransactionBuilder",
    "SolanaTransactionBuilder",
    "TransactionBuilder",
    "create_builder",
    "create_payment_header",
    "ensure_signing_capability",
    "raw_signed_bytes",
    "resolve_wallet_address",
]


def create_builder(network: NetworkConfig, rpc_url: Optional[str] = None) -> TransactionBuilder:
    """Instantiate the builder strategy for ``network``'s chain family."""
    endpoint = rpc_url or network.rpc_url
    if network.family == SVM:
        return SolanaTransactionBuilder.from_rpc_url(endpoint)
    if network.family == EVM:
        return EvmTransactionBuilder.from_rpc_url(endpoint, chain_id=network.chain_id)
    raise ConfigurationError(f"No transaction builder for network family '{network.family}'")


def create_payment_header(
    builder: TransactionBuilder,
    wallet,
    requirement: PaymentRequirement,
    version: int = X402_VERSION,
    *,
    networks: Optional[Mapping[str, NetworkConfig]] = None,
) -> str:
    """Build, sign and encode a payment for ``requirement`` in one step."""
    family = get_network_config(requirement.network, networks).family
    if family != builder.family:
        raise ConfigurationError(
            f"{type(builder).__name__} cannot pay on {requirement.network} ({family})"
        )
    raw_transaction = builder.build(requirement, wallet)
    return encode_payment_header(raw_transaction, requirement, version, networks=networks)
