"""
Core primitives that implement the pay-per-call payment lifecycle.
"""

from .amounts import from_atomic_units, parse_atomic_amount, to_atomic_units
from .builders import (
    EvmTransactionBuilder,
    SolanaTransactionBuilder,
    TransactionBuilder,
    create_builder,
    create_payment_header,
)
from .client import PaymentClient
from .config import (
    DEFAULT_NETWORKS,
    AssetInfo,
    ClientConfig,
    ClientSettings,
    NetworkConfig,
    RouteConfig,
    RouteOptions,
    ServerConfig,
    TokenAmount,
    get_network_config,
    load_client_settings,
    load_server_config,
)
from .encoding import decode_payment_document, decode_payment_header, encode_payment_header
from .environment import PaymentEnvironment, build_environment
from .exceptions import (
    AmountExceeded,
    ConfigError,
    ConfigurationError,
    FacilitatorUnavailable,
    InvalidPaymentHeader,
    MissingDestination,
    MissingFeePayer,
    MissingWalletAddress,
    NoSuitableRequirement,
    PaymentDeclined,
    SourceAccountNotFound,
    UnsupportedWalletCapability,
    ValidationError,
    X402Error,
)
from .facilitator import FacilitatorClient
from .interceptor import PaymentInterceptor, select_payment_requirement
from .processor import PaymentProcessor, ProcessedResponse
from .types import (
    PAYMENT_HEADER,
    X402_VERSION,
    PaymentHeader,
    PaymentRequiredBody,
    PaymentRequirement,
    SettlementResult,
    SupportedKind,
    VerifyResult,
)
from .wallets import LocalEvmWallet, SolanaKeypairWallet, WalletAdapter, wallet_from_private_key

__all__ = [
    "DEFAULT_NETWORKS",
    "PAYMENT_HEADER",
    "X402_VERSION",
    "AmountExceeded",
    "AssetInfo",
    "ClientConfig",
    "ClientSettings",
    "ConfigError",
    "ConfigurationError",
    "EvmTransactionBuilder",
    "FacilitatorClient",
    "FacilitatorUnavailable",
    "InvalidPaymentHeader",
    "LocalEvmWallet",
    "MissingDestination",
    "MissingFeePayer",
    "MissingWalletAddress",
    "NetworkConfig",
    "NoSuitableRequirement",
    "PaymentClient",
    "PaymentDeclined",
    "PaymentEnvironment",
    "PaymentHeader",
    "PaymentInterceptor",
    "PaymentProcessor",
    "PaymentRequiredBody",
    "PaymentRequirement",
    "ProcessedResponse",
    "RouteConfig",
    "RouteOptions",
    "ServerConfig",
    "SettlementResult",
    "SolanaKeypairWallet",
    "SolanaTransactionBuilder",
    "SourceAccountNotFound",
    "SupportedKind",
    "TokenAmount",
    "TransactionBuilder",
    "UnsupportedWalletCapability",
    "ValidationError",
    "VerifyResult",
    "WalletAdapter",
    "X402Error",
    "build_environment",
    "create_builder",
    "create_payment_header",
    "decode_payment_document",
    "decode_payment_header",
    "encode_payment_header",
    "from_atomic_units",
    "get_network_config",
    "load_client_settings",
    "load_server_config",
    "parse_atomic_amount",
    "select_payment_requirement",
    "to_atomic_units",
    "wallet_from_private_key",
]
