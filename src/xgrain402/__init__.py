"""
Public facade for the xgrain402 payment package.

The most useful pieces for integrators are re-exported here so they can
``from xgrain402 import ...`` without navigating the package.
"""

from .api import (
    create_payment_client,
    create_payment_client_from_env,
    create_payment_processor,
    fetch_with_payment,
)
from .core import (
    AmountExceeded,
    AssetInfo,
    ClientConfig,
    ConfigError,
    ConfigurationError,
    FacilitatorClient,
    FacilitatorUnavailable,
    InvalidPaymentHeader,
    LocalEvmWallet,
    MissingDestination,
    MissingFeePayer,
    MissingWalletAddress,
    NoSuitableRequirement,
    PaymentClient,
    PaymentDeclined,
    PaymentHeader,
    PaymentInterceptor,
    PaymentProcessor,
    PaymentRequirement,
    ProcessedResponse,
    RouteConfig,
    RouteOptions,
    ServerConfig,
    SettlementResult,
    SolanaKeypairWallet,
    SourceAccountNotFound,
    TokenAmount,
    UnsupportedWalletCapability,
    ValidationError,
    VerifyResult,
    X402Error,
    decode_payment_header,
    encode_payment_header,
    from_atomic_units,
    load_server_config,
    to_atomic_units,
)

__all__ = (
    "AmountExceeded",
    "AssetInfo",
    "ClientConfig",
    "ConfigError",
    "ConfigurationError",
    "FacilitatorClient",
    "FacilitatorUnavailable",
    "InvalidPaymentHeader",
    "LocalEvmWallet",
    "MissingDestination",
    "MissingFeePayer",
    "MissingWalletAddress",
    "NoSuitableRequirement",
    "PaymentClient",
    "PaymentDeclined",
    "PaymentHeader",
    "PaymentInterceptor",
    "PaymentProcessor",
    "PaymentRequirement",
    "ProcessedResponse",
    "RouteConfig",
    "RouteOptions",
    "ServerConfig",
    "SettlementResult",
    "SolanaKeypairWallet",
    "SourceAccountNotFound",
    "TokenAmount",
    "UnsupportedWalletCapability",
    "ValidationError",
    "VerifyResult",
    "X402Error",
    "create_payment_client",
    "create_payment_client_from_env",
    "create_payment_processor",
    "decode_payment_header",
    "encode_payment_header",
    "fetch_with_payment",
    "from_atomic_units",
    "load_server_config",
    "to_atomic_units",
)
