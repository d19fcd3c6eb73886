"""
Configuration objects and helpers for xgrain402 clients and servers.

All configuration objects are frozen: they are built once, validated in
``__post_init__`` and then shared freely between concurrent requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from eth_utils import is_hex_address, to_checksum_address
from solders.pubkey import Pubkey

from .amounts import parse_atomic_amount
from .environment import PaymentEnvironment, build_environment
from .exceptions import ConfigError, ConfigurationError, ValidationError

__all__ = [
    "DEFAULT_NETWORKS",
    "EVM",
    "NATIVE_ASSET_ADDRESS",
    "SVM",
    "AssetInfo",
    "ClientConfig",
    "ClientSettings",
    "ConfigError",
    "ConfigurationError",
    "NetworkConfig",
    "RouteConfig",
    "RouteOptions",
    "ServerConfig",
    "TokenAmount",
    "get_network_config",
    "is_native_asset",
    "load_client_settings",
    "load_server_config",
    "normalize_address",
]

SVM = "svm"
EVM = "evm"

NATIVE_ASSET_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class AssetInfo:
    address: str
    decimals: int


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    family: str
    rpc_url: str
    default_asset: AssetInfo
    chain_id: Optional[int] = None


DEFAULT_NETWORKS: Mapping[str, NetworkConfig] = MappingProxyType(
    {
        "solana": NetworkConfig(
            name="solana",
            family=SVM,
            rpc_url="https://api.mainnet-beta.solana.com",
            default_asset=AssetInfo("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v", 6),
        ),
        "solana-devnet": NetworkConfig(
            name="solana-devnet",
            family=SVM,
            rpc_url="https://api.devnet.solana.com",
            default_asset=AssetInfo("4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU", 6),
        ),
        "bsc": NetworkConfig(
            name="bsc",
            family=EVM,
            rpc_url="https://bsc-dataseed.binance.org",
            default_asset=AssetInfo(NATIVE_ASSET_ADDRESS, 18),
            chain_id=56,
        ),
        "bsc-testnet": NetworkConfig(
            name="bsc-testnet",
            family=EVM,
            rpc_url="https://data-seed-prebsc-1-s1.binance.org:8545",
            default_asset=AssetInfo(NATIVE_ASSET_ADDRESS, 18),
            chain_id=97,
        ),
    }
)


def get_network_config(
    network: str,
    networks: Optional[Mapping[str, NetworkConfig]] = None,
) -> NetworkConfig:
    table = DEFAULT_NETWORKS if networks is None else networks
    try:
        return table[network]
    except KeyError:
        supported = ", ".join(sorted(table))
        raise ConfigurationError(
            f"Unsupported network '{network}' (supported: {supported})"
        ) from None


def is_native_asset(asset: Optional[str]) -> bool:
    """True when ``asset`` denotes the chain's native currency."""
    return not asset or asset.lower() == NATIVE_ASSET_ADDRESS


def normalize_address(raw_address: str, family: str, field_name: str) -> str:
    value = (raw_address or "").strip()
    if not value:
        raise ConfigError(f"{field_name} must not be empty")

    if family == EVM:
        if not value.startswith("0x"):
            value = "0x" + value
        if not is_hex_address(value):
            raise ConfigError(f"{field_name} is not a valid EVM address")
        return to_checksum_address(value)

    try:
        return str(Pubkey.from_string(value))
    except ValueError as exc:
        raise ConfigError(f"{field_name} is not a valid Solana address") from exc


@dataclass(frozen=True)
class RouteOptions:
    """
    Per-route presentation settings. ``None`` means "inherit".

    Server-level defaults are expressed with the same type and merged with
    :meth:`merged_over`.
    """

    resource: Optional[str] = None
    description: Optional[str] = None
    mime_type: Optional[str] = None
    max_timeout_seconds: Optional[int] = None
    output_schema: Optional[Dict[str, Any]] = None

    def merged_over(self, defaults: Optional["RouteOptions"]) -> "RouteOptions":
        if defaults is None:
            return self
        overrides = {
            name: getattr(self, name)
            for name in self.__dataclass_fields__
            if getattr(self, name) is not None
        }
        return replace(defaults, **overrides)


@dataclass(frozen=True)
class TokenAmount:
    """A price in atomic units; ``asset`` of ``None`` selects the server default."""

    amount: str
    asset: Optional[AssetInfo] = None

    def __post_init__(self) -> None:
        try:
            units = parse_atomic_amount(self.amount)
        except ValidationError as exc:
            raise ConfigError(f"Invalid route price: {exc}") from exc
        object.__setattr__(self, "amount", str(units))


@dataclass(frozen=True)
class RouteConfig:
    price: TokenAmount
    network: Optional[str] = None
    options: RouteOptions = field(default_factory=RouteOptions)


def _parse_cap(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        # Zero means no cap.
        return parse_atomic_amount(value) or None
    except ValidationError as exc:
        raise ConfigError(f"Invalid maximum payment amount: {exc}") from exc


@dataclass(frozen=True)
class ClientConfig:
    """
    Configuration of a paying client.

    ``supported_networks`` defaults to ``(network,)``. ``rpc_url`` overrides
    the table's RPC endpoint for ``network`` only. ``max_payment_amount`` is
    in atomic units; ``None`` and ``0`` both mean no cap.
    """

    wallet: Any
    network: str
    rpc_url: Optional[str] = None
    max_payment_amount: Optional[int] = None
    supported_networks: Tuple[str, ...] = ()
    networks: Mapping[str, NetworkConfig] = field(default_factory=lambda: DEFAULT_NETWORKS)

    def __post_init__(self) -> None:
        if self.wallet is None:
            raise ConfigError("A wallet adapter is required")
        get_network_config(self.network, self.networks)
        supported = tuple(self.supported_networks) or (self.network,)
        for name in supported:
            get_network_config(name, self.networks)
        object.__setattr__(self, "supported_networks", supported)
        object.__setattr__(self, "max_payment_amount", _parse_cap(self.max_payment_amount))

    def rpc_url_for(self, network: str) -> str:
        if self.rpc_url and network == self.network:
            return self.rpc_url
        return get_network_config(network, self.networks).rpc_url


@dataclass(frozen=True)
class ServerConfig:
    """Configuration of a server that protects routes behind payments."""

    network: str
    treasury_address: str
    facilitator_url: str
    rpc_url: Optional[str] = None
    default_asset: Optional[AssetInfo] = None
    middleware: RouteOptions = field(default_factory=RouteOptions)
    # Explicit operator override: skips fee-payer discovery entirely.
    fee_payer_override: Optional[str] = None
    networks: Mapping[str, NetworkConfig] = field(default_factory=lambda: DEFAULT_NETWORKS)

    def __post_init__(self) -> None:
        network_config = get_network_config(self.network, self.networks)
        object.__setattr__(
            self,
            "treasury_address",
            normalize_address(self.treasury_address, network_config.family, "treasury_address"),
        )
        facilitator_url = (self.facilitator_url or "").strip().rstrip("/")
        if not facilitator_url:
            raise ConfigError("facilitator_url must be provided")
        object.__setattr__(self, "facilitator_url", facilitator_url)
        if self.fee_payer_override is not None:
            object.__setattr__(
                self,
                "fee_payer_override",
                normalize_address(
                    self.fee_payer_override, network_config.family, "fee_payer_override"
                ),
            )

    @property
    def network_config(self) -> NetworkConfig:
        return get_network_config(self.network, self.networks)

    @property
    def resolved_rpc_url(self) -> str:
        return self.rpc_url or self.network_config.rpc_url

    @property
    def resolved_default_asset(self) -> AssetInfo:
        return self.default_asset or self.network_config.default_asset

    @classmethod
    def from_environment(cls, environment: PaymentEnvironment) -> "ServerConfig":
        network = environment.get("NETWORK", "solana-devnet")
        treasury = environment.require("TREASURY_ADDRESS")
        facilitator_url = environment.require("FACILITATOR_URL")

        default_asset = None
        asset_address = environment.get("DEFAULT_ASSET")
        if asset_address is not None:
            decimals = environment.get_int("DEFAULT_ASSET_DECIMALS")
            if decimals is None:
                raise ConfigError(
                    "XGRAIN402_DEFAULT_ASSET_DECIMALS is required with XGRAIN402_DEFAULT_ASSET"
                )
            default_asset = AssetInfo(asset_address, decimals)

        middleware = RouteOptions(
            resource=environment.get("RESOURCE"),
            description=environment.get("DESCRIPTION"),
            mime_type=environment.get("MIME_TYPE"),
            max_timeout_seconds=environment.get_int("TIMEOUT_SECONDS"),
        )

        return cls(
            network=network,
            treasury_address=treasury,
            facilitator_url=facilitator_url,
            rpc_url=environment.get("RPC_URL"),
            default_asset=default_asset,
            middleware=middleware,
            fee_payer_override=environment.get("FEE_PAYER"),
        )


@dataclass(frozen=True)
class ClientSettings:
    """Environment-derived settings for command-line clients."""

    network: str
    rpc_url: Optional[str]
    max_payment_amount: Optional[int]
    private_key: Optional[str]

    @classmethod
    def from_environment(cls, environment: PaymentEnvironment) -> "ClientSettings":
        network = environment.get("NETWORK", "solana-devnet")
        get_network_config(network)
        return cls(
            network=network,
            rpc_url=environment.get("RPC_URL"),
            max_payment_amount=_parse_cap(environment.get("MAX_PAYMENT_AMOUNT")),
            private_key=environment.get("PAYER_PRIVATE_KEY"),
        )


def load_server_config(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
) -> ServerConfig:
    """
    Build a :class:`ServerConfig` from ``XGRAIN402_*`` variables.

    The variables can come from the process environment, a ``.env`` file,
    explicit overrides, or any combination of the three.
    """
    environment = build_environment(env_file=env_file, base=base, overrides=overrides)
    return ServerConfig.from_environment(environment)


def load_client_settings(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
) -> ClientSettings:
    environment = build_environment(env_file=env_file, base=base, overrides=overrides)
    return ClientSettings.from_environment(environment)
