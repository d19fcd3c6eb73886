"""
Public, high-level helpers for paying for and protecting endpoints.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

import requests

from .core.client import PaymentClient
from .core.config import (
    AssetInfo,
    ClientConfig,
    NetworkConfig,
    RouteOptions,
    ServerConfig,
    get_network_config,
    load_client_settings,
    load_server_config,
)
from .core.exceptions import ConfigError
from .core.facilitator import FacilitatorClient
from .core.processor import PaymentProcessor
from .core.wallets import wallet_from_private_key

__all__ = [
    "create_payment_client",
    "create_payment_client_from_env",
    "create_payment_processor",
    "fetch_with_payment",
]


def create_payment_client(
    *,
    wallet: Any = None,
    network: Optional[str] = None,
    config: Optional[ClientConfig] = None,
    session: Optional[requests.Session] = None,
    rpc_url: Optional[str] = None,
    max_payment_amount: Optional[int | str] = None,
    supported_networks: Optional[Iterable[str]] = None,
    networks: Optional[Mapping[str, NetworkConfig]] = None,
) -> PaymentClient:
    """
    Construct a :class:`PaymentClient`.

    Callers can either supply a ready-made :class:`ClientConfig` or the
    individual settings.
    """
    if config is not None:
        extras = (wallet, network, rpc_url, max_payment_amount, supported_networks, networks)
        if any(item is not None for item in extras):
            raise ValueError(
                "Provide either a pre-built ClientConfig or individual parameters, not both."
            )
        return PaymentClient(config, session=session)

    if network is None:
        raise ConfigError("network is required")
    kwargs: dict = {}
    if networks is not None:
        kwargs["networks"] = networks
    cfg = ClientConfig(
        wallet=wallet,
        network=network,
        rpc_url=rpc_url,
        max_payment_amount=max_payment_amount,
        supported_networks=tuple(supported_networks or ()),
        **kwargs,
    )
    return PaymentClient(cfg, session=session)


def create_payment_client_from_env(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    session: Optional[requests.Session] = None,
) -> PaymentClient:
    """Build a client whose wallet is a local key taken from ``XGRAIN402_PAYER_PRIVATE_KEY``."""
    settings = load_client_settings(env_file=env_file, overrides=overrides, base=base)
    if not settings.private_key:
        raise ConfigError("XGRAIN402_PAYER_PRIVATE_KEY must be provided")
    wallet = wallet_from_private_key(get_network_config(settings.network), settings.private_key)
    return create_payment_client(
        wallet=wallet,
        network=settings.network,
        rpc_url=settings.rpc_url,
        max_payment_amount=settings.max_payment_amount,
        session=session,
    )


def create_payment_processor(
    *,
    config: Optional[ServerConfig] = None,
    session: Optional[requests.Session] = None,
    facilitator: Optional[FacilitatorClient] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    network: Optional[str] = None,
    treasury_address: Optional[str] = None,
    facilitator_url: Optional[str] = None,
    rpc_url: Optional[str] = None,
    default_asset: Optional[AssetInfo] = None,
    middleware: Optional[RouteOptions] = None,
) -> PaymentProcessor:
    """
    Construct a :class:`PaymentProcessor`.

    With neither ``config`` nor ``network``/``treasury_address``/
    ``facilitator_url`` the configuration is read from ``XGRAIN402_*``
    environment variables.
    """
    explicit = (network, treasury_address, facilitator_url, rpc_url, default_asset, middleware)
    if config is not None:
        if any(item is not None for item in explicit):
            raise ValueError(
                "Provide either a pre-built ServerConfig or individual parameters, not both."
            )
        cfg = config
    elif network is not None or treasury_address is not None or facilitator_url is not None:
        if not (network and treasury_address and facilitator_url):
            raise ConfigError("network, treasury_address and facilitator_url are all required")
        cfg = ServerConfig(
            network=network,
            treasury_address=treasury_address,
            facilitator_url=facilitator_url,
            rpc_url=rpc_url,
            default_asset=default_asset,
            middleware=middleware or RouteOptions(),
        )
    else:
        cfg = load_server_config(env_file=env_file, overrides=overrides, base=base)
    return PaymentProcessor(cfg, facilitator=facilitator, session=session)


def fetch_with_payment(
    method: str,
    url: str,
    *,
    client: Optional[PaymentClient] = None,
    **kwargs: Any,
) -> requests.Response:
    """One-shot paid request; builds a client from the environment when none is given."""
    client = client or create_payment_client_from_env()
    return client.request(method, url, **kwargs)
